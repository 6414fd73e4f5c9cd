"""Checks behind the init command: flag validation and locating the init package."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Optional

from zarfkit import config
from zarfkit.config import GITHUB_PROJECT, ZARF_GIT_PUSH_USER, ZARF_REGISTRY_PUSH_USER

_RELEASES_HOST = "github.com"


@dataclass
class ServerCredentials:
    """Address and push/pull credentials of an external git server or registry."""

    address: str = ""
    push_username: str = ""
    push_password: str = ""
    pull_username: str = ""
    pull_password: str = ""


def _git_defaults() -> ServerCredentials:
    return ServerCredentials(push_username=ZARF_GIT_PUSH_USER)


def _registry_defaults() -> ServerCredentials:
    return ServerCredentials(push_username=ZARF_REGISTRY_PUSH_USER)


@dataclass
class InitOptions:
    """Options given to the init command."""

    components: str = ""
    storage_class: str = ""
    git_server: ServerCredentials = field(default_factory=_git_defaults)
    registry_info: ServerCredentials = field(default_factory=_registry_defaults)
    registry_node_port: int = 0
    registry_secret: str = ""
    set_variables: dict[str, str] = field(default_factory=dict)


class InitPackageNotFoundError(FileNotFoundError):
    """Raised when no init package can be found on the local system."""

    def __init__(self, package_name: str, url: str) -> None:
        super().__init__(
            "this command requires a zarf-init package, but one was not found on the "
            f"local system; it can be downloaded from {url}"
        )
        self.package_name = package_name
        self.url = url


def validate_init_flags(options: InitOptions) -> None:
    """Raise ValueError when an external server is given without push credentials."""
    git = options.git_server
    if git.address and (not git.push_username or not git.push_password):
        raise ValueError(
            "the 'git-push-username' and 'git-push-password' flags must be provided "
            "if the 'git-url' flag is provided"
        )
    registry = options.registry_info
    if registry.address and (not registry.push_username or not registry.push_password):
        raise ValueError(
            "the 'registry-push-username' and 'registry-push-password' flags must be "
            "provided if the 'registry-url' flag is provided"
        )


def init_download_url(version: str, package_name: str) -> str:
    """Where the release of the given version publishes the init package."""
    return f"https://{_RELEASES_HOST}/{GITHUB_PROJECT}/releases/download/{version}/{package_name}"


def _default_executable_dir() -> str:
    program = sys.argv[0] if sys.argv and sys.argv[0] else ""
    if not program:
        return os.getcwd()
    return os.path.dirname(os.path.realpath(program))


def find_init_package(
    package_name: str,
    executable_dir: Optional[str] = None,
    cache_path: Optional[str] = None,
) -> str:
    """Locate the init package: working directory, executable directory, then cache.

    The cache directory is created when missing. Raises InitPackageNotFoundError,
    carrying the download URL, when the package is in none of these places.
    """
    if os.path.exists(package_name):
        return package_name

    exe_dir = executable_dir if executable_dir is not None else _default_executable_dir()
    candidate = os.path.join(exe_dir, package_name)
    if os.path.exists(candidate):
        return candidate

    cache = cache_path if cache_path is not None else config.get_abs_cache_path()
    if not os.path.exists(cache):
        try:
            os.makedirs(cache, mode=0o755, exist_ok=True)
        except OSError as err:
            raise OSError(f"Unable to create cache directory: {cache}: {err}") from err

    candidate = os.path.join(cache, package_name)
    if os.path.exists(candidate):
        return candidate

    raise InitPackageNotFoundError(package_name, init_download_url(config.CLI_VERSION, package_name))