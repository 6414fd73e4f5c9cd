"""Global configuration, constants and small helpers shared across commands."""

from __future__ import annotations

import os
import platform
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

GITHUB_PROJECT = "defenseunicorns/zarf"
IPV4_LOCALHOST = "127.0.0.1"

# Limits helm chart name size to account for K8s/helm limits and the zarf prefix.
ZARF_MAX_CHART_NAME_LENGTH = 40
ZARF_GIT_PUSH_USER = "zarf-git-user"
ZARF_GIT_READ_USER = "zarf-git-read-user"
ZARF_REGISTRY_PUSH_USER = "zarf-push"
ZARF_REGISTRY_PULL_USER = "zarf-pull"
ZARF_IMAGE_PULL_SECRET_NAME = "private-registry"
ZARF_GIT_SERVER_SECRET_NAME = "private-git-server"
ZARF_GENERATED_PASSWORD_LEN = 24
ZARF_GENERATED_SECRET_LEN = 48

ZARF_AGENT_HOST = "agent-hook.zarf.svc"

ZARF_CONNECT_LABEL_NAME = "zarf.dev/connect-name"
ZARF_CONNECT_ANNOTATION_DESCRIPTION = "zarf.dev/connect-description"
ZARF_CONNECT_ANNOTATION_URL = "zarf.dev/connect-url"

ZARF_MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
ZARF_CLEANUP_SCRIPTS_PATH = "/opt/zarf"

ZARF_IMAGE_CACHE_DIR = "images"
ZARF_GIT_CACHE_DIR = "repos"

ZARF_YAML = "zarf.yaml"
ZARF_SBOM_DIR = "zarf-sbom"

ZARF_IN_CLUSTER_CONTAINER_REGISTRY_URL = "http://zarf-registry-http.zarf.svc.cluster.local:5000"
ZARF_IN_CLUSTER_CONTAINER_REGISTRY_NODE_PORT = 31999

ZARF_IN_CLUSTER_GIT_SERVICE_URL = "http://zarf-gitea-http.zarf.svc.cluster.local:3000"

ZARF_SEED_IMAGE = "registry"
ZARF_SEED_TAG = "2.8.1"

ZARF_DEFAULT_CACHE_PATH = os.path.join("~", ".zarf-cache")

_DATA_INJECTION_MARKER = ".zarf-injection-{}"
_VALID_PACKAGE_EXTENSIONS = (".tar.zst", ".tar", ".zip")

_MACHINE_TO_ARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
}


@dataclass
class RegistryInfo:
    """Connection details for the container registry."""

    push_username: str = ""
    push_password: str = ""
    pull_username: str = ""
    pull_password: str = ""
    address: str = ""
    node_port: int = 0
    internal_registry: bool = False
    secret: str = ""


@dataclass
class GitServerInfo:
    """Connection details for the git server."""

    push_username: str = ""
    push_password: str = ""
    pull_username: str = ""
    pull_password: str = ""
    address: str = ""
    internal_server: bool = False


@dataclass
class ZarfState:
    """The state Zarf keeps about the cluster it manages."""

    zarf_appliance: bool = False
    distro: str = ""
    architecture: str = ""
    storage_class: str = ""
    secret: str = ""
    git_server: GitServerInfo = field(default_factory=GitServerInfo)
    registry_info: RegistryInfo = field(default_factory=RegistryInfo)


@dataclass
class DeployedComponent:
    """A component that has been, or is being, deployed."""

    name: str = ""
    installed_charts: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class CommonOptions:
    """User-defined values that apply across commands."""

    confirm: bool = False
    cache_path: str = ZARF_DEFAULT_CACHE_PATH
    temp_directory: str = ""


CLI_VERSION = "unset"

# Mutable process-wide settings, adjusted by the command line.
common_options = CommonOptions()
cli_arch = ""
zarf_seed_port = ""

_operation_start_time = int(time.time())
_deployed_components: list[DeployedComponent] = []


def _git_server_from_dict(data: Mapping[str, Any]) -> GitServerInfo:
    return GitServerInfo(
        push_username=data.get("pushUsername", ""),
        push_password=data.get("pushPassword", ""),
        pull_username=data.get("pullUsername", ""),
        pull_password=data.get("pullPassword", ""),
        address=data.get("address", ""),
        internal_server=bool(data.get("internalServer", False)),
    )


def _registry_from_dict(data: Mapping[str, Any]) -> RegistryInfo:
    return RegistryInfo(
        push_username=data.get("pushUsername", ""),
        push_password=data.get("pushPassword", ""),
        pull_username=data.get("pullUsername", ""),
        pull_password=data.get("pullPassword", ""),
        address=data.get("address", ""),
        node_port=int(data.get("nodePort", 0) or 0),
        internal_registry=bool(data.get("internalRegistry", False)),
        secret=data.get("secret", ""),
    )


def state_from_dict(data: Mapping[str, Any]) -> ZarfState:
    """Build a ZarfState from its JSON object form; missing keys take defaults."""
    return ZarfState(
        zarf_appliance=bool(data.get("zarfAppliance", False)),
        distro=data.get("distro", ""),
        architecture=data.get("architecture", ""),
        storage_class=data.get("storageClass", ""),
        secret=data.get("secret", ""),
        git_server=_git_server_from_dict(data.get("gitServer") or {}),
        registry_info=_registry_from_dict(data.get("registryInfo") or {}),
    )


def _host_arch() -> str:
    machine = platform.machine().lower()
    return _MACHINE_TO_ARCH.get(machine, machine)


def get_arch(*args: str) -> str:
    """Return the first specified architecture: CLI override, then args, then the host."""
    for arch in (cli_arch, *args):
        if arch:
            return arch
    return _host_arch()


def get_start_time() -> int:
    """Unix timestamp of when the CLI was started."""
    return _operation_start_time


def get_data_injection_marker() -> str:
    """The data injection marker based on the CLI start time."""
    return _DATA_INJECTION_MARKER.format(_operation_start_time)


def get_crane_options(insecure: bool) -> dict[str, Any]:
    """Registry client options with the insecure flag and the target platform."""
    return {
        "insecure": bool(insecure),
        "platform": {"os": "linux", "architecture": get_arch()},
    }


def get_deploying_components() -> list[DeployedComponent]:
    """The list of components currently being deployed."""
    return list(_deployed_components)


def set_deploying_components(components: list[DeployedComponent]) -> None:
    """Replace the list of components currently being deployed."""
    _deployed_components[:] = components


def clear_deploying_components() -> None:
    """Forget all components currently being deployed."""
    _deployed_components.clear()


def get_valid_package_extensions() -> tuple[str, str, str]:
    """The file extensions a package may have."""
    return _VALID_PACKAGE_EXTENSIONS


def get_registry(state: ZarfState) -> str:
    """The registry address for the given state.

    A populated node port means the registry lives inside the cluster, so
    localhost is used instead of the stored address.
    """
    node_port = state.registry_info.node_port
    if node_port >= 30000:
        return f"{IPV4_LOCALHOST}:{node_port}"
    return state.registry_info.address


def get_abs_cache_path() -> str:
    """The cache path with a leading '~' replaced by the home directory."""
    cache_path = common_options.cache_path
    if cache_path.startswith("~"):
        return str(Path.home()) + cache_path[1:]
    return cache_path