"""Helpers behind the package commands: create, deploy, inspect, list and remove."""

from __future__ import annotations

import glob
import os
import re
import tarfile
import tempfile
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

import yaml
import zstandard

from zarfkit.config import ZARF_YAML

PACKAGE_PROMPT = "Choose or type the package file"
_TABLE_HEADER = ["     Package ", "Components"]

_CLEAN_PATH = re.compile(r"^[a-zA-Z0-9_\-/.~\\:]+$")
_PACKAGE_TARBALL = re.compile(r".*zarf-package-.*\.tar\.zst$")

# suggest(partial) -> package files that start with the partial name.
Suggest = Callable[[str], list[str]]
# prompt(message, suggest) -> the path the user chose or typed.
Prompt = Callable[[str, Suggest], str]


def is_clean_cache_path(path: str) -> bool:
    """Whether the cache path holds only characters that are safe to use."""
    return _CLEAN_PATH.match(path) is not None


def is_package_tarball(name: str) -> bool:
    """Whether the name looks like a compressed Zarf package file."""
    return _PACKAGE_TARBALL.search(name) is not None


def _is_config_member(member: tarfile.TarInfo) -> bool:
    return member.isfile() and os.path.normpath(member.name) == ZARF_YAML


def _extract_config(tarball: str, destination: str) -> str:
    target = os.path.join(destination, ZARF_YAML)
    with open(tarball, "rb") as handle:
        with zstandard.ZstdDecompressor().stream_reader(handle) as reader:
            with tarfile.open(fileobj=reader, mode="r|") as archive:
                for member in archive:
                    if not _is_config_member(member):
                        continue
                    source = archive.extractfile(member)
                    if source is None:
                        break
                    with open(target, "wb") as out:
                        out.write(source.read())
                    return target
    raise FileNotFoundError(f"{ZARF_YAML} not found in the package {tarball}")


def read_package_name(tarball: str, temp_directory: Optional[str] = None) -> str:
    """The metadata name from the zarf.yaml inside a package tarball."""
    if not os.path.exists(tarball):
        raise FileNotFoundError(f"Invalid tarball path provided: {tarball}")
    with tempfile.TemporaryDirectory(dir=temp_directory or None) as work_dir:
        config_path = _extract_config(tarball, work_dir)
        with open(config_path, encoding="utf-8") as handle:
            document = yaml.safe_load(handle)
    if not isinstance(document, dict):
        raise ValueError(f"Unable to read {ZARF_YAML}: expected a mapping")
    metadata = document.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError(f"Unable to read {ZARF_YAML}: metadata must be a mapping")
    return str(metadata.get("name", "") or "")


def suggest_packages(prefix: str, directory: Optional[str] = None) -> list[str]:
    """Package files in the directory whose name continues the prefix, sorted."""
    pattern = f"zarf-package-{prefix}*.tar*"
    return sorted(glob.glob(pattern, root_dir=directory or os.curdir))


def choose_package(args: Sequence[str], prompt: Prompt) -> str:
    """The package named on the command line, or else the one the user picks."""
    if args:
        return args[0]
    path = prompt(PACKAGE_PROMPT, suggest_packages)
    if not path:
        raise ValueError("Package path selection canceled: a value is required")
    return path


def _name_of(item: Any) -> str:
    if isinstance(item, Mapping):
        return str(item.get("name", "") or "")
    return str(getattr(item, "name", "") or "")


def _components_of(package: Any) -> Iterable[Any]:
    if isinstance(package, Mapping):
        return package.get("deployedComponents") or []
    return getattr(package, "deployed_components", None) or []


def deployed_packages_table(packages: Iterable[Any]) -> list[list[str]]:
    """Table rows, header first, listing each deployed package and its components."""
    rows = [list(_TABLE_HEADER)]
    for package in packages:
        components = " ".join(_name_of(component) for component in _components_of(package))
        rows.append([f"     {_name_of(package)}", f"[{components}]"])
    return rows