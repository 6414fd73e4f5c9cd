"""Helper tools: archiving, cache clearing and reading stored credentials."""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import Iterable, Optional

import zstandard

from zarfkit import config
from zarfkit.config import ZarfState

log = logging.getLogger(__name__)

_TAR_SUFFIXES = (
    (".tar.gz", "gz"),
    (".tgz", "gz"),
    (".tar.bz2", "bz2"),
    (".tbz2", "bz2"),
    (".tar.xz", "xz"),
    (".txz", "xz"),
    (".tar", ""),
)


def _archive_format(name: str) -> tuple[str, str]:
    lowered = name.lower()
    if lowered.endswith((".tar.zst", ".tzst")):
        return "zst", ""
    if lowered.endswith(".zip"):
        return "zip", ""
    for suffix, compression in _TAR_SUFFIXES:
        if lowered.endswith(suffix):
            return "tar", compression
    raise ValueError(f"unsupported archive format: {name}")


def _add_to_tar(archive: tarfile.TarFile, sources: Iterable[Path]) -> None:
    for source in sources:
        archive.add(str(source), arcname=source.name)


def _add_to_zip(archive: zipfile.ZipFile, sources: Iterable[Path]) -> None:
    for source in sources:
        archive.write(source, source.name)
        if source.is_dir():
            for item in sorted(source.rglob("*")):
                archive.write(item, Path(source.name, item.relative_to(source)).as_posix())


def archive_compress(sources: list[str], destination: str) -> None:
    """Pack the sources into an archive whose format follows the destination's extension."""
    if not sources:
        raise ValueError("at least one source is required")
    kind, compression = _archive_format(destination)
    paths = [Path(os.path.normpath(source)) for source in sources]
    for path in paths:
        if not path.exists():
            raise FileNotFoundError(f"source does not exist: {path}")
    if os.path.exists(destination):
        raise FileExistsError(f"file already exists: {destination}")

    if kind == "zip":
        with zipfile.ZipFile(destination, "w", zipfile.ZIP_DEFLATED) as archive:
            _add_to_zip(archive, paths)
    elif kind == "zst":
        with open(destination, "wb") as handle:
            with zstandard.ZstdCompressor().stream_writer(handle) as writer:
                with tarfile.open(fileobj=writer, mode="w|") as archive:
                    _add_to_tar(archive, paths)
    else:
        mode = f"w:{compression}" if compression else "w"
        with tarfile.open(destination, mode) as archive:
            _add_to_tar(archive, paths)


def _extract_tar(archive: tarfile.TarFile, destination: str) -> None:
    if hasattr(tarfile, "data_filter"):
        archive.extractall(destination, filter="data")
    else:
        archive.extractall(destination)


def archive_decompress(archive: str, destination: str) -> None:
    """Unpack an archive into the destination directory."""
    kind, _ = _archive_format(archive)
    if not os.path.isfile(archive):
        raise FileNotFoundError(f"archive does not exist: {archive}")
    os.makedirs(destination, exist_ok=True)

    if kind == "zip":
        with zipfile.ZipFile(archive) as packed:
            packed.extractall(destination)
    elif kind == "zst":
        with open(archive, "rb") as handle:
            with zstandard.ZstdDecompressor().stream_reader(handle) as reader:
                with tarfile.open(fileobj=reader, mode="r|") as packed:
                    _extract_tar(packed, destination)
    else:
        with tarfile.open(archive, "r:*") as packed:
            _extract_tar(packed, destination)


def _expand_home(path: str) -> str:
    if path.startswith("~"):
        return str(Path.home()) + path[1:]
    return path


def clear_cache(cache_path: Optional[str] = None) -> str:
    """Remove the cache directory and return its absolute path.

    Without a path the configured cache path is used. A missing cache is not an error.
    """
    target = _expand_home(cache_path) if cache_path else config.get_abs_cache_path()
    log.debug("Cache directory set to: %s", target)
    if os.path.isdir(target) and not os.path.islink(target):
        shutil.rmtree(target)
    elif os.path.lexists(target):
        os.remove(target)
    log.info("Successfully cleared the cache from %s", target)
    return target


def get_git_password(state: Optional[ZarfState]) -> str:
    """The push password of the git server recorded in the Zarf state."""
    if state is None or state.distro == "":
        raise LookupError("unable to load the zarf state")
    return state.git_server.push_password