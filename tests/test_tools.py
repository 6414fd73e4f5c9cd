import tarfile
from pathlib import Path

import pytest

from zarfkit.config import GitServerInfo, ZarfState
from zarfkit.tools import (
    archive_compress,
    archive_decompress,
    clear_cache,
    get_git_password,
)


def _make_sources(root: Path) -> tuple[Path, Path]:
    folder = root / "folder"
    (folder / "nested").mkdir(parents=True)
    (folder / "nested" / "inner.txt").write_text("inner contents")
    single = root / "single.txt"
    single.write_text("single contents")
    return folder, single


@pytest.mark.parametrize(
    "name", ["out.tar", "out.tar.gz", "out.tgz", "out.tar.xz", "out.tar.zst", "out.zip"]
)
def test_round_trip(tmp_path, name):
    folder, single = _make_sources(tmp_path)
    archive = tmp_path / name
    archive_compress([str(folder), str(single)], str(archive))
    assert archive.is_file()

    destination = tmp_path / "extracted"
    archive_decompress(str(archive), str(destination))
    assert (destination / "single.txt").read_text() == single.read_text()
    assert (destination / "folder" / "nested" / "inner.txt").read_text() == (
        folder / "nested" / "inner.txt"
    ).read_text()


def test_compress_plain_tar_is_readable_by_tarfile(tmp_path):
    _, single = _make_sources(tmp_path)
    archive = tmp_path / "plain.tar"
    archive_compress([str(single)], str(archive))
    with tarfile.open(archive) as packed:
        assert packed.getnames() == ["single.txt"]


def test_compress_refuses_existing_destination(tmp_path):
    _, single = _make_sources(tmp_path)
    archive = tmp_path / "exists.tar"
    archive.write_bytes(b"old")
    with pytest.raises(FileExistsError):
        archive_compress([str(single)], str(archive))
    assert archive.read_bytes() == b"old"


def test_compress_requires_sources(tmp_path):
    with pytest.raises(ValueError):
        archive_compress([], str(tmp_path / "empty.tar"))


def test_compress_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        archive_compress([str(tmp_path / "missing")], str(tmp_path / "out.tar"))


def test_unknown_format(tmp_path):
    _, single = _make_sources(tmp_path)
    with pytest.raises(ValueError):
        archive_compress([str(single)], str(tmp_path / "out.rar"))
    with pytest.raises(ValueError):
        archive_decompress(str(tmp_path / "out.rar"), str(tmp_path / "dest"))


def test_decompress_missing_archive(tmp_path):
    with pytest.raises(FileNotFoundError):
        archive_decompress(str(tmp_path / "missing.tar"), str(tmp_path / "dest"))


def test_clear_cache_removes_directory(tmp_path):
    cache = tmp_path / "cache"
    (cache / "images").mkdir(parents=True)
    (cache / "images" / "blob").write_bytes(b"data")
    assert clear_cache(str(cache)) == str(cache)
    assert not cache.exists()


def test_clear_cache_missing_is_fine(tmp_path):
    cache = tmp_path / "never-created"
    assert clear_cache(str(cache)) == str(cache)
    assert not cache.exists()


def test_clear_cache_expands_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    cache = tmp_path / ".zarf-cache"
    cache.mkdir()
    result = clear_cache("~/.zarf-cache")
    assert Path(result) == cache
    assert not cache.exists()


def test_get_git_password():
    password = "password"
    state = ZarfState(distro="k3s", git_server=GitServerInfo(push_password=password))
    assert get_git_password(state) == password


@pytest.mark.parametrize("state", [None, ZarfState()])
def test_get_git_password_without_state(state):
    with pytest.raises(LookupError):
        get_git_password(state)