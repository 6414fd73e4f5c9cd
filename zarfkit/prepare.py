"""Tools that help prepare assets for packaging."""

from __future__ import annotations

import hashlib
import json
import os
import urllib.request
from typing import Any, Callable, Mapping, Optional

import tomli_w
import yaml

DEFAULT_CONFIG_FILE = "zarf-config.toml"
_CHUNK = 1 << 16


def _hash_stream(stream: Any) -> str:
    digest = hashlib.sha256()
    for chunk in iter(lambda: stream.read(_CHUNK), b""):
        digest.update(chunk)
    return digest.hexdigest()


def compute_sha256(path: str) -> str:
    """The SHA256 sum, as hex, of a local file or of what an http(s) URL returns."""
    if path.startswith(("http://", "https://")):
        with urllib.request.urlopen(path) as response:
            return _hash_stream(response)
    with open(path, "rb") as handle:
        return _hash_stream(handle)


def patch_git_file(
    file_name: str,
    mutate_text: Callable[[str], str],
    confirm: Callable[[str], bool],
) -> str:
    """Rewrite the git URLs in a file, asking before overwriting it.

    Returns the processed text whether or not the file was written.
    """
    with open(file_name, encoding="utf-8") as handle:
        text = handle.read()
    processed = mutate_text(text)
    if confirm(f"Overwrite the file {file_name} with these changes?"):
        with open(file_name, "w", encoding="utf-8") as handle:
            handle.write(processed)
        os.chmod(file_name, 0o640)
    return processed


def _serialise(file_name: str, values: Mapping[str, Any]) -> str:
    extension = os.path.splitext(file_name)[1].lower()
    data = dict(values)
    if extension == ".toml":
        return tomli_w.dumps(data)
    if extension == ".json":
        return json.dumps(data, indent=2) + "\n"
    if extension in (".yaml", ".yml"):
        return yaml.safe_dump(data, sort_keys=True)
    raise ValueError(f"unsupported config file type: {extension or file_name}")


def generate_config_file(
    file_name: Optional[str] = None, values: Optional[Mapping[str, Any]] = None
) -> str:
    """Write the config values to a new file whose extension picks the format.

    The file must not exist already. Returns the name written.
    """
    name = file_name or DEFAULT_CONFIG_FILE
    content = _serialise(name, values or {})
    with open(name, "x", encoding="utf-8") as handle:
        handle.write(content)
    return name