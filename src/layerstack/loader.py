"""
Loading raw snapshots and change batches from files.

Both JSON and YAML are accepted; YAML is picked by the ``.yaml``/``.yml``
suffix, anything else is read as JSON. No schema validation happens here:
the host payload is passed on as plain dicts and lists.
"""

import json as _json
import pathlib as _pathlib
import typing as _typing

import yaml as _yaml

_YAML_SUFFIXES = {".yaml", ".yml"}


class LoadError(Exception):
    """Error reading or decoding a snapshot or change file."""

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        self.path = path
        super().__init__(f"Error in {path}: {message}")


def load_raw(path: _pathlib.Path) -> _typing.Any:
    """
    Read and decode a JSON or YAML file.

    Args:
        path: File to read.

    Returns:
        The decoded document.

    Raises:
        LoadError: If the file cannot be read or decoded.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(path, f"cannot read file: {e}") from e

    if path.suffix.lower() in _YAML_SUFFIXES:
        try:
            return _yaml.safe_load(content)
        except _yaml.YAMLError as e:
            raise LoadError(path, f"invalid YAML: {e}") from e

    try:
        return _json.loads(content)
    except _json.JSONDecodeError as e:
        raise LoadError(path, f"invalid JSON: {e}") from e


def load_snapshot(path: _pathlib.Path) -> dict[str, _typing.Any]:
    """
    Load a document snapshot.

    Raises:
        LoadError: If the file does not hold a mapping.
    """
    data = load_raw(path)
    if not isinstance(data, dict):
        raise LoadError(path, f"snapshot must be a mapping, got {type(data).__name__}")
    return data


def load_changes(path: _pathlib.Path) -> list[dict[str, _typing.Any]]:
    """
    Load a change batch.

    The file holds either a list of change records or a mapping with the
    records under ``layers`` (the shape the host uses for notifications).

    Raises:
        LoadError: If no list of records can be found.
    """
    data = load_raw(path)
    if isinstance(data, dict):
        data = data.get("layers")
    if not isinstance(data, list):
        raise LoadError(path, "change batch must be a list of records or a mapping with 'layers'")
    return data
