"""
repodb — dotted-path helpers over JSON object trees

File: src/repodb/utils/json_paths.py

Purpose
- Address nested fields like ``a.b.c`` inside parsed JSON documents, one
  object level per segment.

Functional requirements
- ``update_json_value`` upserts: missing or non-object intermediates become
  empty objects; the final key is inserted or overwritten.
- ``delete_json_key`` removes the final key only when every intermediate
  segment exists and is an object; otherwise the input comes back unchanged.
- A non-object root is left unchanged by both.
- Arrays are never created or traversed.

Non-functional requirements
- Pure functions: inputs are never mutated.
"""

from __future__ import annotations

import copy
from typing import Any, Final

from repodb.constants import PATH_SEPARATOR

_MISSING: Final[object] = object()


class InvalidPathError(ValueError):
    """Raised when a dotted path is empty or has empty segments."""


def split_path(path: str) -> tuple[str, ...]:
    """Split ``path`` on the separator, rejecting empty segments."""
    if not isinstance(path, str):
        raise InvalidPathError(f"path must be a string, got {type(path).__name__}")
    if path == "":
        raise InvalidPathError("path cannot be empty")
    segments = tuple(path.split(PATH_SEPARATOR))
    if any(segment == "" for segment in segments):
        raise InvalidPathError(f"path {path!r} contains an empty segment")
    return segments


def lookup_path(data: object, path: str, default: object = None) -> Any:
    """Return the value at ``path`` or ``default`` when any segment is missing."""
    cursor: object = data
    for segment in split_path(path):
        if not isinstance(cursor, dict) or segment not in cursor:
            return default
        cursor = cursor[segment]
    return cursor


def has_path(data: object, path: str) -> bool:
    return lookup_path(data, path, _MISSING) is not _MISSING


def update_json_value(data: Any, path: str, value: Any) -> Any:
    """Return a copy of ``data`` with ``value`` set at ``path``."""
    segments = split_path(path)
    if not isinstance(data, dict):
        return copy.deepcopy(data)

    result = copy.deepcopy(data)
    cursor = result
    for segment in segments[:-1]:
        child = cursor.get(segment)
        if not isinstance(child, dict):
            child = {}
            cursor[segment] = child
        cursor = child
    cursor[segments[-1]] = copy.deepcopy(value)
    return result


def delete_json_key(data: Any, path: str) -> Any:
    """Return a copy of ``data`` without the key at ``path``; unchanged when not traversable."""
    segments = split_path(path)
    if not isinstance(data, dict):
        return copy.deepcopy(data)

    result = copy.deepcopy(data)
    cursor = result
    for segment in segments[:-1]:
        child = cursor.get(segment, _MISSING)
        if not isinstance(child, dict):
            return copy.deepcopy(data)
        cursor = child
    if segments[-1] not in cursor:
        return copy.deepcopy(data)
    del cursor[segments[-1]]
    return result


__all__ = [
    "InvalidPathError",
    "delete_json_key",
    "has_path",
    "lookup_path",
    "split_path",
    "update_json_value",
]
