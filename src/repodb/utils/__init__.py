"""Utility exports for filesystem and dotted-path helpers."""

from repodb.utils.fs import (
    UnsafePathError,
    atomic_write,
    is_within,
    iter_files,
    normalize_relative_path,
    remove_tree,
    resolve_within,
)
from repodb.utils.json_paths import (
    InvalidPathError,
    delete_json_key,
    has_path,
    lookup_path,
    split_path,
    update_json_value,
)

__all__ = [
    "InvalidPathError",
    "UnsafePathError",
    "atomic_write",
    "delete_json_key",
    "has_path",
    "is_within",
    "iter_files",
    "lookup_path",
    "normalize_relative_path",
    "remove_tree",
    "resolve_within",
    "split_path",
    "update_json_value",
]
