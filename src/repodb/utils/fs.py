"""
repodb — filesystem utilities

File: src/repodb/utils/fs.py

Purpose
- Atomic document writes, repository-relative path containment, and
  deterministic discovery of document files under a working directory.

Functional requirements
- Atomic writes use a temp file in the destination directory and replace the
  target in a single step, so readers see either the old or the new file.
- Containment checks refuse absolute paths, ``..`` traversal, and ``.git``.
- File discovery never descends into ``.git``.

Non-functional requirements
- Standard library only.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

PathLike = str | os.PathLike[str]

_GIT_DIR = ".git"


class UnsafePathError(ValueError):
    """Raised when a repository-relative path escapes its root."""


def atomic_write(
    path: PathLike,
    data: bytes | str,
    *,
    encoding: str = "utf-8",
    create_parents: bool = False,
) -> int:
    """
    Atomically write ``data`` to ``path`` and return the number of bytes written.

    The write strategy is:
    1. create temp file in the same directory,
    2. write + flush + fsync file data,
    3. replace target via ``os.replace``.
    """

    target = Path(path)
    if create_parents:
        target.parent.mkdir(parents=True, exist_ok=True)
    target_parent = target.parent.resolve(strict=True)
    if not target_parent.is_dir():
        raise NotADirectoryError(f"{target_parent!s} is not a directory")

    payload = data if isinstance(data, bytes) else data.encode(encoding)

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target_parent),
    )
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "wb") as file_handle:
            file_handle.write(payload)
            file_handle.flush()
            os.fsync(file_handle.fileno())

        os.replace(temp_path, target)
        _fsync_directory(target_parent)
    except Exception:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise
    return len(payload)


def normalize_relative_path(relative: str) -> PurePosixPath:
    """Validate a repository-relative path and return its normalized POSIX form."""

    if not isinstance(relative, str):
        raise UnsafePathError(f"path must be a string, got {type(relative).__name__}")
    raw = relative.strip().replace("\\", "/")
    while raw.startswith("./"):
        raw = raw[2:]
    if raw in {"", "."}:
        raise UnsafePathError("path cannot be empty")

    candidate = PurePosixPath(raw)
    if candidate.is_absolute() or PureWindowsPath(relative).is_absolute():
        raise UnsafePathError(f"path {relative!r} must be relative")
    if ".." in candidate.parts:
        raise UnsafePathError(f"path {relative!r} must not contain '..'")
    if _GIT_DIR in candidate.parts:
        raise UnsafePathError(f"path {relative!r} must not target {_GIT_DIR}")
    return candidate


def resolve_within(root: PathLike, relative: str) -> Path:
    """Join ``relative`` onto ``root``; neither ``..`` nor a symlink may lead outside it."""

    joined = Path(root).joinpath(*normalize_relative_path(relative).parts)
    if not is_within(joined, root):
        raise UnsafePathError(f"path {relative!r} resolves outside {Path(root).as_posix()}")
    return joined


def is_within(child: PathLike, parent: PathLike) -> bool:
    """Return ``True`` if resolved ``child`` is within resolved ``parent``."""

    resolved_parent = Path(parent).resolve(strict=False)
    resolved_child = Path(child).resolve(strict=False)
    try:
        resolved_child.relative_to(resolved_parent)
    except ValueError:
        return False
    return True


def iter_files(root: PathLike, *, suffix: str) -> Iterator[Path]:
    """Yield files under ``root`` ending in ``suffix``, sorted, skipping ``.git``."""

    base = Path(root)
    if not base.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames[:] = sorted(name for name in dirnames if name != _GIT_DIR)
        for filename in sorted(filenames):
            if filename.endswith(suffix):
                yield Path(dirpath) / filename


def remove_tree(path: PathLike) -> None:
    """Recursively delete ``path``; symlinks are unlinked, not followed."""

    target = Path(path)
    if target.is_symlink() or target.is_file():
        target.unlink()
        return
    shutil.rmtree(target)


def _fsync_directory(path: Path) -> None:
    """
    Best-effort directory fsync for metadata durability after ``os.replace``.

    Some platforms/filesystems do not support fsync on directories.
    """

    if os.name == "nt":
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(path, flags)
    except OSError:
        return

    try:
        os.fsync(dir_fd)
    except OSError:
        return
    finally:
        os.close(dir_fd)


__all__ = [
    "PathLike",
    "UnsafePathError",
    "atomic_write",
    "is_within",
    "iter_files",
    "normalize_relative_path",
    "remove_tree",
    "resolve_within",
]
