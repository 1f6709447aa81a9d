"""
repodb — JSON document engine

File: src/repodb/document/json_document.py

Purpose
- One document is one JSON file at a relative path under a store root.
- Read, write, dotted-path update/delete, create, copy, remove, and filtered
  scans over every document under the root.

Functional requirements
- No in-memory cache: every call re-reads or re-writes the file.
- Writes replace the whole file atomically.
- Every I/O failure surfaces as the matching ``DocumentError`` subclass with
  the cause attached; only ``exists()`` collapses failures (to ``False``).
- Untraversable dotted paths in ``update``/``delete`` are no-ops, not errors.

Non-functional requirements
- Read-modify-write is not atomic across concurrent writers (last write wins).
"""

from __future__ import annotations

import json
import logging
import math
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from repodb.constants import DEFAULT_DOCUMENT_INDENT, DOCUMENT_SUFFIX
from repodb.document.errors import (
    DocumentCopyError,
    DocumentCreateError,
    DocumentDeleteError,
    DocumentError,
    DocumentNotFoundError,
    DocumentReadError,
    DocumentRemoveError,
    DocumentUpdateError,
    DocumentWriteError,
    InvalidDocumentPathError,
)
from repodb.query.algebra import MatchAll, QueryNode
from repodb.utils.fs import (
    UnsafePathError,
    atomic_write,
    iter_files,
    resolve_within,
)
from repodb.utils.json_paths import delete_json_key, split_path, update_json_value

if TYPE_CHECKING:
    from collections.abc import Iterator

    from repodb.utils.fs import PathLike

_LOGGER: Final[logging.Logger] = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DocumentMatch:
    """A document that satisfied a query."""

    path: str
    content: Any


class JsonDocument:
    """Transient view over a JSON file inside a store's working directory."""

    def __init__(
        self,
        base_path: PathLike,
        path: str,
        *,
        indent: int | None = DEFAULT_DOCUMENT_INDENT,
        logger: logging.Logger | None = None,
    ) -> None:
        self.base_path = Path(base_path)
        try:
            self.full_path = resolve_within(self.base_path, path)
        except UnsafePathError as exc:
            raise InvalidDocumentPathError(str(exc)) from exc
        self.path = self.full_path.relative_to(self.base_path).as_posix()
        self._indent = indent
        self._logger = logger if logger is not None else _LOGGER

    def __repr__(self) -> str:
        return f"JsonDocument(base_path={str(self.base_path)!r}, path={self.path!r})"

    # -- single document ----------------------------------------------------

    def read(self) -> Any:
        """Parse and return the document's full JSON content."""
        try:
            text = self.full_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise DocumentNotFoundError(self.path, exc) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentReadError(self.path, exc) from exc

        try:
            return loads_strict(text)
        except ValueError as exc:
            raise DocumentReadError(self.path, exc) from exc

    def write(self, data: Any) -> int:
        """Serialize ``data`` and atomically replace the file; returns bytes written."""
        try:
            payload = dumps_document(data, indent=self._indent)
        except (TypeError, ValueError) as exc:
            raise DocumentWriteError(self.path, exc) from exc

        try:
            written = atomic_write(self.full_path, payload, create_parents=True)
        except OSError as exc:
            raise DocumentWriteError(self.path, exc) from exc

        self._logger.debug(
            "document_write", extra={"document": self.path, "bytes_written": written}
        )
        return written

    def update(self, key: str, value: Any) -> Any:
        """Upsert ``value`` at dotted ``key`` and return the new content."""
        split_path(key)
        try:
            current = self.read()
            updated = update_json_value(current, key, value)
            self.write(updated)
        except DocumentError as exc:
            raise DocumentUpdateError(self.path, exc) from exc

        self._logger.debug("document_update", extra={"document": self.path, "key": key})
        return updated

    def delete(self, key: str) -> Any:
        """Remove dotted ``key`` when traversable and return the (possibly unchanged) content."""
        split_path(key)
        try:
            current = self.read()
            pruned = delete_json_key(current, key)
            self.write(pruned)
        except DocumentError as exc:
            raise DocumentDeleteError(self.path, exc) from exc

        self._logger.debug(
            "document_delete",
            extra={"document": self.path, "key": key, "changed": pruned != current},
        )
        return pruned

    def exists(self) -> bool:
        try:
            return self.full_path.is_file()
        except OSError:
            return False

    def create(self, data: Any = None) -> int:
        """Create the document with ``data`` (default ``{}``); fails if it already exists."""
        if self.exists():
            raise DocumentCreateError(
                self.path, FileExistsError(f"document already exists: {self.path}")
            )
        try:
            return self.write({} if data is None else data)
        except DocumentWriteError as exc:
            raise DocumentCreateError(self.path, exc.cause) from exc

    def copy(self, source_path: PathLike) -> int:
        """Copy bytes from ``source_path`` into this document; returns bytes copied."""
        try:
            self.full_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, self.full_path)
            copied = self.full_path.stat().st_size
        except OSError as exc:
            raise DocumentCopyError(self.path, exc) from exc

        self._logger.debug(
            "document_copy",
            extra={"document": self.path, "source": str(source_path), "bytes_copied": copied},
        )
        return copied

    def remove(self) -> None:
        try:
            self.full_path.unlink()
        except OSError as exc:
            raise DocumentRemoveError(self.path, exc) from exc
        self._logger.debug("document_remove", extra={"document": self.path})

    # -- queries across the store -------------------------------------------

    def find_one(self, query: QueryNode | None = None) -> Any | None:
        """First document under the store root whose content satisfies ``query``."""
        for match in iter_matches(self.base_path, query, indent=self._indent):
            return match.content
        return None

    def find_many(self, query: QueryNode | None = None) -> list[Any]:
        """Every document under the store root whose content satisfies ``query``."""
        return [match.content for match in iter_matches(self.base_path, query, indent=self._indent)]


def iter_matches(
    root: PathLike,
    query: QueryNode | None = None,
    *,
    collection: str | None = None,
    indent: int | None = DEFAULT_DOCUMENT_INDENT,
) -> Iterator[DocumentMatch]:
    """
    Yield matching documents under ``root`` in sorted path order.

    ``collection`` scopes the scan to a sub-directory. Unreadable documents
    raise ``DocumentReadError`` rather than being skipped.
    """

    node = MatchAll() if query is None else query
    base = Path(root)
    scan_root = base
    if collection is not None:
        try:
            scan_root = resolve_within(base, collection)
        except UnsafePathError as exc:
            raise InvalidDocumentPathError(str(exc)) from exc

    for file_path in iter_files(scan_root, suffix=DOCUMENT_SUFFIX):
        relative = file_path.relative_to(base).as_posix()
        document = JsonDocument(base, relative, indent=indent)
        content = document.read()
        if node.evaluate(content):
            yield DocumentMatch(path=relative, content=content)


def loads_strict(text: str) -> Any:
    """Parse JSON, rejecting ``NaN``/``Infinity`` and numbers that overflow a float."""
    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


def dumps_document(data: Any, *, indent: int | None = DEFAULT_DOCUMENT_INDENT) -> str:
    text = json.dumps(data, indent=indent, ensure_ascii=False, allow_nan=False)
    return f"{text}\n"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name!r} is not allowed")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"JSON number out of range: {text}")
    return value


__all__ = [
    "DocumentMatch",
    "JsonDocument",
    "dumps_document",
    "iter_matches",
    "loads_strict",
]
