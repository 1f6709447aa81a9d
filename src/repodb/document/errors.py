"""Closed error taxonomy for per-document operations."""

from __future__ import annotations

from typing import ClassVar

from repodb.utils.fs import UnsafePathError


class DocumentError(RuntimeError):
    """Base error for document engine failures; wraps the underlying cause."""

    kind: ClassVar[str] = "document"

    def __init__(self, document: str, cause: BaseException | None = None) -> None:
        self.document = document
        self.cause = cause
        detail = str(cause).strip() if cause is not None else ""
        if not detail and cause is not None:
            detail = type(cause).__name__
        message = self._prefix()
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def _prefix(self) -> str:
        return f"repo document {self.kind} error ({self.document})"


class DocumentReadError(DocumentError):
    kind = "read"


class DocumentNotFoundError(DocumentReadError):
    """Raised when the document file does not exist."""

    kind = "not found"

    def _prefix(self) -> str:
        return f"repo document not found ({self.document})"


class DocumentWriteError(DocumentError):
    kind = "write"


class DocumentUpdateError(DocumentError):
    kind = "update"


class DocumentDeleteError(DocumentError):
    kind = "delete"


class DocumentCreateError(DocumentError):
    kind = "create"


class DocumentCopyError(DocumentError):
    kind = "copy"


class DocumentRemoveError(DocumentError):
    kind = "remove"


class InvalidDocumentPathError(UnsafePathError):
    """Raised when a document path is absolute, escapes the store, or targets ``.git``."""


__all__ = [
    "DocumentCopyError",
    "DocumentCreateError",
    "DocumentDeleteError",
    "DocumentError",
    "DocumentNotFoundError",
    "DocumentReadError",
    "DocumentRemoveError",
    "DocumentUpdateError",
    "DocumentWriteError",
    "InvalidDocumentPathError",
]
