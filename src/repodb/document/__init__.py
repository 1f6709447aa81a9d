"""Per-document JSON engine: read, write, dotted-path update/delete, and scans."""

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
from repodb.document.json_document import (
    DocumentMatch,
    JsonDocument,
    dumps_document,
    iter_matches,
    loads_strict,
)
from repodb.utils.json_paths import delete_json_key, update_json_value

__all__ = [
    "DocumentCopyError",
    "DocumentCreateError",
    "DocumentDeleteError",
    "DocumentError",
    "DocumentMatch",
    "DocumentNotFoundError",
    "DocumentReadError",
    "DocumentRemoveError",
    "DocumentUpdateError",
    "DocumentWriteError",
    "InvalidDocumentPathError",
    "JsonDocument",
    "delete_json_key",
    "dumps_document",
    "iter_matches",
    "loads_strict",
    "update_json_value",
]
