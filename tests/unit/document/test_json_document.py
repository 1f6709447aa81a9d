"""
repodb — unit tests for the JSON document engine

File: tests/unit/document/test_json_document.py

Purpose
- Validate per-document operations, their typed errors, and query scans over
  a directory of documents.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from repodb.document import (
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
    JsonDocument,
    iter_matches,
)
from repodb.query import Eq, Ge, Not, ref
from repodb.utils.json_paths import InvalidPathError

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.unit


def _seed(root: Path, relative: str, content: object) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(content), encoding="utf-8")


def test_write_then_read_round_trips(tmp_path: Path) -> None:
    document = JsonDocument(tmp_path, "users/alice.json")

    written = document.write({"name": "alice", "age": 31})

    assert written == len(document.full_path.read_bytes())
    assert document.read() == {"name": "alice", "age": 31}
    assert document.full_path.read_text(encoding="utf-8").endswith("\n")


def test_read_missing_is_not_found(tmp_path: Path) -> None:
    document = JsonDocument(tmp_path, "missing.json")

    with pytest.raises(DocumentNotFoundError) as excinfo:
        document.read()

    assert isinstance(excinfo.value, DocumentReadError)
    assert isinstance(excinfo.value.cause, FileNotFoundError)
    assert excinfo.value.__cause__ is excinfo.value.cause
    assert str(excinfo.value).startswith("repo document not found (missing.json)")


@pytest.mark.parametrize(
    "text",
    ["{not json", '{"a": NaN}', '{"a": Infinity}', '{"a": 1e999}', '{"a": [-1e400]}'],
)
def test_read_invalid_json_is_read_error(tmp_path: Path, text: str) -> None:
    (tmp_path / "bad.json").write_text(text, encoding="utf-8")

    with pytest.raises(DocumentReadError) as excinfo:
        JsonDocument(tmp_path, "bad.json").read()

    assert not isinstance(excinfo.value, DocumentNotFoundError)


def test_overflowing_float_fails_as_read_error_before_update(tmp_path: Path) -> None:
    (tmp_path / "big.json").write_text('{"x": 1e999}', encoding="utf-8")
    document = JsonDocument(tmp_path, "big.json")

    with pytest.raises(DocumentUpdateError) as excinfo:
        document.update("y", 1)

    assert type(excinfo.value.cause) is DocumentReadError
    assert "out of range" in str(excinfo.value)
    assert (tmp_path / "big.json").read_text(encoding="utf-8") == '{"x": 1e999}'


def test_large_finite_floats_are_accepted(tmp_path: Path) -> None:
    (tmp_path / "ok.json").write_text('{"x": 1.5e308, "y": 2.5}', encoding="utf-8")

    assert JsonDocument(tmp_path, "ok.json").read() == {"x": 1.5e308, "y": 2.5}


def test_write_unserializable_is_write_error(tmp_path: Path) -> None:
    document = JsonDocument(tmp_path, "doc.json")

    with pytest.raises(DocumentWriteError):
        document.write({"bad": object()})
    with pytest.raises(DocumentWriteError):
        document.write({"nan": float("nan")})
    assert not document.exists()


def test_write_io_failure_is_write_error(tmp_path: Path) -> None:
    (tmp_path / "blocker").write_text("", encoding="utf-8")

    with pytest.raises(DocumentWriteError) as excinfo:
        JsonDocument(tmp_path, "blocker/doc.json").write({})

    assert isinstance(excinfo.value.cause, OSError)


def test_update_upserts_dotted_key(tmp_path: Path) -> None:
    document = JsonDocument(tmp_path, "doc.json")
    document.write({"a": 1})

    result = document.update("a.b", 5)

    assert result == {"a": {"b": 5}}
    assert document.read() == {"a": {"b": 5}}


def test_update_missing_document_wraps_read_failure(tmp_path: Path) -> None:
    with pytest.raises(DocumentUpdateError) as excinfo:
        JsonDocument(tmp_path, "missing.json").update("a", 1)

    assert isinstance(excinfo.value.cause, DocumentNotFoundError)
    assert str(excinfo.value).startswith("repo document update error (missing.json): ")


def test_update_rejects_invalid_key(tmp_path: Path) -> None:
    document = JsonDocument(tmp_path, "doc.json")
    document.write({})

    with pytest.raises(InvalidPathError):
        document.update("a..b", 1)


def test_delete_removes_key_or_is_noop(tmp_path: Path) -> None:
    document = JsonDocument(tmp_path, "doc.json")
    document.write({"a": {"b": 1}, "c": 2})

    assert document.delete("a.b") == {"a": {}, "c": 2}
    assert document.delete("c.d") == {"a": {}, "c": 2}
    assert document.read() == {"a": {}, "c": 2}


def test_delete_missing_document_is_delete_error(tmp_path: Path) -> None:
    with pytest.raises(DocumentDeleteError) as excinfo:
        JsonDocument(tmp_path, "missing.json").delete("a")

    assert isinstance(excinfo.value.cause, DocumentNotFoundError)


def test_exists(tmp_path: Path) -> None:
    document = JsonDocument(tmp_path, "doc.json")
    assert not document.exists()
    document.write([])
    assert document.exists()
    (tmp_path / "dir.json").mkdir()
    assert not JsonDocument(tmp_path, "dir.json").exists()


def test_create_refuses_existing_document(tmp_path: Path) -> None:
    document = JsonDocument(tmp_path, "doc.json")

    document.create()
    assert document.read() == {}

    with pytest.raises(DocumentCreateError) as excinfo:
        document.create({"a": 1})
    assert isinstance(excinfo.value.cause, FileExistsError)


def test_copy_reports_bytes(tmp_path: Path) -> None:
    source = tmp_path / "source.json"
    source.write_bytes(b'{"k": "v"}')
    document = JsonDocument(tmp_path / "store", "nested/copy.json")

    assert document.copy(source) == len(b'{"k": "v"}')
    assert document.read() == {"k": "v"}

    with pytest.raises(DocumentCopyError):
        document.copy(tmp_path / "nope.json")


def test_remove(tmp_path: Path) -> None:
    document = JsonDocument(tmp_path, "doc.json")
    document.write({})

    document.remove()
    assert not document.exists()

    with pytest.raises(DocumentRemoveError) as excinfo:
        document.remove()
    assert isinstance(excinfo.value.cause, FileNotFoundError)


@pytest.mark.parametrize("path", ["", "/abs.json", "../escape.json", ".git/config"])
def test_unsafe_document_paths_are_rejected(tmp_path: Path, path: str) -> None:
    with pytest.raises(InvalidDocumentPathError):
        JsonDocument(tmp_path, path)


def test_symlink_escaping_the_store_is_rejected(tmp_path: Path) -> None:
    store = tmp_path / "store"
    outside = tmp_path / "outside"
    outside.mkdir()
    store.mkdir()
    (store / "linked").symlink_to(outside, target_is_directory=True)
    (store / "inner").mkdir()
    (store / "alias").symlink_to(store / "inner", target_is_directory=True)

    with pytest.raises(InvalidDocumentPathError, match="resolves outside"):
        JsonDocument(store, "linked/secret.json")
    with pytest.raises(InvalidDocumentPathError):
        list(iter_matches(store, collection="linked"))

    document = JsonDocument(store, "alias/doc.json")
    assert document.path == "alias/doc.json"


def test_every_error_kind_has_a_message() -> None:
    cause = OSError("disk full")
    for error_type in (
        DocumentReadError,
        DocumentWriteError,
        DocumentUpdateError,
        DocumentDeleteError,
        DocumentCreateError,
        DocumentCopyError,
        DocumentRemoveError,
    ):
        error = error_type("doc.json", cause)
        assert isinstance(error, DocumentError)
        assert str(error) == f"repo document {error_type.kind} error (doc.json): disk full"


def test_find_scans_documents_in_path_order(tmp_path: Path) -> None:
    _seed(tmp_path, "users/bob.json", {"name": "bob", "age": 17})
    _seed(tmp_path, "users/alice.json", {"name": "alice", "age": 31})
    _seed(tmp_path, "teams/core.json", {"name": "core"})
    _seed(tmp_path, ".git/ignored.json", {"name": "alice", "age": 99})
    (tmp_path / "notes.txt").write_text("not a document", encoding="utf-8")
    document = JsonDocument(tmp_path, "users/alice.json")

    adults = document.find_many(Ge(ref("age"), 18))
    assert adults == [{"name": "alice", "age": 31}]
    assert document.find_one(Eq(ref("name"), "bob")) == {"name": "bob", "age": 17}
    assert document.find_one(Eq(ref("name"), "carol")) is None
    assert [m["name"] for m in document.find_many()] == ["core", "alice", "bob"]
    assert document.find_many(Not(Ge(ref("age"), 18))) == [
        {"name": "core"},
        {"name": "bob", "age": 17},
    ]


def test_iter_matches_scoped_to_collection(tmp_path: Path) -> None:
    _seed(tmp_path, "users/alice.json", {"name": "alice"})
    _seed(tmp_path, "teams/alice.json", {"name": "alice"})

    matches = list(iter_matches(tmp_path, Eq(ref("name"), "alice"), collection="teams"))

    assert [match.path for match in matches] == ["teams/alice.json"]
    assert list(iter_matches(tmp_path, collection="missing")) == []
    with pytest.raises(InvalidDocumentPathError):
        list(iter_matches(tmp_path, collection="../outside"))


def test_find_propagates_unreadable_documents(tmp_path: Path) -> None:
    _seed(tmp_path, "a.json", {"ok": True})
    (tmp_path / "b.json").write_text("{broken", encoding="utf-8")

    with pytest.raises(DocumentReadError):
        JsonDocument(tmp_path, "a.json").find_many()
