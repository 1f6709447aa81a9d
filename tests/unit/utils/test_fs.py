"""Unit tests for filesystem helpers."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

import pytest

from repodb.utils.fs import (
    UnsafePathError,
    atomic_write,
    is_within,
    iter_files,
    normalize_relative_path,
    remove_tree,
    resolve_within,
)

pytestmark = pytest.mark.unit


def test_atomic_write_replaces_content_and_reports_bytes(tmp_path: Path) -> None:
    target = tmp_path / "doc.json"
    target.write_text("old", encoding="utf-8")

    written = atomic_write(target, "héllo")

    assert written == len("héllo".encode())
    assert target.read_text(encoding="utf-8") == "héllo"
    assert [p.name for p in tmp_path.iterdir()] == ["doc.json"]


def test_atomic_write_creates_parents_on_request(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b" / "doc.json"

    with pytest.raises(FileNotFoundError):
        atomic_write(target, b"{}")
    atomic_write(target, b"{}", create_parents=True)

    assert target.read_bytes() == b"{}"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("users/alice.json", "users/alice.json"),
        ("./a.json", "a.json"),
        ("dir\\b.json", "dir/b.json"),
    ],
)
def test_normalize_relative_path(raw: str, expected: str) -> None:
    assert normalize_relative_path(raw) == PurePosixPath(expected)


@pytest.mark.parametrize(
    "raw", ["", ".", "/etc/passwd", "C:\\x.json", "../x.json", "a/../../x", ".git/config"]
)
def test_normalize_relative_path_rejects_unsafe(raw: str) -> None:
    with pytest.raises(UnsafePathError):
        normalize_relative_path(raw)


def test_resolve_within_and_is_within(tmp_path: Path) -> None:
    resolved = resolve_within(tmp_path, "a/b.json")

    assert resolved == tmp_path / "a" / "b.json"
    assert is_within(resolved, tmp_path)
    assert not is_within(tmp_path.parent, tmp_path)


def test_resolve_within_rejects_symlink_escape(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    (root / "out").symlink_to(tmp_path, target_is_directory=True)

    with pytest.raises(UnsafePathError):
        resolve_within(root, "out/x.json")
    assert resolve_within(root, "./a/b.json") == root / "a" / "b.json"


def test_iter_files_is_sorted_and_skips_git(tmp_path: Path) -> None:
    for relative in ("b.json", "a/z.json", "a/y.txt", ".git/x.json", "c/d/e.json"):
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{}", encoding="utf-8")

    found = [p.relative_to(tmp_path).as_posix() for p in iter_files(tmp_path, suffix=".json")]

    assert found == ["b.json", "a/z.json", "c/d/e.json"]
    assert list(iter_files(tmp_path / "missing", suffix=".json")) == []


def test_remove_tree_handles_dirs_files_and_symlinks(tmp_path: Path) -> None:
    directory = tmp_path / "dir"
    (directory / "nested").mkdir(parents=True)
    (directory / "nested" / "f").write_text("x", encoding="utf-8")
    link = tmp_path / "link"
    link.symlink_to(directory, target_is_directory=True)

    remove_tree(link)
    assert directory.exists()
    remove_tree(directory)
    assert not directory.exists()

    single = tmp_path / "file"
    single.write_text("x", encoding="utf-8")
    remove_tree(single)
    assert not single.exists()
