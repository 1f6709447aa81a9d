"""Unit tests for dotted-path upsert/delete over JSON object trees."""

from __future__ import annotations

import copy

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from repodb.utils.json_paths import (
    InvalidPathError,
    delete_json_key,
    has_path,
    lookup_path,
    split_path,
    update_json_value,
)

pytestmark = pytest.mark.unit

_KEYS = st.text(alphabet="abcxyz", min_size=1, max_size=3)
_PATHS = st.lists(_KEYS, min_size=1, max_size=4).map(".".join)
_JSON = st.recursive(
    st.one_of(st.none(), st.booleans(), st.integers(), st.text(max_size=4)),
    lambda children: st.one_of(
        st.lists(children, max_size=3), st.dictionaries(_KEYS, children, max_size=3)
    ),
    max_leaves=8,
)


def test_upsert_creates_intermediate_objects() -> None:
    first = update_json_value({}, "a.b", 5)
    assert first == {"a": {"b": 5}}
    assert update_json_value(first, "a.b", 7) == {"a": {"b": 7}}


def test_upsert_overwrites_non_object_intermediate() -> None:
    assert update_json_value({"a": 1}, "a.b", 5) == {"a": {"b": 5}}
    assert update_json_value({"a": [1, 2]}, "a.b", 5) == {"a": {"b": 5}}


def test_upsert_keeps_siblings() -> None:
    data = {"a": {"x": 1}, "z": True}
    assert update_json_value(data, "a.y", 2) == {"a": {"x": 1, "y": 2}, "z": True}


def test_upsert_on_non_object_root_is_noop() -> None:
    assert update_json_value([1, 2], "a", 5) == [1, 2]
    assert update_json_value("text", "a", 5) == "text"


def test_delete_removes_leaf() -> None:
    assert delete_json_key({"a": {"b": 1}}, "a.b") == {"a": {}}
    assert delete_json_key({"a": 1, "b": 2}, "a") == {"b": 2}


def test_delete_aborts_on_non_object_intermediate() -> None:
    assert delete_json_key({"a": 1}, "a.b") == {"a": 1}
    assert delete_json_key({"a": {"c": 1}}, "a.b") == {"a": {"c": 1}}
    assert delete_json_key({}, "a.b.c") == {}
    assert delete_json_key([{"a": 1}], "a") == [{"a": 1}]


@pytest.mark.parametrize("path", ["", ".", "a..b", ".a", "a."])
def test_empty_segments_are_rejected(path: str) -> None:
    with pytest.raises(InvalidPathError):
        split_path(path)
    with pytest.raises(InvalidPathError):
        update_json_value({}, path, 1)


def test_lookup_and_has_path() -> None:
    data = {"a": {"b": None}, "list": [1]}

    assert lookup_path(data, "a.b", "default") is None
    assert lookup_path(data, "a.c", "default") == "default"
    assert lookup_path(data, "list.0", "default") == "default"
    assert has_path(data, "a.b")
    assert not has_path(data, "a.b.c")


@settings(max_examples=100, derandomize=True, deadline=None)
@given(data=st.dictionaries(_KEYS, _JSON, max_size=4), path=_PATHS, value=_JSON)
def test_upsert_never_mutates_input_and_value_is_readable(
    data: dict[str, object], path: str, value: object
) -> None:
    snapshot = copy.deepcopy(data)

    updated = update_json_value(data, path, value)

    assert data == snapshot
    assert lookup_path(updated, path) == value


@settings(max_examples=100, derandomize=True, deadline=None)
@given(data=st.dictionaries(_KEYS, _JSON, max_size=4), path=_PATHS)
def test_delete_never_mutates_input_and_removes_path(data: dict[str, object], path: str) -> None:
    snapshot = copy.deepcopy(data)

    pruned = delete_json_key(data, path)

    assert data == snapshot
    assert not has_path(pruned, path)
    if not has_path(data, path):
        assert pruned == data
