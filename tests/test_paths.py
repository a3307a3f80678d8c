from __future__ import annotations

from typing import Any

import pytest

from treemirror.exceptions import InvalidPathError, KeyNotFoundError, PathNotFoundError
from treemirror.paths import (
    discard_path,
    get_path,
    normalize_path,
    remove_path,
    set_path,
)


class TestNormalizePath:
    def test_keys_become_strings(self) -> None:
        assert normalize_path(["Users", 7]) == ("Users", "7")

    def test_slash_string_is_split(self) -> None:
        assert normalize_path("/Users//U1/") == ("Users", "U1")

    def test_bytes_rejected(self) -> None:
        with pytest.raises(TypeError):
            normalize_path(b"Users")


class TestGetPath:
    def test_missing_segment_returns_none(self) -> None:
        tree = {"a": {"b": 1}}
        assert get_path(tree, ["a", "x", "y"]) is None

    def test_scalar_is_not_traversable(self) -> None:
        assert get_path({"a": 1}, ["a", "b"]) is None

    def test_empty_path_returns_tree(self) -> None:
        tree = {"a": 1}
        assert get_path(tree, []) is tree

    def test_lists_traversed_by_index(self) -> None:
        tree = {"items": [{"name": "first"}, {"name": "second"}]}
        assert get_path(tree, ["items", 1, "name"]) == "second"
        assert get_path(tree, ["items", "5"]) is None

    def test_never_mutates(self) -> None:
        tree: dict[str, Any] = {"a": {}}
        get_path(tree, ["a", "b", "c"])
        get_path(tree, ["z"])
        assert tree == {"a": {}}


class TestSetPath:
    def test_read_your_writes(self) -> None:
        tree: dict[str, Any] = {}
        set_path(tree, ["Users", "U1", "points"], 40)
        assert get_path(tree, ["Users", "U1", "points"]) == 40

    def test_scalar_intermediate_is_replaced(self) -> None:
        tree: dict[str, Any] = {"a": 1}
        set_path(tree, ["a", "b"], 2)
        assert tree == {"a": {"b": 2}}

    def test_list_intermediate_is_indexed(self) -> None:
        tree: dict[str, Any] = {"a": [{"n": 1}, {"n": 2}]}
        set_path(tree, ["a", "1", "n"], 5)
        assert tree == {"a": [{"n": 1}, {"n": 5}]}

    def test_list_element_assigned_in_place(self) -> None:
        tree: dict[str, Any] = {"a": ["x", "y"]}
        set_path(tree, ["a", 0], "z")
        assert tree == {"a": ["z", "y"]}

    def test_list_padded_past_its_end(self) -> None:
        tree: dict[str, Any] = {"a": ["x"]}
        set_path(tree, ["a", "3"], "w")
        assert tree == {"a": ["x", None, None, "w"]}

    def test_list_with_non_index_key_is_replaced(self) -> None:
        tree: dict[str, Any] = {"a": [1, 2]}
        set_path(tree, ["a", "name"], "x")
        assert tree == {"a": {"name": "x"}}

    def test_siblings_untouched(self) -> None:
        tree: dict[str, Any] = {"a": {"keep": True}}
        set_path(tree, ["a", "new"], None)
        assert tree == {"a": {"keep": True, "new": None}}

    def test_empty_path_is_invalid(self) -> None:
        with pytest.raises(InvalidPathError):
            set_path({}, [], 1)


class TestRemovePath:
    def test_empty_path_is_invalid(self) -> None:
        with pytest.raises(InvalidPathError):
            remove_path({"a": 1}, [])

    def test_missing_intermediate(self) -> None:
        with pytest.raises(PathNotFoundError) as excinfo:
            remove_path({}, ["X", "Y"])
        assert excinfo.value.path == ("X",)

    def test_scalar_intermediate(self) -> None:
        with pytest.raises(PathNotFoundError):
            remove_path({"X": 3}, ["X", "Y"])

    def test_missing_final_key(self) -> None:
        with pytest.raises(KeyNotFoundError) as excinfo:
            remove_path({"X": {}}, ["X", "Y"])
        assert excinfo.value.path == ("X", "Y")

    def test_deletes_and_returns_value(self) -> None:
        tree: dict[str, Any] = {"X": {"Y": {"n": 1}, "Z": 2}}
        assert remove_path(tree, ["X", "Y"]) == {"n": 1}
        assert tree == {"X": {"Z": 2}}

    def test_stored_none_can_be_removed(self) -> None:
        tree: dict[str, Any] = {"X": None}
        remove_path(tree, ["X"])
        assert tree == {}

    def test_list_element_leaves_hole(self) -> None:
        tree: dict[str, Any] = {"items": ["a", "b", "c"]}
        assert remove_path(tree, ["items", 0]) == "a"
        assert tree == {"items": [None, "b", "c"]}
        assert get_path(tree, ["items", "2"]) == "c"

    def test_list_hole_is_absent(self) -> None:
        tree: dict[str, Any] = {"items": [None, "b"]}
        with pytest.raises(KeyNotFoundError):
            remove_path(tree, ["items", 0])

    def test_path_errors_are_lookup_errors(self) -> None:
        with pytest.raises(LookupError):
            remove_path({}, ["X", "Y"])


def test_discard_path_ignores_missing() -> None:
    tree: dict[str, Any] = {"a": {"b": 1}}
    discard_path(tree, ["a", "zz"])
    discard_path(tree, ["q", "r"])
    discard_path(tree, ["a", "b"])
    assert tree == {"a": {}}

