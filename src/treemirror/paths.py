"""Path resolution over nested mappings.

Pure functions that walk, auto-vivify and prune a tree of nested dicts.
They never log, never suspend and never copy: callers own locking and
snapshot semantics.

A *path* is a sequence of keys.  Keys may be ``str`` or ``int`` and are
normalized to ``str``; a single slash-separated string is accepted as a
shorthand (``"Users/U1"`` == ``["Users", "U1"]``).
"""

from __future__ import annotations

from collections.abc import Iterable, MutableMapping, Sequence
from typing import Any, TypeAlias

from treemirror.exceptions import InvalidPathError, KeyNotFoundError, PathNotFoundError

#: JSON-shaped value stored in the tree.
TreeValue: TypeAlias = None | bool | int | float | str | dict[str, Any] | list[Any]

PathLike: TypeAlias = str | Iterable[str | int]

_MISSING: Any = object()


def split_path(path: str) -> tuple[str, ...]:
    """Split a slash-separated path, ignoring empty segments."""
    return tuple(part for part in path.split("/") if part)


def normalize_path(path: PathLike) -> tuple[str, ...]:
    """Return *path* as a tuple of string keys."""
    if isinstance(path, str):
        return split_path(path)
    if isinstance(path, (bytes, bytearray)):
        raise TypeError("path must be a str or an iterable of keys, not bytes")
    return tuple(str(key) for key in path)


def format_path(path: Sequence[str]) -> str:
    return ".".join(path)


def _child(node: Any, key: str) -> Any:
    """Return ``node[key]`` for mappings and lists, or ``_MISSING``.

    A ``None`` list slot is a hole left by a delete and counts as absent.
    """
    if isinstance(node, MutableMapping):
        return node.get(key, _MISSING)
    if isinstance(node, list) and key.isdigit():
        index = int(key)
        if index < len(node) and node[index] is not None:
            return node[index]
    return _MISSING


def _holds(node: Any, key: str) -> bool:
    return isinstance(node, MutableMapping) or (isinstance(node, list) and key.isdigit())


def _store(node: MutableMapping[str, Any] | list[Any], key: str, value: Any) -> None:
    if isinstance(node, list):
        index = int(key)
        if index >= len(node):
            node.extend([None] * (index + 1 - len(node)))
        node[index] = value
    else:
        node[key] = value


def get_path(tree: Any, path: PathLike) -> Any:
    """Walk *path* from *tree*.

    Returns ``None`` at the first missing or non-traversable segment.  An
    empty path returns *tree* itself.  Never mutates.
    """
    node = tree
    for key in normalize_path(path):
        node = _child(node, key)
        if node is _MISSING:
            return None
    return node


def set_path(tree: MutableMapping[str, Any], path: PathLike, value: Any) -> None:
    """Assign *value* at *path*, auto-vivifying intermediates.

    Lists are written by index, padding with ``None`` past the end.  Any
    other intermediate that cannot hold the next key is replaced by a fresh
    empty dict, discarding the scalar (or list) previously stored there.

    Raises
    ------
    InvalidPathError
        If *path* is empty.
    """
    keys = normalize_path(path)
    if not keys:
        raise InvalidPathError("Invalid path for setting value: path is empty", path=keys)

    node: Any = tree
    for key, next_key in zip(keys[:-1], keys[1:]):
        child = _child(node, key)
        if not _holds(child, next_key):
            child = {}
            _store(node, key, child)
        node = child
    _store(node, keys[-1], value)


def remove_path(tree: Any, path: PathLike) -> Any:
    """Delete the value at *path* and return it.

    A list element is cleared to ``None`` rather than popped, so later
    elements keep their indices.

    Raises
    ------
    InvalidPathError
        If *path* is empty.
    PathNotFoundError
        If an intermediate segment is missing or not traversable.
    KeyNotFoundError
        If the final key is absent at its parent.
    """
    keys = normalize_path(path)
    if not keys:
        raise InvalidPathError("remove requires a non-empty path", path=keys)

    parent = tree
    for depth, key in enumerate(keys[:-1], start=1):
        child = _child(parent, key)
        if not isinstance(child, (MutableMapping, list)):
            raise PathNotFoundError(f"Path {format_path(keys[:depth])} does not exist", path=keys[:depth])
        parent = child

    last = keys[-1]
    if isinstance(parent, MutableMapping) and last in parent:
        return parent.pop(last)
    if isinstance(parent, list) and _child(parent, last) is not _MISSING:
        value = parent[int(last)]
        parent[int(last)] = None
        return value
    raise KeyNotFoundError(f"Key {last} not found at {format_path(keys[:-1]) or '<root>'}", path=keys)


def discard_path(tree: Any, path: PathLike) -> None:
    """Delete *path* if present; missing locations are ignored."""
    try:
        remove_path(tree, path)
    except (PathNotFoundError, KeyNotFoundError):
        pass
