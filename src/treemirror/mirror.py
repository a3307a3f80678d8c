"""In-memory mirror of the remote tree.

`TreeMirror` owns the single process-wide tree.  Request handlers read and
mutate it between commits; the live sync listener swaps it wholesale.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Mapping, MutableMapping
from typing import Any

from treemirror.paths import PathLike, TreeValue, get_path, normalize_path, remove_path, set_path

_logger = logging.getLogger(__name__)


class TreeMirror:
    """Local copy of the remote tree.

    Reads return deep copies, so a caller can edit what it peeked and write
    it back with :meth:`set` without touching shared state in between.
    All access goes through one re-entrant lock; a wholesale
    :meth:`replace` is therefore never observed half-applied.

    Uncommitted local writes are *not* protected from :meth:`replace`: the
    most recent remote snapshot always wins.
    """

    def __init__(self, tree: Mapping[str, Any] | None = None) -> None:
        self._lock = threading.RLock()
        self._tree: dict[str, Any] = dict(tree) if tree else {}
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of wholesale replacements applied so far."""
        return self._generation

    def peek(self, path: PathLike) -> TreeValue:
        """Return a copy of the value at *path*, or ``None`` if unset."""
        keys = normalize_path(path)
        with self._lock:
            return copy.deepcopy(get_path(self._tree, keys))

    def keys(self, path: PathLike = ()) -> list[str]:
        """Keys of the mapping at *path*; empty if absent or not a mapping."""
        keys = normalize_path(path)
        with self._lock:
            node = get_path(self._tree, keys)
            if isinstance(node, Mapping):
                return list(node.keys())
            return []

    def snapshot(self, path: PathLike = ()) -> TreeValue:
        """Deep copy of the node at *path* (the whole tree by default)."""
        return self.peek(path)

    def set(self, path: PathLike, value: TreeValue) -> None:
        """Store *value* at *path*, creating intermediate mappings.

        The value is stored as given; it must be JSON-serializable for a
        later :meth:`~treemirror.gateway.CommitGateway.save` to succeed.

        Raises
        ------
        InvalidPathError
            If *path* is empty.
        """
        keys = normalize_path(path)
        with self._lock:
            set_path(self._tree, keys, value)

    def destroy(self, path: PathLike) -> None:
        """Delete the value at *path*.

        Raises
        ------
        InvalidPathError
            If *path* is empty.
        PathNotFoundError
            If an intermediate segment is missing.
        KeyNotFoundError
            If the final key is absent.
        """
        keys = normalize_path(path)
        with self._lock:
            remove_path(self._tree, keys)

    def replace(self, tree: Any) -> None:
        """Swap in *tree* as the new contents.

        ``None`` becomes an empty tree.  The object is adopted, not copied.
        """
        if tree is None:
            tree = {}
        elif not isinstance(tree, MutableMapping):
            _logger.warning("Ignoring non-mapping tree root of type %s; mirror reset to empty", type(tree).__name__)
            tree = {}
        with self._lock:
            self._tree = tree
            self._generation += 1
