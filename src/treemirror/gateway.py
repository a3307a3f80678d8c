"""Initial load and explicit commit of the mirror."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from treemirror._transport import TreeTransport
from treemirror.mirror import TreeMirror

_logger = logging.getLogger(__name__)


class CommitGateway:
    """Moves whole trees between the mirror and the remote store.

    Local mutations accumulate in the mirror and are flushed only by an
    explicit :meth:`save`, so many logical changes travel in one upstream
    merge-update.
    """

    def __init__(
        self,
        transport: TreeTransport,
        mirror: TreeMirror,
        *,
        on_commit: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self._transport = transport
        self._mirror = mirror
        self._on_commit = on_commit

    async def load(self) -> dict[str, Any]:
        """Fetch the remote tree into the mirror and return a copy of it.

        Raises
        ------
        SyncFailureError
            If the fetch fails.  Startup must treat this as fatal.
        """
        tree = await self._transport.fetch_tree()
        self._mirror.replace(tree)
        _logger.debug("Loaded remote tree with %d top-level keys", len(self._mirror.keys()))
        return self._mirror.snapshot()

    async def save(self) -> bool:
        """Merge-update the remote root with the whole local tree.

        Top-level keys present locally replace their remote counterparts;
        remote top-level keys absent locally are left untouched.

        Raises
        ------
        SyncFailureError
            If the update fails.  Whether any part was applied upstream is
            unknown.
        """
        tree = self._mirror.snapshot()
        await self._transport.update_root(tree)
        _logger.debug("Committed %d top-level keys", len(tree))

        if self._on_commit is not None:
            try:
                self._on_commit(tree)
            except Exception:
                _logger.debug("on_commit callback failed", exc_info=True)
        return True
