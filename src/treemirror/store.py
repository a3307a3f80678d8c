"""High-level tree mirror store."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import aiohttp

from treemirror._transport import RealtimeDatabaseTransport, TreeTransport
from treemirror.config import TreeMirrorConfig
from treemirror.events import ListenerState
from treemirror.exceptions import TreeMirrorError
from treemirror.gateway import CommitGateway
from treemirror.live_sync import LiveSyncListener
from treemirror.mirror import TreeMirror
from treemirror.paths import PathLike

_logger = logging.getLogger(__name__)


class TreeMirrorStore:
    """Live, locally editable mirror of a remote hierarchical store.

    Usage::

        async with TreeMirrorStore(config) as store:
            user = store.peek(["Users", uid])
            user["points"] -= total
            store.set(["Users", uid], user)
            await store.save()

    Entering the context performs the initial load (a failure propagates and
    the store must not serve traffic) and starts live sync.  Leaving it
    unsubscribes and closes the HTTP session the store opened itself.
    """

    def __init__(
        self,
        config: TreeMirrorConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: TreeTransport | None = None,
        on_resync: Callable[[dict[str, Any]], None] | None = None,
        on_commit: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._external_transport = transport
        self._on_resync = on_resync
        self._on_commit = on_commit
        self._mirror = TreeMirror()
        self._gateway: CommitGateway | None = None
        self._listener: LiveSyncListener | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TreeMirrorStore:
        transport = self._external_transport
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = RealtimeDatabaseTransport(self._config, self._http_session)

        self._gateway = CommitGateway(transport, self._mirror, on_commit=self._on_commit)
        self._listener = LiveSyncListener(
            transport,
            self._mirror,
            on_resync=self._on_resync,
            max_retries=self._config.resync_max_retries,
            backoff_initial=self._config.resync_backoff_initial,
            backoff_max=self._config.resync_backoff_max,
        )
        try:
            await self._gateway.load()
        except BaseException:
            await self._close()
            raise

        if self._config.live_sync_enabled:
            self._listener.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._close()

    async def _close(self) -> None:
        if self._listener is not None:
            await self._listener.stop()
        self._listener = None
        self._gateway = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    def _require_gateway(self) -> CommitGateway:
        if self._gateway is None:
            raise TreeMirrorError("Store not open. Use 'async with TreeMirrorStore(...) as store:'")
        return self._gateway

    # ------------------------------------------------------------------
    # Tree access
    # ------------------------------------------------------------------

    @property
    def mirror(self) -> TreeMirror:
        return self._mirror

    @property
    def listener(self) -> LiveSyncListener | None:
        return self._listener

    @property
    def generation(self) -> int:
        return self._mirror.generation

    @property
    def sync_state(self) -> ListenerState:
        if self._listener is None:
            return ListenerState.DISCONNECTED
        return self._listener.state

    def peek(self, path: PathLike) -> Any:
        """Copy of the value at *path*, or ``None``."""
        return self._mirror.peek(path)

    def keys(self, path: PathLike = ()) -> list[str]:
        return self._mirror.keys(path)

    def snapshot(self, path: PathLike = ()) -> Any:
        return self._mirror.snapshot(path)

    def set(self, path: PathLike, value: Any) -> None:
        """Write *value* at *path* locally; call :meth:`save` to commit."""
        self._mirror.set(path, value)

    def destroy(self, path: PathLike) -> None:
        """Delete *path* locally; call :meth:`save` to commit."""
        self._mirror.destroy(path)

    # ------------------------------------------------------------------
    # Remote sync
    # ------------------------------------------------------------------

    async def load(self) -> dict[str, Any]:
        return await self._require_gateway().load()

    async def save(self) -> bool:
        return await self._require_gateway().save()
