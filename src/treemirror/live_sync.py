"""Background live sync of the mirror with the remote tree."""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
from collections.abc import Callable
from typing import Any

from treemirror._stream import fold_change
from treemirror._transport import TreeTransport
from treemirror.events import ChangeEvent, ChangeKind, ListenerState
from treemirror.exceptions import ChangeStreamCancelledError, SyncFailureError
from treemirror.mirror import TreeMirror

_logger = logging.getLogger(__name__)


class LiveSyncListener:
    """Keeps a :class:`TreeMirror` identical to the remote tree.

    Every change notification produces a full snapshot that replaces the
    mirror's contents unconditionally.  Local edits not yet saved are lost
    when a snapshot arrives first; the listener favors staying identical
    to the remote over preserving them.

    State machine::

        disconnected -> subscribing -> synced -> synced -> ...
                             |            |
                             +-> failed <-+

    With ``max_retries`` left at ``0`` a lost subscription is terminal and
    the mirror stays at its last-known-good state.  A positive value enables
    resubscription with doubling backoff; the attempt counter resets after
    every snapshot.  A ``cancel`` from the remote is always terminal.
    """

    def __init__(
        self,
        transport: TreeTransport,
        mirror: TreeMirror,
        *,
        on_resync: Callable[[dict[str, Any]], None] | None = None,
        max_retries: int = 0,
        backoff_initial: float = 1.0,
        backoff_max: float = 30.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._mirror = mirror
        self._on_resync = on_resync
        self._max_retries = max_retries
        self._backoff_initial = backoff_initial
        self._backoff_max = backoff_max
        self._logger = logger or _logger
        self._state = ListenerState.DISCONNECTED
        self._task: asyncio.Task[None] | None = None
        self._synced = asyncio.Event()
        self._shadow: dict[str, Any] = {}
        self._attempts = 0
        self.last_error: SyncFailureError | None = None

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def is_running(self) -> bool:
        """Whether the background task is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Spawn the subscription task on the running event loop."""
        if self.is_running:
            return
        self._synced.clear()
        self.last_error = None
        self._attempts = 0
        self._task = asyncio.get_running_loop().create_task(self._run(), name="treemirror-live-sync")

    async def stop(self) -> None:
        """Cancel the subscription and wait for the task to finish."""
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._state is not ListenerState.FAILED:
            self._state = ListenerState.DISCONNECTED

    async def wait_synced(self, timeout: float | None = None) -> None:
        """Wait until the first snapshot has been applied.

        Raises :class:`TimeoutError` if *timeout* elapses first.
        """
        await asyncio.wait_for(self._synced.wait(), timeout=timeout)

    async def _run(self) -> None:
        while True:
            self._state = ListenerState.SUBSCRIBING
            try:
                async for event in self._transport.stream_changes():
                    self._handle(event)
                raise SyncFailureError("Change stream closed by remote")
            except ChangeStreamCancelledError as exc:
                self._fail(exc)
                return
            except SyncFailureError as exc:
                self.last_error = exc
                if self._attempts >= self._max_retries:
                    self._fail(exc)
                    return
                delay = min(self._backoff_max, self._backoff_initial * (2**self._attempts))
                self._attempts += 1
                self._state = ListenerState.DISCONNECTED
                self._logger.warning(
                    "Live sync lost (%s); resubscribing in %.1fs (attempt %d/%d)",
                    exc,
                    delay,
                    self._attempts,
                    self._max_retries,
                )
                await asyncio.sleep(delay)

    def _fail(self, exc: SyncFailureError) -> None:
        self.last_error = exc
        self._state = ListenerState.FAILED
        self._logger.error("Live sync stopped, mirror left at last-known state: %s", exc)

    def _handle(self, event: ChangeEvent) -> None:
        if event.kind is ChangeKind.KEEP_ALIVE:
            return
        if event.kind is ChangeKind.CANCEL:
            raise ChangeStreamCancelledError(f"Remote cancelled the change stream: {event.data}")
        if event.kind is ChangeKind.AUTH_REVOKED:
            raise SyncFailureError(f"Credential revoked: {event.data}")

        self._shadow = fold_change(self._shadow, event)
        self._publish()

    def _publish(self) -> None:
        # The mirror adopts its tree and callers mutate it; never hand over the shadow itself.
        self._mirror.replace(copy.deepcopy(self._shadow))
        self._state = ListenerState.SYNCED
        self._attempts = 0
        self._synced.set()
        self._logger.info("Tree re-synchronised (generation %d)", self._mirror.generation)

        if self._on_resync is not None:
            try:
                self._on_resync(self._mirror.snapshot())
            except Exception:
                self._logger.debug("on_resync callback failed", exc_info=True)
