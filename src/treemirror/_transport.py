"""HTTP transport for the remote hierarchical store."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any, Protocol

import aiohttp

from treemirror._constants import ERROR_BODY_PREVIEW, ROOT_RESOURCE, USER_AGENT
from treemirror._redact import redact_for_log, redact_url
from treemirror._stream import ServerSentEventDecoder
from treemirror.config import TreeMirrorConfig
from treemirror.events import ChangeEvent
from treemirror.exceptions import SyncFailureError

_logger = logging.getLogger(__name__)


class TreeTransport(Protocol):
    """Structural interface of the remote store.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`RealtimeDatabaseTransport`) concrete.
    """

    async def fetch_tree(self) -> Any:
        ...

    async def update_root(self, patch: Mapping[str, Any]) -> None:
        ...

    def stream_changes(self) -> AsyncIterator[ChangeEvent]:
        ...


class RealtimeDatabaseTransport:
    """REST transport: whole-tree GET, root PATCH and an event-stream subscription."""

    def __init__(self, config: TreeMirrorConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _headers(self, **extra: str) -> dict[str, str]:
        headers = {"user-agent": USER_AGENT}
        headers.update(extra)
        return headers

    def _log_url(self) -> str:
        if not self._config.credential:
            return self._config.root_url
        query = "&".join(f"{k}={v}" for k, v in self._config.request_params().items())
        return redact_url(f"{self._config.root_url}?{query}")

    async def _request(self, method: str, *, body: str | None = None) -> Any:
        url = self._config.root_url
        headers = self._headers(accept="application/json")
        if body is not None:
            headers["content-type"] = "application/json; charset=UTF-8"

        _logger.debug("%s %s", method, self._log_url())

        try:
            async with self._http.request(
                method,
                url,
                params=self._config.request_params(),
                data=body,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
            ) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise SyncFailureError(
                        f"HTTP {resp.status} from {method} {ROOT_RESOURCE}: {text[:ERROR_BODY_PREVIEW]}",
                        status_code=resp.status,
                        endpoint=ROOT_RESOURCE,
                    )
        except SyncFailureError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise SyncFailureError(
                f"{method} {ROOT_RESOURCE} failed: {exc!r}",
                endpoint=ROOT_RESOURCE,
            ) from exc

        try:
            return json.loads(text) if text.strip() else None
        except json.JSONDecodeError as exc:
            raise SyncFailureError(
                f"Invalid JSON from {method} {ROOT_RESOURCE}: {text[:ERROR_BODY_PREVIEW]}",
                endpoint=ROOT_RESOURCE,
            ) from exc

    async def fetch_tree(self) -> Any:
        """Fetch the entire remote tree (``None`` when the store is empty)."""
        return await self._request("GET")

    async def update_root(self, patch: Mapping[str, Any]) -> None:
        """Merge-update the remote root with the top-level keys of *patch*."""
        try:
            body = json.dumps(patch, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise SyncFailureError(f"Tree is not JSON-serializable: {exc}", endpoint=ROOT_RESOURCE) from exc
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("PATCH payload keys=%s body=%s", list(patch), redact_for_log(patch))
        await self._request("PATCH", body=body)

    async def stream_changes(self) -> AsyncIterator[ChangeEvent]:
        """Subscribe to the remote change stream.

        Yields events until the remote closes the stream.  Connection and
        read failures raise :class:`SyncFailureError`.
        """
        timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=self._config.request_timeout,
            sock_read=self._config.stream_read_timeout,
        )
        decoder = ServerSentEventDecoder()

        _logger.debug("STREAM %s", self._log_url())

        try:
            async with self._http.get(
                self._config.root_url,
                params=self._config.request_params(),
                headers=self._headers(accept="text/event-stream"),
                timeout=timeout,
            ) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise SyncFailureError(
                        f"HTTP {resp.status} opening change stream: {text[:ERROR_BODY_PREVIEW]}",
                        status_code=resp.status,
                        endpoint=ROOT_RESOURCE,
                    )
                async for raw_line in resp.content:
                    event = decoder.feed(raw_line.decode("utf-8", errors="replace"))
                    if event is not None:
                        yield event
        except SyncFailureError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise SyncFailureError(
                f"Change stream failed: {exc!r}",
                endpoint=ROOT_RESOURCE,
            ) from exc
