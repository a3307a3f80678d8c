"""Server-sent event decoding and change folding.

The remote change stream delivers deltas (``put`` / ``patch`` at a path).
The mirror wants full-tree notifications, so the listener keeps a private
shadow of the remote tree and folds every delta into it here.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from treemirror.events import ChangeEvent, ChangeKind
from treemirror.exceptions import SyncFailureError
from treemirror.paths import discard_path, get_path, set_path, split_path

_logger = logging.getLogger(__name__)


def decode_change_event(name: str, data_text: str) -> ChangeEvent | None:
    """Build a :class:`ChangeEvent` from one server-sent event.

    Returns ``None`` for event names the store does not know about.

    Raises
    ------
    SyncFailureError
        If a ``put`` / ``patch`` event carries a malformed payload.
    """
    try:
        kind = ChangeKind(name)
    except ValueError:
        _logger.debug("Ignoring unknown stream event %r", name)
        return None

    payload: Any = None
    if data_text:
        try:
            payload = json.loads(data_text)
        except json.JSONDecodeError as exc:
            if kind in (ChangeKind.PUT, ChangeKind.PATCH):
                raise SyncFailureError(f"Malformed {kind} event payload: {data_text[:64]}") from exc
            payload = data_text

    if kind in (ChangeKind.PUT, ChangeKind.PATCH):
        if not isinstance(payload, Mapping) or not isinstance(payload.get("path"), str):
            raise SyncFailureError(f"{kind} event without a path: {data_text[:64]}")
        data = payload.get("data")
        if kind is ChangeKind.PATCH and not isinstance(data, Mapping):
            raise SyncFailureError(f"patch event data is not an object: {data_text[:64]}")
        return ChangeEvent(kind=kind, path=payload["path"], data=data)

    return ChangeEvent(kind=kind, data=payload)


class ServerSentEventDecoder:
    """Incremental ``text/event-stream`` decoder.

    Feed it one line at a time; it returns a :class:`ChangeEvent` whenever a
    blank line completes an event.
    """

    def __init__(self) -> None:
        self._event: str | None = None
        self._data: list[str] = []

    def feed(self, line: str) -> ChangeEvent | None:
        line = line.rstrip("\r\n")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            self._event = value
        elif field == "data":
            self._data.append(value)
        return None

    def _dispatch(self) -> ChangeEvent | None:
        name, data_lines = self._event, self._data
        self._event, self._data = None, []
        if name is None and not data_lines:
            return None
        return decode_change_event(name or "message", "\n".join(data_lines))


def _compact(node: Any) -> Any:
    if isinstance(node, list):
        while node and node[-1] is None:
            node.pop()
    return node


def _prune_empty_parents(shadow: dict[str, Any], segments: Sequence[str]) -> None:
    # The remote store has no empty containers and no trailing array holes.
    for depth in range(len(segments), 0, -1):
        node = _compact(get_path(shadow, segments[:depth]))
        if node != {} and node != []:
            return
        discard_path(shadow, segments[:depth])


def _put(shadow: dict[str, Any], segments: Sequence[str], value: Any) -> None:
    if not segments:
        return
    if value is None:
        discard_path(shadow, segments)
        _prune_empty_parents(shadow, segments[:-1])
    else:
        set_path(shadow, segments, value)


def fold_change(shadow: dict[str, Any], event: ChangeEvent) -> dict[str, Any]:
    """Apply *event* to *shadow* and return the resulting full tree.

    A ``put`` at the root replaces the shadow; ``None`` data deletes.
    Events that carry no data change (keep-alive, cancel, auth_revoked)
    return the shadow untouched.
    """
    if event.kind is ChangeKind.PUT:
        if event.is_root:
            return event.data if isinstance(event.data, dict) else {}
        _put(shadow, event.segments, event.data)
        return shadow

    if event.kind is ChangeKind.PATCH:
        for key, value in event.data.items():
            _put(shadow, event.segments + split_path(str(key)), value)
        return shadow

    return shadow
