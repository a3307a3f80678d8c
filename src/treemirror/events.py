"""Normalized change-stream events.

The transport converts raw server-sent events into these models. Only the
live sync listener folds them into tree state.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from treemirror.paths import split_path


class ChangeKind(StrEnum):
    PUT = "put"
    PATCH = "patch"
    KEEP_ALIVE = "keep-alive"
    CANCEL = "cancel"
    AUTH_REVOKED = "auth_revoked"


class ListenerState(StrEnum):
    DISCONNECTED = "disconnected"
    SUBSCRIBING = "subscribing"
    SYNCED = "synced"
    FAILED = "failed"


class ChangeEvent(BaseModel):
    """A single notification from the remote change stream."""

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    path: str = Field(default="/", description="Slash-separated location the data applies to")
    data: Any = Field(default=None, description="New value (put) or child values to merge (patch)")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, value: str) -> str:
        return "/" + "/".join(split_path(value))

    @property
    def segments(self) -> tuple[str, ...]:
        return split_path(self.path)

    @property
    def is_root(self) -> bool:
        return self.path == "/"
