"""Custom exception hierarchy for treemirror."""

from __future__ import annotations

from collections.abc import Sequence


class TreeMirrorError(Exception):
    """Base exception for all treemirror errors."""


class TreeMirrorConfigError(TreeMirrorError):
    """Invalid or missing configuration."""


class TreePathError(TreeMirrorError):
    """A path could not be used against the tree."""

    def __init__(self, message: str, *, path: Sequence[str] = ()) -> None:
        self.path = tuple(path)
        super().__init__(message)


class InvalidPathError(TreePathError, ValueError):
    """Empty path given to a mutating operation.

    This is a programming error in the caller; correct callers never
    trigger it.
    """


class PathNotFoundError(TreePathError, LookupError):
    """An intermediate segment of a delete path is missing or not a container."""


class KeyNotFoundError(TreePathError, LookupError):
    """The final key of a delete path is absent at its parent."""


class SyncFailureError(TreeMirrorError):
    """Remote store I/O failure (network, non-2xx, invalid JSON).

    No partial-application guarantee is implied: a failed merge-update may
    or may not have been applied upstream.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class ChangeStreamCancelledError(SyncFailureError):
    """The remote store cancelled the change subscription.

    Raised when the stream emits a ``cancel`` event, which the remote sends
    when the credential no longer grants read access.  The listener treats
    this as unrecoverable and never resubscribes.
    """
