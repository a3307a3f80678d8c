"""treemirror - live in-process mirror of a remote hierarchical document store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("treemirror")
except PackageNotFoundError:
    __version__ = "0+local"
from treemirror._transport import RealtimeDatabaseTransport, TreeTransport
from treemirror.config import TreeMirrorConfig
from treemirror.events import ChangeEvent, ChangeKind, ListenerState
from treemirror.exceptions import (
    ChangeStreamCancelledError,
    InvalidPathError,
    KeyNotFoundError,
    PathNotFoundError,
    SyncFailureError,
    TreeMirrorConfigError,
    TreeMirrorError,
    TreePathError,
)
from treemirror.gateway import CommitGateway
from treemirror.live_sync import LiveSyncListener
from treemirror.mirror import TreeMirror
from treemirror.paths import TreeValue, get_path, remove_path, set_path
from treemirror.store import TreeMirrorStore

__all__ = [
    "__version__",
    "ChangeEvent",
    "ChangeKind",
    "ChangeStreamCancelledError",
    "CommitGateway",
    "InvalidPathError",
    "KeyNotFoundError",
    "ListenerState",
    "LiveSyncListener",
    "PathNotFoundError",
    "RealtimeDatabaseTransport",
    "SyncFailureError",
    "TreeMirror",
    "TreeMirrorConfig",
    "TreeMirrorConfigError",
    "TreeMirrorError",
    "TreeMirrorStore",
    "TreePathError",
    "TreeTransport",
    "TreeValue",
    "get_path",
    "remove_path",
    "set_path",
]
