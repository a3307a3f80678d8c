"""Store configuration for treemirror."""

from __future__ import annotations

import dataclasses
import os
from typing import Any
from urllib.parse import urlsplit

from treemirror._constants import ROOT_RESOURCE
from treemirror.exceptions import TreeMirrorConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class TreeMirrorConfig:
    """Store configuration.

    Parameters
    ----------
    database_url : str
        Root URL of the remote hierarchical store
        (e.g. ``"https://example-default-rtdb.firebaseio.com"``).
    credential : str or None
        Opaque credential appended to every request as a query parameter.
        Obtaining it is the caller's concern.
    credential_param : str
        Name of the query parameter carrying ``credential``.
    request_timeout : float
        Total timeout in seconds for fetch and merge-update requests, and
        the connect timeout for the change stream.
    stream_read_timeout : float
        Seconds without any bytes on the change stream before the
        subscription is considered lost.  The remote sends keep-alives
        every 30 seconds.
    live_sync_enabled : bool
        Start the background change subscription when the store opens.
    resync_max_retries : int
        Resubscription attempts after a lost subscription.  ``0`` keeps
        the listener terminal on the first failure.
    resync_backoff_initial : float
        Delay in seconds before the first resubscription attempt.
    resync_backoff_max : float
        Upper bound for the doubling backoff delay.
    """

    database_url: str
    credential: str | None = None
    credential_param: str = "access_token"
    request_timeout: float = 30.0
    stream_read_timeout: float = 90.0
    live_sync_enabled: bool = True
    resync_max_retries: int = 0
    resync_backoff_initial: float = 1.0
    resync_backoff_max: float = 30.0

    def __post_init__(self) -> None:
        url = (self.database_url or "").strip()
        parts = urlsplit(url)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise TreeMirrorConfigError(f"database_url must be an http(s) URL, got {self.database_url!r}")
        object.__setattr__(self, "database_url", url.rstrip("/"))

        if not self.credential_param.strip():
            raise TreeMirrorConfigError("credential_param must be non-empty")
        if self.request_timeout <= 0:
            raise TreeMirrorConfigError("request_timeout must be positive")
        if self.stream_read_timeout <= 0:
            raise TreeMirrorConfigError("stream_read_timeout must be positive")
        if self.resync_max_retries < 0:
            raise TreeMirrorConfigError("resync_max_retries must not be negative")
        if self.resync_backoff_initial <= 0:
            raise TreeMirrorConfigError("resync_backoff_initial must be positive")
        if self.resync_backoff_max < self.resync_backoff_initial:
            raise TreeMirrorConfigError("resync_backoff_max must be >= resync_backoff_initial")

    @property
    def root_url(self) -> str:
        """URL addressing the whole tree."""
        return f"{self.database_url}{ROOT_RESOURCE}"

    def request_params(self) -> dict[str, str]:
        """Query parameters sent with every request."""
        if self.credential:
            return {self.credential_param: self.credential}
        return {}

    @classmethod
    def from_env(cls, **overrides: Any) -> TreeMirrorConfig:
        """Create configuration from environment variables.

        Reads ``TREEMIRROR_DATABASE_URL`` and the optional
        ``TREEMIRROR_*`` variables.  Explicit keyword arguments override
        environment values.

        Raises
        ------
        TreeMirrorConfigError
            If no database URL is available or a numeric variable does not
            parse.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "TREEMIRROR_DATABASE_URL": "database_url",
            "TREEMIRROR_CREDENTIAL": "credential",
            "TREEMIRROR_CREDENTIAL_PARAM": "credential_param",
        }
        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "TREEMIRROR_REQUEST_TIMEOUT": ("request_timeout", float),
            "TREEMIRROR_STREAM_READ_TIMEOUT": ("stream_read_timeout", float),
            "TREEMIRROR_RESYNC_MAX_RETRIES": ("resync_max_retries", int),
            "TREEMIRROR_RESYNC_BACKOFF_INITIAL": ("resync_backoff_initial", float),
            "TREEMIRROR_RESYNC_BACKOFF_MAX": ("resync_backoff_max", float),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, (field_name, kind) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = kind(val)
            except ValueError as exc:
                raise TreeMirrorConfigError(f"{env_key} is not a valid {kind.__name__}: {val!r}") from exc

        if "live_sync_enabled" not in overrides:
            config_kwargs["live_sync_enabled"] = _env_bool(env.get("TREEMIRROR_LIVE_SYNC_ENABLED"), True)

        config_kwargs.update(overrides)

        if not config_kwargs.get("database_url"):
            raise TreeMirrorConfigError("TREEMIRROR_DATABASE_URL is not set")

        return cls(**config_kwargs)
