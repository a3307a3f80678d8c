"""Helpers for safe debug logging.

The mirrored tree routinely holds credentials (password hashes, tokens) and
the database URL may carry an access credential in its query string.  This
module redacts those before they reach DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "passwordhash",
        "token",
        "idtoken",
        "accesstoken",
        "access_token",
        "refreshtoken",
        "auth",
        "authorization",
        "apikey",
        "api_key",
        "privatekey",
        "private_key",
        "cookie",
    }
)


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return lowered in _SENSITIVE_VALUE_KEYS or lowered.replace("_", "") in _SENSITIVE_VALUE_KEYS


def redact_for_log(value: Any, *, max_string: int = 512, max_items: int = 50, _depth: int = 0) -> Any:
    """Return a redacted, size-capped copy of a tree value for debug logs.

    Sensitive keys are masked at any depth.  Mappings and lists longer than
    *max_items* are cut short with a ``"<+N more>"`` marker, since a commit
    logs the whole tree.
    """
    if _depth > 20:
        return "<max-depth>"

    if isinstance(value, str):
        return f"{value[:max_string]}…<truncated>" if len(value) > max_string else value

    if value is None or isinstance(value, (bool, int, float)):
        return value

    def walk(child: Any) -> Any:
        return redact_for_log(child, max_string=max_string, max_items=max_items, _depth=_depth + 1)

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for index, (k, v) in enumerate(value.items()):
            if index == max_items:
                redacted["…"] = f"<+{len(value) - max_items} more>"
                break
            key = str(k)
            redacted[key] = "<redacted>" if _is_sensitive(key) else walk(v)
        return redacted

    if isinstance(value, list):
        items = [walk(v) for v in value[:max_items]]
        if len(value) > max_items:
            items.append(f"<+{len(value) - max_items} more>")
        return items

    return f"<{type(value).__name__}>"


def redact_url(url: str) -> str:
    """Mask sensitive query parameters in *url*."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (key, "<redacted>" if _is_sensitive(key) else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="<>")))
