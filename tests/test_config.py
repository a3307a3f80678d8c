from __future__ import annotations

import pytest

from treemirror.config import TreeMirrorConfig
from treemirror.exceptions import TreeMirrorConfigError

_URL = "https://example-default-rtdb.firebaseio.com"


def test_defaults_and_normalized_url() -> None:
    config = TreeMirrorConfig(database_url=f"  {_URL}/ ")

    assert config.database_url == _URL
    assert config.root_url == f"{_URL}/.json"
    assert config.request_params() == {}
    assert config.live_sync_enabled is True
    assert config.resync_max_retries == 0


def test_credential_sent_under_configured_param() -> None:
    config = TreeMirrorConfig(database_url=_URL, credential="tok", credential_param="auth")
    assert config.request_params() == {"auth": "tok"}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"database_url": "ftp://example.com"},
        {"database_url": ""},
        {"database_url": _URL, "request_timeout": 0},
        {"database_url": _URL, "stream_read_timeout": -1},
        {"database_url": _URL, "resync_max_retries": -1},
        {"database_url": _URL, "resync_backoff_initial": 5.0, "resync_backoff_max": 1.0},
        {"database_url": _URL, "credential_param": " "},
    ],
)
def test_invalid_values_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(TreeMirrorConfigError):
        TreeMirrorConfig(**kwargs)  # type: ignore[arg-type]


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TREEMIRROR_DATABASE_URL", _URL)
    monkeypatch.setenv("TREEMIRROR_CREDENTIAL", "tok")
    monkeypatch.setenv("TREEMIRROR_REQUEST_TIMEOUT", "12.5")
    monkeypatch.setenv("TREEMIRROR_RESYNC_MAX_RETRIES", "3")
    monkeypatch.setenv("TREEMIRROR_LIVE_SYNC_ENABLED", "off")

    config = TreeMirrorConfig.from_env()

    assert config.credential == "tok"
    assert config.request_timeout == 12.5
    assert config.resync_max_retries == 3
    assert config.live_sync_enabled is False


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TREEMIRROR_DATABASE_URL", _URL)
    monkeypatch.setenv("TREEMIRROR_RESYNC_MAX_RETRIES", "3")

    config = TreeMirrorConfig.from_env(resync_max_retries=1, live_sync_enabled=False)

    assert config.resync_max_retries == 1
    assert config.live_sync_enabled is False


def test_from_env_requires_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TREEMIRROR_DATABASE_URL", raising=False)
    with pytest.raises(TreeMirrorConfigError, match="TREEMIRROR_DATABASE_URL"):
        TreeMirrorConfig.from_env()


def test_from_env_bad_number(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TREEMIRROR_DATABASE_URL", _URL)
    monkeypatch.setenv("TREEMIRROR_REQUEST_TIMEOUT", "soon")
    with pytest.raises(TreeMirrorConfigError, match="TREEMIRROR_REQUEST_TIMEOUT"):
        TreeMirrorConfig.from_env()
