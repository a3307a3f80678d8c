from __future__ import annotations

from typing import Any

import pytest
from fake_backend import FakeTreeBackend

from treemirror.exceptions import SyncFailureError
from treemirror.gateway import CommitGateway
from treemirror.mirror import TreeMirror


@pytest.mark.asyncio
async def test_load_populates_mirror_and_returns_copy() -> None:
    backend = FakeTreeBackend(tree={"Users": {"U1": {"points": 3}}})
    mirror = TreeMirror()
    gateway = CommitGateway(backend, mirror)

    tree = await gateway.load()
    tree["Users"]["U1"]["points"] = 0

    assert mirror.peek(["Users", "U1", "points"]) == 3
    assert mirror.generation == 1


@pytest.mark.asyncio
async def test_load_of_empty_remote_gives_empty_tree() -> None:
    gateway = CommitGateway(FakeTreeBackend(), TreeMirror({"leftover": 1}))
    assert await gateway.load() == {}


@pytest.mark.asyncio
async def test_load_failure_raises_sync_failure() -> None:
    backend = FakeTreeBackend(fetch_error=SyncFailureError("HTTP 503", status_code=503))
    mirror = TreeMirror({"kept": True})

    with pytest.raises(SyncFailureError):
        await CommitGateway(backend, mirror).load()
    assert mirror.peek(["kept"]) is True


@pytest.mark.asyncio
async def test_save_batches_all_mutations_into_one_update() -> None:
    backend = FakeTreeBackend(tree={"Settings": {"theme": "dark"}})
    mirror = TreeMirror()
    gateway = CommitGateway(backend, mirror)
    await gateway.load()
    mirror.destroy(["Settings"])

    mirror.set(["Users", "U1"], {"email": "u1@example.com", "points": 0})
    mirror.set(["Barcodes", "B2"], {"totalCount": 9})
    assert await gateway.save() is True

    assert backend.calls["update_root"] == 1
    assert set(backend.updates[0]) == {"Users", "Barcodes"}
    # Shallow merge: remote top-level keys missing locally survive.
    assert backend.tree["Settings"] == {"theme": "dark"}
    assert backend.tree["Barcodes"] == {"B2": {"totalCount": 9}}


@pytest.mark.asyncio
async def test_save_replaces_whole_top_level_key_upstream() -> None:
    backend = FakeTreeBackend(tree={"Users": {"U1": {"points": 1}, "U2": {"points": 2}}})
    mirror = TreeMirror()
    gateway = CommitGateway(backend, mirror)
    await gateway.load()

    mirror.destroy(["Users", "U2"])
    await gateway.save()

    assert backend.tree == {"Users": {"U1": {"points": 1}}}


@pytest.mark.asyncio
async def test_save_after_array_delete_keeps_upstream_indices() -> None:
    backend = FakeTreeBackend(tree={"Queue": ["first", "second", "third"]})
    mirror = TreeMirror()
    gateway = CommitGateway(backend, mirror)
    await gateway.load()

    mirror.destroy(["Queue", 0])
    await gateway.save()

    assert backend.updates == [{"Queue": [None, "second", "third"]}]
    assert mirror.peek(["Queue", "2"]) == "third"


@pytest.mark.asyncio
async def test_save_failure_raises_and_skips_commit_callback() -> None:
    committed: list[dict[str, Any]] = []
    backend = FakeTreeBackend(update_error=SyncFailureError("HTTP 500", status_code=500))
    gateway = CommitGateway(backend, TreeMirror({"a": 1}), on_commit=committed.append)

    with pytest.raises(SyncFailureError) as excinfo:
        await gateway.save()

    assert excinfo.value.status_code == 500
    assert committed == []


@pytest.mark.asyncio
async def test_commit_callback_receives_committed_tree() -> None:
    committed: list[dict[str, Any]] = []
    mirror = TreeMirror()
    gateway = CommitGateway(FakeTreeBackend(), mirror, on_commit=committed.append)
    mirror.set(["Barcodes", "B1"], {"totalCount": 1})

    await gateway.save()

    assert committed == [{"Barcodes": {"B1": {"totalCount": 1}}}]


@pytest.mark.asyncio
async def test_failing_commit_callback_does_not_fail_save() -> None:
    def broken(_tree: dict[str, Any]) -> None:
        raise RuntimeError("broadcast failed")

    gateway = CommitGateway(FakeTreeBackend(), TreeMirror({"a": 1}), on_commit=broken)
    assert await gateway.save() is True
