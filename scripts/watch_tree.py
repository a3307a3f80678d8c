#!/usr/bin/env python3
"""Passive live sync watcher.

Opens a store, keeps the change subscription running and prints a line for
every re-synchronisation: generation, top-level key counts and which
top-level keys changed since the previous snapshot.  Use it to see how often
the remote emits changes and whether the subscription survives.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from treemirror import ListenerState, SyncFailureError, TreeMirrorConfig, TreeMirrorStore  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Log every live re-synchronisation of the remote tree.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=None,
        help="Override resync_max_retries for this run.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _changed_keys(before: dict[str, Any], after: dict[str, Any]) -> list[str]:
    keys = set(before) | set(after)
    return sorted(key for key in keys if before.get(key) != after.get(key))


async def _watch(config: TreeMirrorConfig, duration: int) -> int:
    previous: dict[str, Any] = {}
    started_at = time.monotonic()

    def on_resync(tree: dict[str, Any]) -> None:
        nonlocal previous
        changed = _changed_keys(previous, tree)
        counts = ", ".join(f"{key}={len(value) if isinstance(value, dict) else 1}" for key, value in sorted(tree.items()))
        print(f"[watch] t+{time.monotonic() - started_at:7.1f}s changed={changed or '-'} {counts}")
        previous = tree

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)

    async with TreeMirrorStore(config, on_resync=on_resync) as store:
        previous = store.snapshot()
        print(f"[watch] loaded {len(previous)} top-level keys")
        while not stop.is_set():
            if store.sync_state is ListenerState.FAILED:
                print("[watch] live sync failed; mirror is stale", file=sys.stderr)
                return 1
            if duration and time.monotonic() - started_at >= duration:
                break
            try:
                await asyncio.wait_for(stop.wait(), timeout=1.0)
            except TimeoutError:
                pass
        print(f"[watch] stopped at generation {store.generation}")
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.retries is not None:
        overrides["resync_max_retries"] = args.retries
    config = TreeMirrorConfig.from_env(**overrides)

    try:
        return asyncio.run(_watch(config, args.duration))
    except SyncFailureError as exc:  # pragma: no cover - network interaction
        print(f"[watch] Load failed: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(_main())
