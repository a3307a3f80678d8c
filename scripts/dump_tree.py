#!/usr/bin/env python3
"""Dump the remote tree as treemirror sees it.

Loads the tree once (no live sync) and prints it, or one sub-path of it,
as JSON.  Useful to check credentials and to inspect data while developing
request handlers.

Usage
-----
Set environment variables and run::

    export TREEMIRROR_DATABASE_URL="https://example-default-rtdb.firebaseio.com"
    export TREEMIRROR_CREDENTIAL="<access token>"
    python scripts/dump_tree.py --path Users

Options::

    --path A/B          Only print the node at this slash-separated path
    --keys              Print the keys of the node instead of its value
    --output FILE       Write output to FILE instead of stdout
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from treemirror import SyncFailureError, TreeMirrorConfig, TreeMirrorStore  # noqa: E402


async def main() -> int:
    parser = argparse.ArgumentParser(
        description="Dump the remote tree (or a sub-path) as JSON.",
    )
    parser.add_argument("--path", default="", help="Slash-separated path of the node to print")
    parser.add_argument("--keys", action="store_true", help="Print the node's keys only")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = TreeMirrorConfig.from_env(live_sync_enabled=False)
    try:
        async with TreeMirrorStore(config) as store:
            node = store.keys(args.path) if args.keys else store.peek(args.path)
    except SyncFailureError as exc:
        print(f"Load failed: {exc}", file=sys.stderr)
        return 2

    payload = json.dumps(node, indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        print(f"JSON written to {args.output}", file=sys.stderr)
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
