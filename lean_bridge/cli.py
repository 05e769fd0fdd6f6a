#!/usr/bin/env python3
"""
Inspect a bridge output directory.

    python -m lean_bridge.cli status --max-age 30
    python -m lean_bridge.cli snapshot positions
    python -m lean_bridge.cli events --tail 20
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from lean_bridge.config import load_bridge_config
from lean_bridge.reader import (
    heartbeat_age_seconds,
    is_status_healthy,
    read_execution_events,
    read_snapshot,
    read_status,
)
from lean_bridge.snapshots import ACCOUNT_SUMMARY_FILE, POSITIONS_FILE, QUOTES_FILE

LOG = logging.getLogger("lean_bridge.cli")

SNAPSHOTS = {
    "account_summary": ACCOUNT_SUMMARY_FILE,
    "positions": POSITIONS_FILE,
    "quotes": QUOTES_FILE,
}


def _print(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Read lean_bridge state files")
    parser.add_argument("--dir", dest="output_dir", default=None, help="Bridge output directory (default: config)")
    sub = parser.add_subparsers(dest="command", required=True)

    status = sub.add_parser("status", help="Print the heartbeat document; exit 1 if degraded or stale")
    status.add_argument("--max-age", type=float, default=30.0, help="Max heartbeat age in seconds")

    snapshot = sub.add_parser("snapshot", help="Print one snapshot document")
    snapshot.add_argument("name", choices=sorted(SNAPSHOTS))

    events = sub.add_parser("events", help="Print execution events")
    events.add_argument("--tail", type=int, default=None, help="Only the last N events")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [lean_bridge] %(message)s")
    args = parse_args(argv)
    output_dir = Path(args.output_dir) if args.output_dir else load_bridge_config().output_dir

    if args.command == "status":
        status = read_status(output_dir)
        if status is None:
            LOG.warning("status_missing dir=%s", output_dir)
            return 2
        payload = dict(status)
        payload["heartbeat_age_s"] = heartbeat_age_seconds(status)
        _print(payload)
        return 0 if is_status_healthy(status, max_age_seconds=args.max_age) else 1

    if args.command == "snapshot":
        document = read_snapshot(output_dir, SNAPSHOTS[args.name])
        if document is None:
            LOG.warning("snapshot_missing name=%s dir=%s", args.name, output_dir)
            return 2
        _print(document)
        return 0

    _print(read_execution_events(output_dir, limit=args.tail))
    return 0


if __name__ == "__main__":
    sys.exit(main())
