"""
Read side of the bridge file contract, for dashboards and monitors.

Snapshot and status files are replaced atomically, so a read sees one complete
document or nothing. ``execution_events.jsonl`` is appended in place and may be
read mid-write: an incomplete trailing line is skipped rather than raised.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from lean_bridge.snapshots import EXECUTION_EVENTS_FILE, STATUS_FILE
from lean_bridge.status import STATUS_OK


def read_snapshot(output_dir: str | Path, name: str) -> Optional[Dict[str, Any]]:
    path = Path(output_dir) / name
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def read_status(output_dir: str | Path) -> Optional[Dict[str, Any]]:
    return read_snapshot(output_dir, STATUS_FILE)


def read_execution_events(output_dir: str | Path, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    path = Path(output_dir) / EXECUTION_EVENTS_FILE
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return []
    lines = text.split("\n")
    if not text.endswith("\n"):
        # writer still mid-line
        lines = lines[:-1]
    records: List[Dict[str, Any]] = []
    for line in lines:
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except ValueError:
            continue
        if isinstance(record, dict):
            records.append(record)
    if limit is not None and limit >= 0:
        records = records[-limit:] if limit else []
    return records


def _parse_ts(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def heartbeat_age_seconds(status: Mapping[str, Any] | None, now: Optional[datetime] = None) -> Optional[float]:
    if not status:
        return None
    beat = _parse_ts(status.get("last_heartbeat"))
    if beat is None:
        return None
    now = now or datetime.now(timezone.utc)
    return (now - beat).total_seconds()


def is_status_healthy(
    status: Mapping[str, Any] | None,
    now: Optional[datetime] = None,
    max_age_seconds: float = 30.0,
) -> bool:
    """ok status with a heartbeat no older than ``max_age_seconds``."""
    if not status or status.get("status") != STATUS_OK:
        return False
    age = heartbeat_age_seconds(status, now)
    return age is not None and age <= max_age_seconds


__all__ = [
    "read_snapshot",
    "read_status",
    "read_execution_events",
    "heartbeat_age_seconds",
    "is_status_healthy",
]
