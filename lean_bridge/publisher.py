"""
Bridge publisher: periodic state snapshots, heartbeat and order event export.

The host engine calls ``BridgePublisher.process()`` on every synchronous
processing cycle and ``on_order_event()`` for every order state transition.
Both are invoked from the host loop only, so no locking is done here.

Files under the output directory:
- account_summary.json / positions.json / quotes.json  (snapshot period)
- lean_bridge_status.json                               (heartbeat period)
- execution_events.jsonl                                (per order event)

Nothing raised while building or writing a document reaches the host: a
failed snapshot is recorded on ``status`` (sticky degraded flag) and simply
retried on the next scheduled tick.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from lean_bridge.account_summary import build_account_summary
from lean_bridge.config import BridgeConfig
from lean_bridge.events import ExecutionEventLogger
from lean_bridge.models import iso_utc, utc_now
from lean_bridge.snapshots import (
    ACCOUNT_SUMMARY_FILE,
    POSITIONS_FILE,
    QUOTES_FILE,
    STATUS_FILE,
    build_positions,
    build_quotes,
)
from lean_bridge.status import BridgeStatus
from lean_bridge.writer import BridgeWriter

LOG = logging.getLogger("lean_bridge.publisher")


@dataclass
class SnapshotResult:
    """Outcome of building and writing one document."""
    name: str
    ok: bool
    error: Optional[str] = None


@dataclass
class TickResult:
    snapshot_due: bool = False
    heartbeat_due: bool = False
    snapshots: List[SnapshotResult] = field(default_factory=list)
    heartbeat: Optional[SnapshotResult] = None

    @property
    def failed(self) -> List[SnapshotResult]:
        return [r for r in self.snapshots if not r.ok]


class BridgePublisher:
    def __init__(
        self,
        writer: BridgeWriter,
        algorithm: Any,
        *,
        brokerage: Any = None,
        orders: Any = None,
        snapshot_seconds: float = 2.0,
        heartbeat_seconds: float = 5.0,
        status: Optional[BridgeStatus] = None,
    ) -> None:
        self.writer = writer
        self.algorithm = algorithm
        self.brokerage = brokerage
        self.snapshot_period = timedelta(seconds=max(0.0, float(snapshot_seconds)))
        self.heartbeat_period = timedelta(seconds=max(0.0, float(heartbeat_seconds)))
        self.status = status or BridgeStatus()
        self.event_logger = ExecutionEventLogger(writer, self.status, orders)
        # None means "due now": the first tick always publishes
        self.next_snapshot_at: Optional[datetime] = None
        self.next_heartbeat_at: Optional[datetime] = None

    @classmethod
    def from_config(
        cls,
        config: BridgeConfig,
        algorithm: Any,
        *,
        brokerage: Any = None,
        orders: Any = None,
    ) -> "BridgePublisher":
        return cls(
            BridgeWriter(config.output_dir),
            algorithm,
            brokerage=brokerage,
            orders=orders,
            snapshot_seconds=config.snapshot_seconds,
            heartbeat_seconds=config.heartbeat_seconds,
        )

    # ------------------------------------------------------------------
    # host entry points
    # ------------------------------------------------------------------

    def process(self, now: Optional[datetime] = None, force: bool = False) -> TickResult:
        """
        One processing cycle. ``force`` bypasses both schedules (final flush at
        shutdown).
        """
        now = now or utc_now()
        result = TickResult()
        if force or self.next_snapshot_at is None or now >= self.next_snapshot_at:
            self.next_snapshot_at = now + self.snapshot_period
            result.snapshot_due = True
            result.snapshots = self.write_snapshots(now)
        if force or self.next_heartbeat_at is None or now >= self.next_heartbeat_at:
            self.next_heartbeat_at = now + self.heartbeat_period
            result.heartbeat_due = True
            result.heartbeat = self.write_status(now)
        return result

    def on_order_event(self, event: Any) -> bool:
        return self.event_logger.on_order_event(event)

    # ------------------------------------------------------------------
    # documents
    # ------------------------------------------------------------------

    def snapshot_steps(self) -> List[Tuple[str, Callable[[datetime], Dict[str, Any]]]]:
        return [
            (ACCOUNT_SUMMARY_FILE, lambda now: build_account_summary(self.brokerage, now)),
            (POSITIONS_FILE, lambda now: build_positions(self.brokerage, self.algorithm, now)),
            (QUOTES_FILE, lambda now: build_quotes(self.algorithm, now)),
        ]

    def _run_step(self, name: str, build: Callable[[datetime], Dict[str, Any]], now: datetime) -> SnapshotResult:
        try:
            self.writer.write_json_atomic(name, build(now))
        except Exception as exc:
            return SnapshotResult(name=name, ok=False, error=str(exc) or exc.__class__.__name__)
        return SnapshotResult(name=name, ok=True)

    def write_snapshots(self, now: datetime) -> List[SnapshotResult]:
        """Build and write every snapshot document; a failure in one never blocks the rest."""
        results = [self._run_step(name, build, now) for name, build in self.snapshot_steps()]
        for result in results:
            if not result.ok:
                self.status.record_error(result.error or "", now)
                LOG.error("snapshot_write_failed name=%s err=%s", result.name, result.error)
        return results

    def write_status(self, now: datetime) -> SnapshotResult:
        try:
            self.writer.write_json_atomic(STATUS_FILE, self.status.to_document(now))
        except Exception as exc:
            LOG.warning("status_write_failed at=%s err=%s", iso_utc(now), exc)
            return SnapshotResult(name=STATUS_FILE, ok=False, error=str(exc))
        return SnapshotResult(name=STATUS_FILE, ok=True)


__all__ = ["BridgePublisher", "SnapshotResult", "TickResult"]
