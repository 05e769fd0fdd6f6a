from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from lean_bridge.models import iso_utc
from lean_bridge.snapshots import SOURCE

STATUS_OK = "ok"
STATUS_DEGRADED = "degraded"


@dataclass
class BridgeStatus:
    """
    Degraded-state tracker for one bridge instance.

    ``degraded`` is sticky: once any build or write step fails it stays set for
    the rest of the process, so a file that was already left stale is never
    hidden by a later successful tick.
    """
    degraded: bool = False
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None

    def record_error(self, message: str, at: datetime) -> None:
        self.last_error = message
        self.last_error_at = at
        self.degraded = True

    @property
    def status(self) -> str:
        return STATUS_DEGRADED if self.degraded else STATUS_OK

    def to_document(self, now: datetime) -> Dict[str, Any]:
        return {
            "status": self.status,
            "last_heartbeat": iso_utc(now),
            "last_error": self.last_error or "",
            "last_error_at": iso_utc(self.last_error_at),
            "source": SOURCE,
            "stale": False,
        }


__all__ = ["BridgeStatus", "STATUS_OK", "STATUS_DEGRADED"]
