from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional

from lean_bridge.models import enum_name, iso_utc, utc_now
from lean_bridge.snapshots import EXECUTION_EVENTS_FILE
from lean_bridge.status import BridgeStatus
from lean_bridge.writer import BridgeWriter

__all__ = ["ExecutionEventLogger", "build_execution_record", "resolve_order_tag"]


_LOG = logging.getLogger("lean_bridge.events")


def resolve_order_tag(orders: Any, order_id: Any) -> Optional[str]:
    """
    Best-effort lookup of the free-form tag of the order behind an event.

    ``orders`` is either a mapping of order id -> order or an object exposing
    ``get_order(order_id)``. Any miss returns None.
    """
    if orders is None:
        return None
    try:
        if hasattr(orders, "get_order"):
            order = orders.get_order(order_id)
        else:
            order = orders.get(order_id)
    except Exception as exc:
        _LOG.debug("order_tag_lookup_failed order_id=%s err=%s", order_id, exc)
        return None
    if order is None:
        return None
    tag = getattr(order, "tag", None)
    if tag is None and isinstance(order, dict):
        tag = order.get("tag")
    return str(tag) if tag else None


def build_execution_record(event: Any, tag: Optional[str] = None) -> MutableMapping[str, Any]:
    symbol = getattr(event, "symbol", None)
    record: MutableMapping[str, Any] = {
        "order_id": getattr(event, "order_id", None),
        "symbol": None if symbol is None else str(symbol),
        "status": enum_name(getattr(event, "status", None)),
        "filled": getattr(event, "fill_quantity", 0),
        "fill_price": getattr(event, "fill_price", 0),
        "direction": enum_name(getattr(event, "direction", None)),
        "time": iso_utc(getattr(event, "utc_time", None) or utc_now()),
    }
    if tag:
        record["tag"] = tag
    return record


class ExecutionEventLogger:
    """Appends one ``execution_events.jsonl`` record per order state transition."""

    def __init__(self, writer: BridgeWriter, status: BridgeStatus, orders: Any = None) -> None:
        self.writer = writer
        self.status = status
        self.orders = orders

    def on_order_event(self, event: Any) -> bool:
        """Never raises; a failed append marks the bridge degraded."""
        try:
            tag = resolve_order_tag(self.orders, getattr(event, "order_id", None))
            self.writer.append_json_line(EXECUTION_EVENTS_FILE, build_execution_record(event, tag))
        except Exception as exc:
            self.status.record_error(str(exc), utc_now())
            _LOG.warning("execution_event_write_failed order_id=%s err=%s", getattr(event, "order_id", None), exc)
            return False
        return True
