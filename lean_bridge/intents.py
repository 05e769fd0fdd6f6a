"""
Order intent file parsing.

The intent file is a JSON array of objects::

    [{"order_intent_id": "oi_1_1", "symbol": "AAPL", "quantity": 1},
     {"order_intent_id": "oi_1_2", "symbol": "MSFT", "weight": 0.2}]

A missing, unreadable or malformed file yields no items. Individual entries
with the wrong shape (not an object, non-string symbol, non-numeric
quantity/weight) are dropped on their own; the rest of the batch survives.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Iterable, List, Optional

from lean_bridge.models import ExecutionRequest, IntentItem

LOG = logging.getLogger("lean_bridge.intents")

_ZERO = Decimal("0")


def _to_decimal(value: Any) -> Decimal:
    """0 for absent/null, ValueError for anything that is not a finite number."""
    if value is None:
        return _ZERO
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, (int, float, Decimal)):
        parsed = Decimal(str(value))
    elif isinstance(value, str) and value.strip():
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"not a number: {value!r}") from exc
    else:
        raise ValueError(f"not a number: {value!r}")
    if not parsed.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return parsed


def parse_intent_item(entry: Any) -> Optional[IntentItem]:
    if not isinstance(entry, dict):
        return None
    symbol = entry.get("symbol")
    if symbol is not None and not isinstance(symbol, str):
        return None
    try:
        quantity = _to_decimal(entry.get("quantity"))
        weight = _to_decimal(entry.get("weight"))
    except ValueError as exc:
        LOG.warning("intent_item_dropped symbol=%s err=%s", symbol, exc)
        return None
    intent_id = entry.get("order_intent_id")
    return IntentItem(
        symbol=symbol,
        quantity=quantity,
        weight=weight,
        order_intent_id=None if intent_id is None else str(intent_id),
    )


def load_intent_items(path: str | Path | None) -> List[IntentItem]:
    if path is None or not str(path).strip():
        return []
    intent_path = Path(path)
    if not intent_path.is_file():
        return []
    try:
        with intent_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, ValueError) as exc:
        LOG.warning("intent_file_unreadable path=%s err=%s", intent_path, exc)
        return []
    if not isinstance(payload, list):
        LOG.warning("intent_file_not_array path=%s", intent_path)
        return []
    items: List[IntentItem] = []
    for entry in payload:
        item = parse_intent_item(entry)
        if item is not None:
            items.append(item)
    return items


def build_request(item: IntentItem) -> Optional[ExecutionRequest]:
    """Non-zero quantity beats non-zero weight; neither means no request."""
    symbol = (item.symbol or "").strip().upper()
    if not symbol:
        return None
    if item.quantity != 0:
        return ExecutionRequest(
            symbol=symbol,
            quantity=item.quantity,
            weight=_ZERO,
            use_quantity=True,
            order_intent_id=item.order_intent_id,
        )
    if item.weight != 0:
        return ExecutionRequest(
            symbol=symbol,
            quantity=_ZERO,
            weight=item.weight,
            use_quantity=False,
            order_intent_id=item.order_intent_id,
        )
    return None


def build_requests(items: Iterable[IntentItem]) -> List[ExecutionRequest]:
    requests: List[ExecutionRequest] = []
    for item in items:
        request = build_request(item)
        if request is not None:
            requests.append(request)
    return requests


__all__ = ["load_intent_items", "parse_intent_item", "build_request", "build_requests"]
