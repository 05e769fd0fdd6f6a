"""
Snapshot documents built from live engine state.

Every document shares one envelope::

    {"items": ..., "refreshed_at": ISO-UTC, "source": "lean_bridge",
     "source_detail": "<data path>", "stale": bool}

Positions come from the first non-empty entry of ``POSITION_SOURCES``
(brokerage holdings, then the engine's own invested holdings). Quotes cover
every tradable, non-canonical security in the live universe.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple

from lean_bridge.models import iso_utc

SOURCE = "lean_bridge"

ACCOUNT_SUMMARY_FILE = "account_summary.json"
POSITIONS_FILE = "positions.json"
QUOTES_FILE = "quotes.json"
STATUS_FILE = "lean_bridge_status.json"
EXECUTION_EVENTS_FILE = "execution_events.jsonl"

SOURCE_BROKERAGE_HOLDINGS = "ib_holdings"
SOURCE_ALGORITHM_HOLDINGS = "algorithm_holdings"
SOURCE_ALGORITHM_SECURITIES = "algorithm_securities"


def snapshot_document(items: Any, now: datetime, *, source_detail: str, stale: bool = False) -> Dict[str, Any]:
    return {
        "items": items,
        "refreshed_at": iso_utc(now),
        "source": SOURCE,
        "source_detail": source_detail,
        "stale": bool(stale),
    }


def _securities(algorithm: Any) -> Iterable[Any]:
    securities = getattr(algorithm, "securities", None)
    if securities is None:
        return []
    if hasattr(securities, "values"):
        return list(securities.values())
    return list(securities)


def holding_row(holding: Any) -> Dict[str, Any]:
    return {
        "symbol": str(getattr(holding, "symbol", "")),
        "quantity": getattr(holding, "quantity", 0),
        "avg_cost": getattr(holding, "average_price", 0),
        "market_value": getattr(holding, "market_value", 0),
        "unrealized_pnl": getattr(holding, "unrealized_pnl", 0),
        "currency": getattr(holding, "currency", ""),
    }


def brokerage_holdings(brokerage: Any, algorithm: Any) -> List[Any]:
    """Authoritative holdings list from the brokerage, when it exposes one."""
    getter = getattr(brokerage, "get_account_holdings", None)
    if not callable(getter):
        return []
    return list(getter() or [])


def algorithm_holdings(brokerage: Any, algorithm: Any) -> List[Any]:
    """The engine's own computed holdings, invested positions only."""
    holdings: List[Any] = []
    for security in _securities(algorithm):
        holding = getattr(security, "holdings", None)
        if holding is None:
            continue
        if getattr(holding, "quantity", 0) != 0:
            holdings.append(holding)
    return holdings


PositionSource = Callable[[Any, Any], List[Any]]
POSITION_SOURCES: Sequence[Tuple[str, PositionSource]] = (
    (SOURCE_BROKERAGE_HOLDINGS, brokerage_holdings),
    (SOURCE_ALGORITHM_HOLDINGS, algorithm_holdings),
)


def build_positions(
    brokerage: Any,
    algorithm: Any,
    now: datetime,
    sources: Sequence[Tuple[str, PositionSource]] = POSITION_SOURCES,
) -> Dict[str, Any]:
    source_detail = sources[-1][0] if sources else SOURCE_ALGORITHM_HOLDINGS
    rows: List[Dict[str, Any]] = []
    for name, source in sources:
        holdings = source(brokerage, algorithm)
        if holdings:
            source_detail = name
            rows = [holding_row(h) for h in holdings]
            break
    return snapshot_document(rows, now, source_detail=source_detail, stale=False)


def quote_row(security: Any, quote_time: datetime | None) -> Dict[str, Any]:
    return {
        "symbol": str(getattr(security, "symbol", "")),
        "bid": getattr(security, "bid_price", 0),
        "ask": getattr(security, "ask_price", 0),
        "last": getattr(security, "price", 0),
        "timestamp": iso_utc(quote_time),
    }


def build_quotes(algorithm: Any, now: datetime) -> Dict[str, Any]:
    quote_time = getattr(algorithm, "utc_time", None) or now
    rows = [
        quote_row(security, quote_time)
        for security in _securities(algorithm)
        if getattr(security, "is_tradable", True) and not getattr(security, "is_canonical", False)
    ]
    return snapshot_document(rows, now, source_detail=SOURCE_ALGORITHM_SECURITIES, stale=False)


__all__ = [
    "SOURCE",
    "ACCOUNT_SUMMARY_FILE",
    "POSITIONS_FILE",
    "QUOTES_FILE",
    "STATUS_FILE",
    "EXECUTION_EVENTS_FILE",
    "POSITION_SOURCES",
    "snapshot_document",
    "build_positions",
    "build_quotes",
    "holding_row",
    "quote_row",
]
