"""
Plain records exchanged between the host engine and the bridge.

The engine hands these (or duck-typed objects with the same attributes) to the
snapshot builders and the execution event logger. Nothing here touches disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def iso_utc(value: Optional[datetime]) -> str:
    """ISO-8601 string in UTC; naive datetimes are taken to be UTC already."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def enum_name(value: Any) -> str:
    """Display name of an enum member ("Filled", "Buy"), or str() of anything else."""
    if isinstance(value, Enum):
        return value.value if isinstance(value.value, str) else value.name
    return "" if value is None else str(value)


@dataclass
class Holding:
    """One position as reported by the brokerage or computed by the engine."""
    symbol: str
    quantity: Decimal = Decimal("0")
    average_price: Decimal = Decimal("0")
    market_value: Decimal = Decimal("0")
    unrealized_pnl: Decimal = Decimal("0")
    currency: str = "USD"

    @property
    def invested(self) -> bool:
        return self.quantity != 0


@dataclass
class Security:
    """Live view of one instrument in the engine's security universe."""
    symbol: str
    bid_price: Decimal = Decimal("0")
    ask_price: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    is_tradable: bool = True
    # canonical/aggregate symbols (option chains, futures roots) never carry a quote
    is_canonical: bool = False
    holdings: Optional[Holding] = None


class OrderDirection(str, Enum):
    BUY = "Buy"
    SELL = "Sell"
    HOLD = "Hold"


class OrderStatus(str, Enum):
    NEW = "New"
    SUBMITTED = "Submitted"
    PARTIALLY_FILLED = "PartiallyFilled"
    FILLED = "Filled"
    CANCELED = "Canceled"
    NONE = "None"
    INVALID = "Invalid"
    CANCEL_PENDING = "CancelPending"
    UPDATE_SUBMITTED = "UpdateSubmitted"


@dataclass
class OrderEvent:
    """A single order state transition reported by the engine."""
    order_id: int
    symbol: str
    status: Any = OrderStatus.NEW
    fill_quantity: Decimal = Decimal("0")
    fill_price: Decimal = Decimal("0")
    direction: Any = OrderDirection.HOLD
    utc_time: datetime = field(default_factory=utc_now)


@dataclass
class IntentItem:
    """One externally supplied desired position."""
    symbol: Optional[str]
    quantity: Decimal = Decimal("0")
    weight: Decimal = Decimal("0")
    order_intent_id: Optional[str] = None


@dataclass(frozen=True)
class ExecutionRequest:
    """
    A single order to submit.

    use_quantity=True targets an exact share/contract count (weight is 0);
    otherwise the request targets a portfolio allocation fraction (quantity is 0).
    """
    symbol: str
    quantity: Decimal
    weight: Decimal
    use_quantity: bool
    order_intent_id: Optional[str] = None


__all__ = [
    "utc_now",
    "iso_utc",
    "enum_name",
    "Holding",
    "Security",
    "OrderDirection",
    "OrderStatus",
    "OrderEvent",
    "IntentItem",
    "ExecutionRequest",
]
