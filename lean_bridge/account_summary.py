"""
Account summary reconciliation.

The brokerage reports account fields per currency (``USD:NetLiquidation``,
``BASE:NetLiquidation``, ...). Consumers want one number per tag, so each tag
in ``ACCOUNT_SUMMARY_TAGS`` is resolved through ``RESOLVERS`` in order:

1. the ``BASE`` currency entry, when present and non-empty;
2. the first non-empty entry of any currency ending in ``:<tag>``, in the
   snapshot's iteration order.

Resolved values become ``Decimal`` when they are numeric text, otherwise they
are passed through unchanged.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from lean_bridge.models import iso_utc
from lean_bridge.snapshots import snapshot_document

LOG = logging.getLogger("lean_bridge.account_summary")

BASE_CURRENCY = "BASE"
DEFAULT_PROVIDER_NAME = "ib_account"

ACCOUNT_SUMMARY_TAGS: Tuple[str, ...] = (
    "NetLiquidation",
    "TotalCashValue",
    "AvailableFunds",
    "BuyingPower",
    "UnrealizedPnL",
    "TotalHoldingsValue",
    "CashBalance",
    "EquityWithLoanValue",
    "GrossPositionValue",
    "InitMarginReq",
    "MaintMarginReq",
)

_NUMERIC_RE = re.compile(r"^[+-]?(\d{1,3}(,\d{3})+|\d+)?(\.\d+)?([eE][+-]?\d+)?$")

SummaryValue = Union[Decimal, str]
Resolver = Callable[[Mapping[str, str], str], Optional[str]]


def _base_currency_value(snapshot: Mapping[str, str], tag: str) -> Optional[str]:
    value = snapshot.get(f"{BASE_CURRENCY}:{tag}")
    return value if value else None


def _any_currency_value(snapshot: Mapping[str, str], tag: str) -> Optional[str]:
    suffix = f":{tag}"
    for key, value in snapshot.items():
        if str(key).endswith(suffix) and value:
            return value
    return None


RESOLVERS: Sequence[Resolver] = (_base_currency_value, _any_currency_value)


def resolve_value(snapshot: Mapping[str, str], tag: str, resolvers: Sequence[Resolver] = RESOLVERS) -> Optional[str]:
    for resolver in resolvers:
        value = resolver(snapshot, tag)
        if value is not None:
            return value
    return None


def parse_summary_value(value: Any) -> SummaryValue:
    """Decimal for numeric text (thousands separators allowed), else the raw value."""
    text = str(value).strip()
    if not text or not _NUMERIC_RE.match(text) or not any(ch.isdigit() for ch in text):
        return value
    try:
        parsed = Decimal(text.replace(",", ""))
    except InvalidOperation:
        return value
    return parsed if parsed.is_finite() else value


def merge_account_fields(
    snapshot: Mapping[str, str] | None,
    tags: Sequence[str] = ACCOUNT_SUMMARY_TAGS,
) -> Dict[str, SummaryValue]:
    items: Dict[str, SummaryValue] = {}
    if not snapshot:
        return items
    for tag in tags:
        value = resolve_value(snapshot, tag)
        if value is not None:
            items[tag] = parse_summary_value(value)
    return items


def read_account_snapshot(provider: Any) -> Dict[str, str]:
    """
    Best-effort read of ``provider.get_account_summary_snapshot()``.

    A missing provider or one without the accessor yields an empty mapping.
    Errors raised by the accessor itself propagate to the caller.
    """
    if provider is None:
        return {}
    getter = getattr(provider, "get_account_summary_snapshot", None)
    if not callable(getter):
        return {}
    snapshot = getter()
    if not snapshot:
        return {}
    return {str(k): ("" if v is None else str(v)) for k, v in dict(snapshot).items()}


def build_account_summary(
    provider: Any,
    now: datetime,
    *,
    provider_name: str = DEFAULT_PROVIDER_NAME,
) -> Dict[str, Any]:
    items = merge_account_fields(read_account_snapshot(provider))
    if not items:
        LOG.debug("account_summary_empty provider=%s at=%s", provider_name, iso_utc(now))
        return snapshot_document(items, now, source_detail=f"{provider_name}_empty", stale=True)
    return snapshot_document(items, now, source_detail=f"{provider_name}_merge", stale=False)


__all__ = [
    "ACCOUNT_SUMMARY_TAGS",
    "BASE_CURRENCY",
    "RESOLVERS",
    "build_account_summary",
    "merge_account_fields",
    "parse_summary_value",
    "read_account_snapshot",
    "resolve_value",
]
