"""
Watchlist-driven subscriptions.

Accepted file shapes::

    ["AAPL", "msft"]
    {"symbols": ["AAPL", "msft"]}
    [{"symbol": "AAPL"}, {"symbol": "msft"}]

Symbols are trimmed and upper-cased, blanks dropped, duplicates removed and the
result sorted. The subscribed set only ever grows: a symbol that disappears
from a later read stays subscribed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, List, Set

from lean_bridge.config import DEFAULT_WATCHLIST_REFRESH_SECONDS, MIN_WATCHLIST_REFRESH_SECONDS

LOG = logging.getLogger("lean_bridge.watchlist")


def _entry_symbol(entry: Any) -> str:
    if isinstance(entry, dict):
        entry = entry.get("symbol")
    if not isinstance(entry, str):
        return ""
    return entry.strip().upper()


def normalize_symbols(entries: Any) -> List[str]:
    if isinstance(entries, dict):
        entries = entries.get("symbols", entries.get("Symbols"))
    if not isinstance(entries, list):
        return []
    symbols: Set[str] = set()
    for entry in entries:
        symbol = _entry_symbol(entry)
        if symbol:
            symbols.add(symbol)
    return sorted(symbols)


def load_watchlist_symbols(path: str | Path | None) -> List[str]:
    if path is None or not str(path).strip():
        return []
    watchlist_path = Path(path)
    if not watchlist_path.is_file():
        return []
    try:
        with watchlist_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, ValueError) as exc:
        LOG.debug("watchlist_unreadable path=%s err=%s", watchlist_path, exc)
        return []
    return normalize_symbols(payload)


class WatchlistRefresher:
    """Subscribes every symbol the first time it shows up in the watchlist file."""

    def __init__(
        self,
        path: str | Path | None,
        subscribe: Callable[[str], Any],
        refresh_seconds: float = DEFAULT_WATCHLIST_REFRESH_SECONDS,
    ) -> None:
        self.path = path
        self.subscribe = subscribe
        self.period_seconds = max(MIN_WATCHLIST_REFRESH_SECONDS, float(refresh_seconds))
        self._subscribed: Set[str] = set()

    @property
    def subscribed(self) -> List[str]:
        return sorted(self._subscribed)

    @property
    def enabled(self) -> bool:
        return self.path is not None and bool(str(self.path).strip())

    def refresh(self) -> List[str]:
        """Subscribe symbols seen for the first time; returns them in order."""
        added: List[str] = []
        for symbol in load_watchlist_symbols(self.path):
            if symbol in self._subscribed:
                continue
            try:
                self.subscribe(symbol)
            except Exception as exc:
                # left out of the set so the next refresh tries it again
                LOG.warning("watchlist_subscribe_failed symbol=%s err=%s", symbol, exc)
                continue
            self._subscribed.add(symbol)
            added.append(symbol)
        if added:
            LOG.info("watchlist_subscribed added=%s total=%d", ",".join(added), len(self._subscribed))
        return added

    def start(self, scheduler: Any) -> bool:
        """
        Refresh once, then hand ``refresh`` to the host's "run every T"
        primitive (``scheduler.every(seconds, callback)``).
        """
        if not self.enabled:
            return False
        self.refresh()
        scheduler.every(self.period_seconds, self.refresh)
        return True


__all__ = ["WatchlistRefresher", "load_watchlist_symbols", "normalize_symbols"]
