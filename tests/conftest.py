"""
Pytest configuration and shared fixtures for test suite.
"""
from __future__ import annotations

import os
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from lean_bridge.account_data import AccountData
from lean_bridge.models import Holding, Security

T0 = datetime(2024, 1, 2, 14, 30, tzinfo=timezone.utc)


class FakeAlgorithm:
    """Stands in for the host engine: securities universe + order/subscription API."""

    def __init__(self) -> None:
        self.securities: Dict[str, Security] = {}
        self.utc_time: datetime = T0
        self.subscriptions: List[str] = []
        self.market_orders: List[Tuple[str, Decimal, Optional[str]]] = []
        self.target_orders: List[Tuple[str, Decimal, Optional[str]]] = []
        self.calls: List[str] = []

    def add_security(self, symbol: str, **kwargs: Any) -> Security:
        security = Security(symbol=symbol, **kwargs)
        self.securities[symbol] = security
        return security

    def add_equity(self, symbol: str) -> Security:
        self.subscriptions.append(symbol)
        self.calls.append(f"add_equity:{symbol}")
        return self.securities.setdefault(symbol, Security(symbol=symbol))

    def market_order(self, symbol: str, quantity: Decimal, tag: Optional[str] = None) -> str:
        self.market_orders.append((symbol, quantity, tag))
        self.calls.append(f"market_order:{symbol}")
        return f"ticket-{len(self.market_orders) + len(self.target_orders)}"

    def set_holdings(self, symbol: str, weight: Decimal, tag: Optional[str] = None) -> str:
        self.target_orders.append((symbol, weight, tag))
        self.calls.append(f"set_holdings:{symbol}")
        return f"ticket-{len(self.market_orders) + len(self.target_orders)}"


class FakeBrokerage:
    """Brokerage connector exposing account summary + holdings accessors."""

    def __init__(self) -> None:
        self.account_data = AccountData()
        self.holdings: List[Holding] = []

    def get_account_summary_snapshot(self) -> Dict[str, str]:
        return self.account_data.get_account_summary_snapshot()

    def get_account_holdings(self) -> List[Holding]:
        return list(self.holdings)


class FakeScheduler:
    def __init__(self) -> None:
        self.jobs: List[Tuple[float, Any]] = []

    def every(self, seconds: float, callback: Any) -> None:
        self.jobs.append((seconds, callback))

    def run_all(self) -> None:
        for _, callback in self.jobs:
            callback()


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def algorithm() -> FakeAlgorithm:
    return FakeAlgorithm()


@pytest.fixture
def brokerage() -> FakeBrokerage:
    return FakeBrokerage()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def bridge_dir(tmp_path: Path) -> Path:
    return tmp_path / "lean_bridge"


@pytest.fixture(autouse=True, scope="function")
def _reset_bridge_env(monkeypatch):
    """
    Keep LEAN_BRIDGE_* settings from the developer's shell or .env out of tests
    and drop the cached runtime YAML between tests.
    """
    for key in list(os.environ):
        if key.startswith("LEAN_BRIDGE_"):
            monkeypatch.delenv(key, raising=False)
    from lean_bridge import config

    config.load_runtime_config.cache_clear()
    yield
    config.load_runtime_config.cache_clear()
