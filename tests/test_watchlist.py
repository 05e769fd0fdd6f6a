from __future__ import annotations

import json

import pytest

from lean_bridge.watchlist import WatchlistRefresher, load_watchlist_symbols


def _write(path, payload):
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload))
    return path


def test_parses_watchlist_symbols(tmp_path):
    path = _write(tmp_path / "watchlist.json", '{"symbols":["aapl"," MSFT ",""]}')
    assert load_watchlist_symbols(path) == ["AAPL", "MSFT"]


@pytest.mark.parametrize(
    "payload",
    [
        ["msft", "AAPL", "aapl", "  "],
        {"Symbols": ["MSFT", "aapl"]},
        [{"symbol": "msft"}, {"symbol": " aapl"}, {"name": "ignored"}, {"symbol": None}],
    ],
)
def test_supported_shapes(tmp_path, payload):
    assert load_watchlist_symbols(_write(tmp_path / "w.json", payload)) == ["AAPL", "MSFT"]


@pytest.mark.parametrize("payload", ["{not json", '"AAPL"', '{"tickers": ["AAPL"]}', "42"])
def test_malformed_yields_empty(tmp_path, payload):
    assert load_watchlist_symbols(_write(tmp_path / "w.json", payload)) == []


def test_missing_file_yields_empty(tmp_path):
    assert load_watchlist_symbols(tmp_path / "absent.json") == []


def test_subscriptions_only_grow(tmp_path, algorithm):
    path = _write(tmp_path / "w.json", ["AAPL", "MSFT"])
    refresher = WatchlistRefresher(path, algorithm.add_equity)

    assert refresher.refresh() == ["AAPL", "MSFT"]

    _write(path, ["msft", "NVDA"])
    assert refresher.refresh() == ["NVDA"]

    _write(path, "garbage")
    assert refresher.refresh() == []

    assert refresher.subscribed == ["AAPL", "MSFT", "NVDA"]
    assert algorithm.subscriptions == ["AAPL", "MSFT", "NVDA"]


@pytest.mark.parametrize("seconds, expected", [(5, 5.0), (0, 1.0), (-3, 1.0), (0.5, 1.0), (30, 30.0)])
def test_refresh_period_has_one_second_floor(seconds, expected):
    assert WatchlistRefresher("w.json", lambda s: None, seconds).period_seconds == expected


def test_start_refreshes_and_schedules(tmp_path, algorithm, scheduler):
    path = _write(tmp_path / "w.json", ["AAPL"])
    refresher = WatchlistRefresher(path, algorithm.add_equity, refresh_seconds=10)

    assert refresher.start(scheduler) is True
    assert algorithm.subscriptions == ["AAPL"]
    assert [seconds for seconds, _ in scheduler.jobs] == [10.0]

    _write(path, ["AAPL", "SPY"])
    scheduler.run_all()
    assert algorithm.subscriptions == ["AAPL", "SPY"]


def test_subscribe_failure_skips_symbol_until_next_refresh(tmp_path, algorithm):
    path = _write(tmp_path / "w.json", ["AAPL", "BAD", "MSFT"])
    attempts = []

    def subscribe(symbol):
        attempts.append(symbol)
        if symbol == "BAD" and attempts.count("BAD") == 1:
            raise RuntimeError("unknown ticker")
        algorithm.add_equity(symbol)

    refresher = WatchlistRefresher(path, subscribe)

    assert refresher.refresh() == ["AAPL", "MSFT"]
    assert refresher.subscribed == ["AAPL", "MSFT"]

    assert refresher.refresh() == ["BAD"]
    assert algorithm.subscriptions == ["AAPL", "MSFT", "BAD"]


def test_start_without_path_does_nothing(algorithm, scheduler):
    refresher = WatchlistRefresher("", algorithm.add_equity)
    assert refresher.start(scheduler) is False
    assert scheduler.jobs == []
