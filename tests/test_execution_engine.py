from __future__ import annotations

import json
from decimal import Decimal

from lean_bridge.execution_engine import EngineState, IntentExecutionEngine


def _intents(tmp_path, payload):
    path = tmp_path / "intents.json"
    path.write_text(json.dumps(payload))
    return path


def test_subscribes_eagerly_and_executes_once(tmp_path, algorithm):
    path = _intents(
        tmp_path,
        [
            {"order_intent_id": "oi_1", "symbol": "AAPL", "quantity": 1},
            {"order_intent_id": "oi_2", "symbol": "MSFT", "weight": 0.2},
            {"order_intent_id": "oi_3", "symbol": "AAPL", "quantity": -2},
        ],
    )
    engine = IntentExecutionEngine(algorithm, path)

    engine.initialize()

    assert engine.state is EngineState.SUBSCRIBED
    assert algorithm.subscriptions == ["AAPL", "MSFT"]
    assert algorithm.market_orders == [] and algorithm.target_orders == []

    submitted = engine.on_data(object())

    assert engine.state is EngineState.EXECUTED
    assert len(submitted) == 3
    assert algorithm.market_orders == [("AAPL", Decimal("1"), "oi_1"), ("AAPL", Decimal("-2"), "oi_3")]
    assert algorithm.target_orders == [("MSFT", Decimal("0.2"), "oi_2")]
    assert algorithm.calls[-3:] == ["market_order:AAPL", "set_holdings:MSFT", "market_order:AAPL"]


def test_later_data_events_never_resubmit(tmp_path, algorithm):
    engine = IntentExecutionEngine(algorithm, _intents(tmp_path, [{"symbol": "SPY", "quantity": 10}]))
    engine.initialize()

    engine.on_data()
    for _ in range(5):
        assert engine.on_data() is None

    assert algorithm.market_orders == [("SPY", Decimal("10"), None)]


def test_data_before_initialize_is_ignored(tmp_path, algorithm):
    engine = IntentExecutionEngine(algorithm, _intents(tmp_path, [{"symbol": "SPY", "quantity": 10}]))

    assert engine.on_data() is None
    assert engine.state is EngineState.IDLE

    engine.initialize()
    engine.on_data()
    assert algorithm.market_orders == [("SPY", Decimal("10"), None)]


def test_missing_intent_file_leaves_engine_inert(tmp_path, algorithm):
    engine = IntentExecutionEngine(algorithm, tmp_path / "nope.json")

    assert engine.initialize() == []
    assert algorithm.subscriptions == []
    assert engine.on_data() == []
    assert algorithm.market_orders == [] and algorithm.target_orders == []


def test_submission_error_does_not_stop_batch_or_allow_retry(tmp_path, algorithm):
    engine = IntentExecutionEngine(
        algorithm,
        _intents(tmp_path, [{"symbol": "BAD", "quantity": 1}, {"symbol": "GOOD", "quantity": 2}]),
    )
    real_market_order = algorithm.market_order

    def market_order(symbol, quantity, tag=None):
        if symbol == "BAD":
            raise RuntimeError("rejected")
        return real_market_order(symbol, quantity, tag=tag)

    algorithm.market_order = market_order
    engine.initialize()
    engine.on_data()
    engine.on_data()

    assert algorithm.market_orders == [("GOOD", Decimal("2"), None)]
    assert engine.executed


def test_subscription_failure_drops_only_that_symbol(tmp_path, algorithm):
    real_add_equity = algorithm.add_equity

    def add_equity(symbol):
        if symbol == "BAD":
            raise RuntimeError("unknown ticker")
        return real_add_equity(symbol)

    algorithm.add_equity = add_equity
    engine = IntentExecutionEngine(
        algorithm,
        _intents(
            tmp_path,
            [
                {"symbol": "BAD", "quantity": 1},
                {"symbol": "GOOD", "weight": 0.1},
                {"symbol": "BAD", "weight": 0.3},
            ],
        ),
    )

    engine.initialize()

    assert engine.state is EngineState.SUBSCRIBED
    assert engine.subscribed == ["GOOD"]
    assert [r.symbol for r in engine.requests] == ["GOOD"]

    engine.on_data()
    assert algorithm.market_orders == []
    assert algorithm.target_orders == [("GOOD", Decimal("0.1"), None)]


def test_initialize_is_idempotent(tmp_path, algorithm):
    engine = IntentExecutionEngine(algorithm, _intents(tmp_path, [{"symbol": "SPY", "weight": 0.5}]))
    engine.initialize()
    engine.initialize()
    assert algorithm.subscriptions == ["SPY"]
