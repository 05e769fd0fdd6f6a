"""
lean_bridge

Exports live trading engine state to a directory of well-known files and
executes an external order-intent batch exactly once.

Components:
    writer.py            - atomic JSON replace + JSONL append primitives
    account_summary.py   - BASE-first multi-currency account field merge
    snapshots.py         - positions / quotes documents and the shared envelope
    publisher.py         - snapshot + heartbeat cadence, degraded tracking
    events.py            - execution_events.jsonl logger
    execution_engine.py  - one-shot intent execution
    watchlist.py         - monotonically growing watchlist subscriptions
    reader.py / cli.py   - consumer side of the file contract

Output surfaces (under BridgeConfig.output_dir):
    account_summary.json, positions.json, quotes.json  - snapshot period
    lean_bridge_status.json                            - heartbeat period
    execution_events.jsonl                             - per order event
"""
from lean_bridge.account_data import AccountData
from lean_bridge.config import BridgeConfig, load_bridge_config
from lean_bridge.execution_engine import EngineState, IntentExecutionEngine
from lean_bridge.publisher import BridgePublisher, SnapshotResult, TickResult
from lean_bridge.runtime import BridgeRuntime
from lean_bridge.watchlist import WatchlistRefresher
from lean_bridge.writer import BridgeWriteError, BridgeWriter

__all__ = [
    "AccountData",
    "BridgeConfig",
    "BridgePublisher",
    "BridgeRuntime",
    "BridgeWriteError",
    "BridgeWriter",
    "EngineState",
    "IntentExecutionEngine",
    "SnapshotResult",
    "TickResult",
    "WatchlistRefresher",
    "load_bridge_config",
]
