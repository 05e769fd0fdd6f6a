from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Set

from lean_bridge.config import BridgeConfig, load_bridge_config
from lean_bridge.execution_engine import IntentExecutionEngine
from lean_bridge.publisher import BridgePublisher, TickResult
from lean_bridge.watchlist import WatchlistRefresher

LOG = logging.getLogger("lean_bridge.runtime")


class BridgeRuntime:
    """
    Wires the bridge into a host engine's callbacks.

    The host forwards its own hooks one-to-one:
    ``start`` at initialization, ``process`` every synchronous cycle,
    ``on_data`` for every data slice, ``on_order_event`` for every order
    transition and ``shutdown`` once at exit (forced final flush).
    """

    def __init__(
        self,
        config: BridgeConfig,
        algorithm: Any,
        *,
        brokerage: Any = None,
        orders: Any = None,
        scheduler: Any = None,
    ) -> None:
        self.config = config
        self.algorithm = algorithm
        self.scheduler = scheduler
        self._subscribed: Set[str] = set()
        self.publisher = BridgePublisher.from_config(config, algorithm, brokerage=brokerage, orders=orders)
        self.execution = IntentExecutionEngine(algorithm, config.intent_path or None, subscribe=self.subscribe)
        self.watchlist = WatchlistRefresher(
            config.watchlist_path or None,
            self.subscribe,
            config.watchlist_refresh_seconds,
        )

    def subscribe(self, symbol: str) -> None:
        """Single add_equity path for intents and watchlist; each symbol once per process."""
        if symbol in self._subscribed:
            return
        self.algorithm.add_equity(symbol)
        self._subscribed.add(symbol)

    @classmethod
    def from_environment(cls, algorithm: Any, **kwargs: Any) -> "BridgeRuntime":
        return cls(load_bridge_config(), algorithm, **kwargs)

    def start(self) -> None:
        LOG.info(
            "bridge_start output_dir=%s snapshot_s=%s heartbeat_s=%s intents=%s watchlist=%s",
            self.config.output_dir,
            self.config.snapshot_seconds,
            self.config.heartbeat_seconds,
            self.config.intent_path or "-",
            self.config.watchlist_path or "-",
        )
        self.execution.initialize()
        if self.scheduler is not None:
            self.watchlist.start(self.scheduler)
        elif self.watchlist.enabled:
            self.watchlist.refresh()

    def process(self, now: Optional[datetime] = None, force: bool = False) -> TickResult:
        return self.publisher.process(now, force=force)

    def on_data(self, data: Any = None) -> None:
        self.execution.on_data(data)

    def on_order_event(self, event: Any) -> bool:
        return self.publisher.on_order_event(event)

    def shutdown(self, now: Optional[datetime] = None) -> TickResult:
        return self.publisher.process(now, force=True)


__all__ = ["BridgeRuntime"]
