"""
One-shot intent execution.

Lifecycle: IDLE -> LOADED -> SUBSCRIBED -> EXECUTED (terminal).

``initialize()`` reads the intent file, builds requests and subscribes every
requested symbol up front. The first ``on_data()`` afterwards submits the whole
batch in parse order; every later call is ignored for the rest of the process.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Set

from lean_bridge.intents import build_requests, load_intent_items
from lean_bridge.models import ExecutionRequest

LOG = logging.getLogger("lean_bridge.execution_engine")


class EngineState(str, Enum):
    IDLE = "idle"
    LOADED = "loaded"
    SUBSCRIBED = "subscribed"
    EXECUTED = "executed"


class IntentExecutionEngine:
    """
    Drives ``algorithm`` (the host trading API) from an intent file.

    ``algorithm`` must expose ``add_equity(symbol)`` (or pass ``subscribe``),
    ``market_order(symbol, quantity, tag=...)`` and
    ``set_holdings(symbol, weight, tag=...)``.
    """

    def __init__(
        self,
        algorithm: Any,
        intent_path: str | Path | None,
        subscribe: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self.algorithm = algorithm
        self.subscribe = subscribe or algorithm.add_equity
        self.intent_path = intent_path
        self.state = EngineState.IDLE
        self.requests: List[ExecutionRequest] = []
        self.subscribed: List[str] = []
        self.submitted: List[Any] = []

    @property
    def executed(self) -> bool:
        return self.state is EngineState.EXECUTED

    def initialize(self) -> List[ExecutionRequest]:
        if self.state is not EngineState.IDLE:
            return self.requests
        items = load_intent_items(self.intent_path)
        self.requests = build_requests(items)
        self.state = EngineState.LOADED
        LOG.info("intents_loaded path=%s items=%d requests=%d", self.intent_path, len(items), len(self.requests))
        self._subscribe()
        return self.requests

    def _subscribe(self) -> None:
        failed: Set[str] = set()
        for request in self.requests:
            if request.symbol in self.subscribed or request.symbol in failed:
                continue
            try:
                self.subscribe(request.symbol)
            except Exception as exc:
                LOG.error("intent_subscribe_failed symbol=%s err=%s", request.symbol, exc)
                failed.add(request.symbol)
                continue
            self.subscribed.append(request.symbol)
        if failed:
            self.requests = [r for r in self.requests if r.symbol not in failed]
        self.state = EngineState.SUBSCRIBED

    def on_data(self, data: Any = None) -> Optional[List[Any]]:
        """Submit the batch on the first data event; None once executed."""
        if self.state is not EngineState.SUBSCRIBED:
            return None
        # flip first: a submission error must never lead to a second batch
        self.state = EngineState.EXECUTED
        for request in self.requests:
            try:
                self.submitted.append(self._submit(request))
            except Exception as exc:
                LOG.error(
                    "intent_submit_failed symbol=%s intent_id=%s err=%s",
                    request.symbol,
                    request.order_intent_id,
                    exc,
                )
        LOG.info("intents_executed requests=%d submitted=%d", len(self.requests), len(self.submitted))
        return self.submitted

    def _submit(self, request: ExecutionRequest) -> Any:
        if request.use_quantity:
            return self.algorithm.market_order(request.symbol, request.quantity, tag=request.order_intent_id)
        return self.algorithm.set_holdings(request.symbol, request.weight, tag=request.order_intent_id)


__all__ = ["EngineState", "IntentExecutionEngine"]
