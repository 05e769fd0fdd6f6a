from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

LOG = logging.getLogger("lean_bridge.config")

ROOT_DIR = Path(__file__).resolve().parents[1]
load_dotenv(ROOT_DIR / ".env", override=False)

_DEFAULT_PATH = Path(os.getenv("LEAN_BRIDGE_CONFIG") or "config/lean_bridge.yaml")

DEFAULT_OUTPUT_DIR = Path("data") / "lean_bridge"
DEFAULT_SNAPSHOT_SECONDS = 2.0
DEFAULT_HEARTBEAT_SECONDS = 5.0
DEFAULT_WATCHLIST_REFRESH_SECONDS = 5.0
MIN_WATCHLIST_REFRESH_SECONDS = 1.0

_ENV_KEYS = {
    "output_dir": "LEAN_BRIDGE_OUTPUT_DIR",
    "snapshot_seconds": "LEAN_BRIDGE_SNAPSHOT_SECONDS",
    "heartbeat_seconds": "LEAN_BRIDGE_HEARTBEAT_SECONDS",
    "intent_path": "LEAN_BRIDGE_INTENT_PATH",
    "watchlist_path": "LEAN_BRIDGE_WATCHLIST_PATH",
    "watchlist_refresh_seconds": "LEAN_BRIDGE_WATCHLIST_REFRESH_SECONDS",
}


@lru_cache(maxsize=1)
def load_runtime_config(path: Path | str | None = None) -> Dict[str, Any]:
    """
    Load lean_bridge.yaml once per process.

    Returns {} on any read/parse error so a missing or broken file never stops
    the host from starting; every setting has a default.
    """
    cfg_path = Path(path) if path is not None else _DEFAULT_PATH
    if not cfg_path.exists():
        return {}
    try:
        with cfg_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        return data if isinstance(data, dict) else {}
    except Exception as exc:
        LOG.warning("runtime_config_unreadable path=%s err=%s", cfg_path, exc)
        return {}


@dataclass(frozen=True)
class BridgeConfig:
    """Configuration surface of the bridge."""
    output_dir: Path = field(default_factory=lambda: DEFAULT_OUTPUT_DIR)
    snapshot_seconds: float = DEFAULT_SNAPSHOT_SECONDS
    heartbeat_seconds: float = DEFAULT_HEARTBEAT_SECONDS
    intent_path: str = ""
    watchlist_path: str = ""
    watchlist_refresh_seconds: float = DEFAULT_WATCHLIST_REFRESH_SECONDS


def _seconds(name: str, raw: Any, default: float, minimum: float = 0.0) -> float:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        LOG.warning("config_invalid_seconds key=%s value=%r default=%s", name, raw, default)
        return default
    return max(minimum, value)


def _text(raw: Any) -> str:
    return "" if raw is None else str(raw).strip()


def load_bridge_config(
    cfg: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> BridgeConfig:
    """
    Resolve the bridge configuration.

    Precedence: environment (LEAN_BRIDGE_*) > ``lean_bridge`` section of the
    runtime YAML > defaults.
    """
    if cfg is None:
        cfg = load_runtime_config()
    env = os.environ if env is None else env
    section = cfg.get("lean_bridge", {}) or {}
    if not isinstance(section, Mapping):
        section = {}

    raw: Dict[str, Any] = dict(section)
    for key, env_name in _ENV_KEYS.items():
        value = env.get(env_name)
        if value is not None and str(value).strip():
            raw[key] = value

    output_dir = _text(raw.get("output_dir"))
    return BridgeConfig(
        output_dir=Path(output_dir) if output_dir else DEFAULT_OUTPUT_DIR,
        snapshot_seconds=_seconds("snapshot_seconds", raw.get("snapshot_seconds"), DEFAULT_SNAPSHOT_SECONDS),
        heartbeat_seconds=_seconds("heartbeat_seconds", raw.get("heartbeat_seconds"), DEFAULT_HEARTBEAT_SECONDS),
        intent_path=_text(raw.get("intent_path")),
        watchlist_path=_text(raw.get("watchlist_path")),
        watchlist_refresh_seconds=_seconds(
            "watchlist_refresh_seconds",
            raw.get("watchlist_refresh_seconds"),
            DEFAULT_WATCHLIST_REFRESH_SECONDS,
            minimum=MIN_WATCHLIST_REFRESH_SECONDS,
        ),
    )


__all__ = ["BridgeConfig", "load_bridge_config", "load_runtime_config"]
