from __future__ import annotations

from pathlib import Path

import pytest

from lean_bridge.config import BridgeConfig, load_bridge_config, load_runtime_config


def test_defaults_without_any_configuration():
    cfg = load_bridge_config({}, env={})
    assert cfg == BridgeConfig()
    assert cfg.output_dir == Path("data") / "lean_bridge"
    assert cfg.snapshot_seconds == 2.0
    assert cfg.heartbeat_seconds == 5.0
    assert cfg.watchlist_refresh_seconds == 5.0
    assert cfg.intent_path == "" and cfg.watchlist_path == ""


def test_yaml_section_is_applied(tmp_path):
    path = tmp_path / "lean_bridge.yaml"
    path.write_text(
        "lean_bridge:\n"
        "  output_dir: /var/lib/bridge\n"
        "  snapshot_seconds: 1\n"
        "  heartbeat_seconds: 10\n"
        "  intent_path: intents/today.json\n"
        "  watchlist_path: watchlist.json\n"
        "  watchlist_refresh_seconds: 15\n"
    )

    cfg = load_bridge_config(load_runtime_config(path), env={})

    assert cfg.output_dir == Path("/var/lib/bridge")
    assert cfg.snapshot_seconds == 1.0
    assert cfg.heartbeat_seconds == 10.0
    assert cfg.intent_path == "intents/today.json"
    assert cfg.watchlist_path == "watchlist.json"
    assert cfg.watchlist_refresh_seconds == 15.0


def test_environment_overrides_yaml():
    cfg = load_bridge_config(
        {"lean_bridge": {"output_dir": "from_yaml", "snapshot_seconds": 3}},
        env={"LEAN_BRIDGE_OUTPUT_DIR": "from_env", "LEAN_BRIDGE_SNAPSHOT_SECONDS": "0.5", "LEAN_BRIDGE_INTENT_PATH": " "},
    )
    assert cfg.output_dir == Path("from_env")
    assert cfg.snapshot_seconds == 0.5
    assert cfg.intent_path == ""


def test_process_environment_is_used_by_default(monkeypatch):
    monkeypatch.setenv("LEAN_BRIDGE_HEARTBEAT_SECONDS", "7")
    assert load_bridge_config({}).heartbeat_seconds == 7.0


@pytest.mark.parametrize(
    "key, raw, expected",
    [
        ("snapshot_seconds", "-4", 0.0),
        ("heartbeat_seconds", "soon", 5.0),
        ("watchlist_refresh_seconds", "0", 1.0),
        ("watchlist_refresh_seconds", "0.2", 1.0),
        ("snapshot_seconds", "", 2.0),
    ],
)
def test_seconds_are_validated(key, raw, expected):
    cfg = load_bridge_config({"lean_bridge": {key: raw}}, env={})
    assert getattr(cfg, key) == expected


def test_missing_or_broken_yaml_yields_empty_mapping(tmp_path):
    assert load_runtime_config(tmp_path / "absent.yaml") == {}
    broken = tmp_path / "broken.yaml"
    broken.write_text("lean_bridge: [unterminated\n")
    assert load_runtime_config(broken) == {}
    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("just a string\n")
    assert load_runtime_config(scalar) == {}


def test_non_mapping_section_is_ignored():
    assert load_bridge_config({"lean_bridge": ["nope"]}, env={}) == BridgeConfig()
