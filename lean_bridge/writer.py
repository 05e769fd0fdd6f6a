"""Atomic JSON state files and append-only JSONL records for the bridge output directory."""

from __future__ import annotations

import dataclasses
import json
import math
import os
import tempfile
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

from lean_bridge.models import enum_name


class BridgeWriteError(RuntimeError):
    """Raised when a bridge file could not be written or serialized."""

    def __init__(self, name: str, exc: BaseException) -> None:
        super().__init__(f"{name}: {exc}")
        self.name = name


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def _clean(value: Any) -> Any:
    """Replace NaN/inf floats with None anywhere in a container tree."""
    if isinstance(value, float):
        return _finite_or_none(value)
    if isinstance(value, Mapping):
        return {k: _clean(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_clean(v) for v in value]
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        # integral decimals stay integers so 200 is written as 200, not 200.0
        if value == value.to_integral_value():
            return int(value)
        # exact up to 15 significant digits; beyond that the nearest double
        return float(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return enum_name(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _clean(dataclasses.asdict(value))
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    try:
        return _finite_or_none(float(value))
    except Exception:
        return str(value)


def dumps(payload: Any, *, indent: int | None = None) -> str:
    """Strict JSON: non-finite numbers are written as null, never as NaN/Infinity."""
    separators = None if indent else (",", ":")
    return json.dumps(
        _clean(payload),
        default=_json_default,
        indent=indent,
        separators=separators,
        ensure_ascii=False,
        allow_nan=False,
    )


class BridgeWriter:
    """Writes the bridge file set under one output directory."""

    def __init__(self, output_dir: str | os.PathLike[str]) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        return self.output_dir / name

    def _ensure_dir(self) -> None:
        # external tooling may wipe the directory between writes
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def write_json_atomic(self, name: str, payload: Any) -> Path:
        """
        Replace ``name`` with the serialized payload.

        The payload goes to a temp sibling first and is moved over the target with
        ``os.replace``, so readers only ever see the old file or the new one.
        """
        target = self.path_for(name)
        try:
            data = dumps(payload, indent=2)
            self._ensure_dir()
            fd, tmp_path = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.output_dir)
        except (OSError, TypeError, ValueError) as exc:
            raise BridgeWriteError(name, exc) from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, target)
        except OSError as exc:
            raise BridgeWriteError(name, exc) from exc
        finally:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
        return target

    def append_json_line(self, name: str, record: Mapping[str, Any]) -> Path:
        """Append one complete newline-terminated JSON record to ``name``."""
        target = self.path_for(name)
        try:
            line = dumps(dict(record or {}))
            self._ensure_dir()
            with target.open("a", encoding="utf-8") as handle:
                handle.write(f"{line}\n")
                handle.flush()
        except (OSError, TypeError, ValueError) as exc:
            raise BridgeWriteError(name, exc) from exc
        return target


__all__ = ["BridgeWriter", "BridgeWriteError", "dumps"]
