"""Null-tolerant accessors for loosely typed Liquid payloads."""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any


def safe_value(item: Mapping[str, Any] | None, key: str, default: Any = None) -> Any:
    if not isinstance(item, Mapping):
        return default
    value = item.get(key)
    return default if value is None else value


def safe_string(item: Mapping[str, Any] | None, key: str, default: str | None = None) -> str | None:
    value = safe_value(item, key)
    if value is None:
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def safe_string2(
    item: Mapping[str, Any] | None, key1: str, key2: str, default: str | None = None
) -> str | None:
    value = safe_string(item, key1)
    return value if value is not None else safe_string(item, key2, default)


def safe_float(item: Mapping[str, Any] | None, key: str, default: float | None = None) -> float | None:
    value = safe_value(item, key)
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    return parsed if math.isfinite(parsed) else default


def safe_integer(item: Mapping[str, Any] | None, key: str, default: int | None = None) -> int | None:
    parsed = safe_float(item, key)
    return default if parsed is None else int(parsed)


def safe_timestamp(item: Mapping[str, Any] | None, key: str) -> int | None:
    """Read a seconds-based timestamp and return milliseconds."""

    parsed = safe_float(item, key)
    return None if parsed is None else int(parsed * 1000)


def iso8601(timestamp_ms: int | None) -> str | None:
    if timestamp_ms is None:
        return None
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
