from __future__ import annotations

import copy
from collections.abc import Callable
from time import monotonic
from typing import Any, Protocol


class MarketCache(Protocol):
    """Key-value store shared across connector instances.

    ``write`` receives an opaque ``flag`` that is passed through to the store
    unchanged.
    """

    async def read(self, key: str) -> Any | None: ...

    async def write(self, key: str, value: Any, flag: bool, ttl_seconds: int) -> None: ...


def markets_cache_key(exchange_id: str) -> str:
    return f"{exchange_id}|markets"


class InMemoryTtlCache:
    """Process-local MarketCache with per-key expiry."""

    def __init__(self, *, clock: Callable[[], float] = monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    async def read(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return copy.deepcopy(value)

    async def write(self, key: str, value: Any, flag: bool, ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, copy.deepcopy(value))
