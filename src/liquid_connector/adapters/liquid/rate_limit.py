from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from time import monotonic


@dataclass
class AsyncTokenBucket:
    rate_per_sec: float
    burst: int = 1
    _tokens: float = field(init=False)
    _updated_at: float = field(init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self) -> None:
        if self.rate_per_sec <= 0:
            raise ValueError("rate_per_sec must be > 0")
        if self.burst < 1:
            raise ValueError("burst must be >= 1")
        self._tokens = float(self.burst)
        self._updated_at = monotonic()

    @classmethod
    def from_interval_ms(cls, interval_ms: int, *, burst: int = 1) -> AsyncTokenBucket:
        """One request per ``interval_ms`` with an initial burst allowance."""

        if interval_ms <= 0:
            raise ValueError("interval_ms must be > 0")
        return cls(rate_per_sec=1000.0 / interval_ms, burst=burst)

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate_per_sec)
        self._updated_at = now

    async def acquire(self, tokens: float = 1.0) -> float:
        """Wait for capacity and return the seconds spent waiting."""

        if tokens <= 0:
            return 0.0
        waited = 0.0
        while True:
            async with self._lock:
                self._refill(monotonic())
                if self._tokens >= tokens:
                    self._tokens -= tokens
                    return waited
                wait_seconds = (tokens - self._tokens) / self.rate_per_sec
            await asyncio.sleep(wait_seconds)
            waited += wait_seconds
