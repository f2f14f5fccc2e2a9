"""Client-side request throttle for the cluster API.

A token bucket shared by every request the client opens (discovery, lists,
watches, not-found polls). It holds up to ``burst`` tokens and refills at
``qps`` tokens per second; reading an open watch stream costs nothing.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable


class RequestThrottle:
    """Token bucket limiting requests to *qps* per second after a *burst*.

    Waiters are served in arrival order. ``qps <= 0`` disables throttling.
    """

    def __init__(self, qps: float, burst: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.qps = qps
        self.burst = max(burst, 1)
        self._clock = clock
        self._tokens = float(self.burst)
        self._updated = clock()
        self._lock = asyncio.Lock()

    @property
    def tokens(self) -> float:
        self._refill()
        return self._tokens

    async def acquire(self) -> None:
        """Wait until a request may be sent."""
        if self.qps <= 0:
            return
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                await asyncio.sleep((1 - self._tokens) / self.qps)
                self._refill()
            self._tokens -= 1

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(float(self.burst), self._tokens + (now - self._updated) * self.qps)
        self._updated = now
