# src/wbs_sync/remote/rate_limiter.py

from __future__ import annotations

"""
Sliding-window rate limiter.

At most `max_requests` acquisitions are granted within any trailing
`time_window` seconds. Callers are suspended (asyncio.sleep), never blocked.
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class RateLimiter:
    def __init__(
            self,
            max_requests: int = 5,
            time_window: float = 1.0,
            *,
            clock: Clock = time.monotonic,
            sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if time_window <= 0:
            raise ValueError("time_window must be > 0")
        self.max_requests = int(max_requests)
        self.time_window = float(time_window)
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque[float] = deque()

    def _evict(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.time_window:
            self._timestamps.popleft()

    async def acquire(self) -> None:
        # Timestamps may still be too fresh after one sleep when several
        # waiters wake together, so always re-check.
        while True:
            now = self._clock()
            self._evict(now)
            if len(self._timestamps) < self.max_requests:
                self._timestamps.append(now)
                return

            # > 0: anything at or past the window edge was just evicted.
            wait_s = self.time_window - (now - self._timestamps[0])
            logger.debug("rate limit reached (%d/%.3fs), waiting %.3fs", self.max_requests, self.time_window, wait_s)
            await self._sleep(wait_s)
