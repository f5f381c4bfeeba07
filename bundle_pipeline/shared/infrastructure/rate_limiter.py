"""
Rate Limiter
============
Fixed one-second window limiter for relay submissions.

Each relay client owns its limiter, so independent pipelines sharing a
client share the budget and nothing else does.
"""

import asyncio
import time
from typing import Awaitable, Callable

from bundle_pipeline.shared.system.logging import Logger

WINDOW_SEC = 1.0


class RateLimiter:
    """
    Allow at most `max_per_window` acquisitions per window.

    Usage:
        limiter = RateLimiter(max_per_window=2)
        await limiter.acquire()  # waits out the window when the budget is spent
    """

    def __init__(
        self,
        max_per_window: int = 2,
        window_sec: float = WINDOW_SEC,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_per_window < 1:
            raise ValueError("max_per_window must be >= 1")
        self.max_per_window = max_per_window
        self.window_sec = window_sec
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()

        self._count = 0
        self._window_start = clock()

    async def acquire(self) -> float:
        """
        Take one slot from the current window.

        Returns:
            Seconds spent waiting (0.0 when a slot was free).
        """
        async with self._lock:
            now = self._clock()
            if now - self._window_start >= self.window_sec:
                self._count = 0
                self._window_start = now

            waited = 0.0
            if self._count >= self.max_per_window:
                waited = max(0.0, self.window_sec - (now - self._window_start))
                Logger.debug(f"[RELAY] Rate limit reached, waiting {waited:.3f}s")
                await self._sleep(waited)
                self._count = 0
                self._window_start = self._clock()

            self._count += 1
            return waited
