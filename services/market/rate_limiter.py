# services/market/rate_limiter.py
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class IntervalRateLimiter:
    """
    Fixed minimum spacing between upstream calls.

    The first wait() returns immediately; each later call sleeps until
    `interval_sec` has passed since the previous call was released.
    Clock and sleep are injectable so tests can run without real time.
    """

    def __init__(
        self,
        interval_sec: float,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if interval_sec < 0:
            raise ValueError("interval_sec must be >= 0")
        self.interval_sec = float(interval_sec)
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None

    async def wait(self) -> float:
        """Returns the seconds actually slept."""
        slept = 0.0
        if self._last is not None and self.interval_sec > 0:
            remaining = self.interval_sec - (self._clock() - self._last)
            if remaining > 0:
                await self._sleep(remaining)
                slept = remaining
        self._last = self._clock()
        return slept

    def reset(self) -> None:
        self._last = None
