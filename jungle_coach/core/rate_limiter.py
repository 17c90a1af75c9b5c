"""Spread-pacing rate limiter for Riot API calls.

A token bucket whose refill rate is the tighter of Riot's two documented
windows (per second and per two minutes). With the default burst of one the
bucket hands out permits at evenly spaced intervals, so requests are spread
across the window instead of being fired in a burst and then stalled.

The clock and sleep functions are injectable so pacing can be tested without
real delays.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

LONG_WINDOW_SECONDS = 120.0


class SpreadRateLimiter:
    """Token bucket with spread pacing."""

    def __init__(
        self,
        requests_per_second: int = 20,
        requests_per_two_minutes: int = 100,
        *,
        burst: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if requests_per_second <= 0 or requests_per_two_minutes <= 0:
            raise ValueError("rate limits must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")

        self.requests_per_second = requests_per_second
        self.requests_per_two_minutes = requests_per_two_minutes
        self.rate = min(float(requests_per_second), requests_per_two_minutes / LONG_WINDOW_SECONDS)
        self.burst = burst

        self._clock = clock
        self._sleep = sleep
        self._tokens = float(burst)
        self._updated = clock()
        self._lock = asyncio.Lock()
        self.granted = 0

    @property
    def interval(self) -> float:
        """Seconds between permits once the burst is spent."""
        return 1.0 / self.rate

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
        self._updated = now

    async def acquire(self) -> None:
        """Wait until a permit is available, then take it."""
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    self.granted += 1
                    return
                wait = (1.0 - self._tokens) / self.rate
                logger.debug(f"Rate limit - waiting {wait:.2f}s")
                await self._sleep(wait)

    async def pause(self, seconds: float) -> None:
        """Courtesy delay between request groups, on the limiter's time source."""
        if seconds > 0:
            await self._sleep(seconds)

    async def reset(self) -> None:
        async with self._lock:
            self._tokens = float(self.burst)
            self._updated = self._clock()
