"""Request pacing for the quote fan-out.

``RateLimiter`` caps in-flight requests with a semaphore and spaces request
starts with a token bucket, so fetching a whole watchlist at once does not
trip the quote provider's throttling.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Final

logger = logging.getLogger(__name__)

QUOTE_REQUESTS_PER_SECOND: Final[float] = 2.0
QUOTE_MAX_IN_FLIGHT: Final[int] = 5


class RateLimiter:
    """Concurrency cap plus token-bucket pacing, used as an async context manager.

    The bucket holds up to ``max_in_flight`` tokens, so a cold start may
    burst that many requests before settling to ``requests_per_second``.

    Usage::

        limiter = RateLimiter(max_in_flight=5, requests_per_second=2.0)
        async with limiter:
            info = await fetch()
    """

    def __init__(
        self,
        max_in_flight: int = QUOTE_MAX_IN_FLIGHT,
        requests_per_second: float = QUOTE_REQUESTS_PER_SECOND,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_in_flight < 1:
            msg = f"max_in_flight must be at least 1, got {max_in_flight}"
            raise ValueError(msg)
        if requests_per_second <= 0:
            msg = f"requests_per_second must be positive, got {requests_per_second}"
            raise ValueError(msg)

        self._slots = asyncio.Semaphore(max_in_flight)
        self._rate = requests_per_second
        self._capacity = float(max_in_flight)
        self._tokens = self._capacity
        self._clock = clock
        self._stamp = clock()
        self._bucket_lock = asyncio.Lock()

        logger.debug(
            "RateLimiter: %d in flight, %.1f req/s",
            max_in_flight,
            requests_per_second,
        )

    @property
    def available_tokens(self) -> float:
        """Tokens in the bucket as of the last refill."""
        return self._tokens

    async def __aenter__(self) -> RateLimiter:
        await self._slots.acquire()
        try:
            await self._take_token()
        except BaseException:
            self._slots.release()
            raise
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self._slots.release()

    async def _take_token(self) -> None:
        # Waiters queue on the lock, so tokens are handed out in arrival order
        async with self._bucket_lock:
            self._refill()
            shortfall = 1.0 - self._tokens
            if shortfall > 0:
                await asyncio.sleep(shortfall / self._rate)
                self._refill()
            self._tokens -= 1.0

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(self._capacity, self._tokens + (now - self._stamp) * self._rate)
        self._stamp = now
