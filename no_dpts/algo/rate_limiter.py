# AGPL-3.0 License

"""
Token-bucket rate limiting for remote AI calls.
"""

import asyncio
import time
from typing import Callable, Optional

from no_dpts.log import get_logger


class TokenBucket:
    """
    A token bucket refilled continuously at ``requests_per_minute / 60`` tokens per second.

    The bucket starts full, so a burst of up to ``requests_per_minute``
    calls is allowed before callers have to wait.
    """

    def __init__(
        self,
        requests_per_minute: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] = asyncio.sleep,
    ):
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")
        self.capacity = float(requests_per_minute)
        self.rate = requests_per_minute / 60.0
        self._tokens = self.capacity
        self._clock = clock
        self._sleep = sleep
        self._updated = clock()

    @property
    def available(self) -> float:
        self._refill()
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._updated = now

    async def acquire(self, max_wait: float) -> bool:
        """
        Take one token, waiting at most ``max_wait`` seconds for it.

        Returns False without sleeping when the next token cannot arrive
        within the remaining wait budget. Refill and take happen between
        suspension points, so concurrent waiters never share a token; a
        waiter that loses the race re-checks its own deadline.
        """
        deadline = self._clock() + max_wait
        while True:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return True

            needed = (1 - self._tokens) / self.rate
            if self._clock() + needed > deadline:
                return False
            await self._sleep(needed)


_buckets: dict[int, TokenBucket] = {}


def get_rate_limiter(requests_per_minute: int) -> TokenBucket:
    """
    Process-wide bucket for a given rate.

    Reviewers configured with the same rate share one bucket.
    """
    bucket: Optional[TokenBucket] = _buckets.get(requests_per_minute)
    if bucket is None:
        get_logger().debug(f"Creating rate limiter for {requests_per_minute} requests/minute")
        bucket = _buckets[requests_per_minute] = TokenBucket(requests_per_minute)
    return bucket
