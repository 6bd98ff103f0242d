# AGPL-3.0 License

"""
Unit tests for the token bucket.
"""

import asyncio

import pytest

from no_dpts.algo.rate_limiter import TokenBucket, get_rate_limiter


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_bucket(rpm: int, clock: FakeClock) -> TokenBucket:
    return TokenBucket(rpm, clock=clock, sleep=clock.sleep)


@pytest.mark.asyncio
class TestTokenBucket:
    async def test_starts_full(self):
        clock = FakeClock()
        bucket = make_bucket(3, clock)

        assert [await bucket.acquire(0) for _ in range(3)] == [True, True, True]
        assert clock.sleeps == []

    async def test_empty_bucket_without_wait_budget(self):
        clock = FakeClock()
        bucket = make_bucket(2, clock)
        await bucket.acquire(0)
        await bucket.acquire(0)

        assert await bucket.acquire(0) is False
        assert clock.sleeps == []

    async def test_waits_for_refill_within_budget(self):
        clock = FakeClock()
        bucket = make_bucket(2, clock)
        await bucket.acquire(0)
        await bucket.acquire(0)

        # Two per minute: the next token arrives after 30 seconds
        assert await bucket.acquire(60) is True
        assert clock.sleeps == [pytest.approx(30.0)]

    async def test_refuses_when_refill_exceeds_budget(self):
        clock = FakeClock()
        bucket = make_bucket(2, clock)
        await bucket.acquire(0)
        await bucket.acquire(0)

        assert await bucket.acquire(10) is False
        assert clock.sleeps == []

    async def test_refills_over_time(self):
        clock = FakeClock()
        bucket = make_bucket(60, clock)
        for _ in range(60):
            await bucket.acquire(0)
        assert bucket.available < 1

        clock.now += 5
        assert bucket.available == pytest.approx(5.0)

    async def test_never_exceeds_capacity(self):
        clock = FakeClock()
        bucket = make_bucket(10, clock)

        clock.now += 3600
        assert bucket.available == pytest.approx(10.0)


class TestRateLimiterRegistry:
    def test_invalid_rate(self):
        with pytest.raises(ValueError):
            TokenBucket(0)

    def test_shared_per_rate(self):
        assert get_rate_limiter(17) is get_rate_limiter(17)
        assert get_rate_limiter(17) is not get_rate_limiter(18)


@pytest.mark.asyncio
class TestTokenBucketConcurrency:
    async def test_waiting_caller_does_not_stall_others(self):
        bucket = TokenBucket(1)
        assert await bucket.acquire(0)
        # One per minute: this caller sleeps for the next token
        waiter = asyncio.create_task(bucket.acquire(120))
        await asyncio.sleep(0)

        try:
            assert await asyncio.wait_for(bucket.acquire(0.1), timeout=2) is False
        finally:
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter

    async def test_concurrent_callers_share_tokens_once(self):
        clock = FakeClock()
        bucket = make_bucket(2, clock)

        results = await asyncio.gather(*(bucket.acquire(0) for _ in range(3)))

        assert sorted(results) == [False, True, True]
