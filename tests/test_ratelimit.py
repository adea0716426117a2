"""Tests for the token bucket rate limiter."""

from __future__ import annotations

import asyncio
import math
import time

import pytest

from manapool.ratelimit import TokenBucketLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestTokenBucketLimiter:
    def test_invalid_rate(self) -> None:
        with pytest.raises(ValueError, match="rate"):
            TokenBucketLimiter(rate=0)

    def test_invalid_burst(self) -> None:
        with pytest.raises(ValueError, match="burst"):
            TokenBucketLimiter(rate=1.0, burst=0)

    def test_starts_full(self) -> None:
        clock = FakeClock()
        limiter = TokenBucketLimiter(rate=1.0, burst=3, _time_fn=clock)
        assert [limiter.try_acquire() for _ in range(4)] == [True, True, True, False]

    def test_refill(self) -> None:
        clock = FakeClock()
        limiter = TokenBucketLimiter(rate=2.0, burst=1, _time_fn=clock)
        assert limiter.try_acquire()
        assert not limiter.try_acquire()
        assert limiter.get_wait_time_s() == pytest.approx(0.5)

        clock.now = 0.5
        assert limiter.get_wait_time_s() == 0.0
        assert limiter.try_acquire()

    def test_refill_capped_at_burst(self) -> None:
        clock = FakeClock()
        limiter = TokenBucketLimiter(rate=10.0, burst=2, _time_fn=clock)
        clock.now = 100.0
        assert limiter.get_status()["available_tokens"] == 2

    def test_reset(self) -> None:
        clock = FakeClock()
        limiter = TokenBucketLimiter(rate=1.0, burst=2, _time_fn=clock)
        limiter.try_acquire()
        limiter.try_acquire()
        limiter.reset()
        assert limiter.get_status()["available_tokens"] == 2

    def test_status(self) -> None:
        limiter = TokenBucketLimiter(rate=5.0, burst=2)
        status = limiter.get_status()
        assert status["rate_per_sec"] == 5.0
        assert status["burst"] == 2
        assert status["waiters"] == 0

    def test_unlimited(self) -> None:
        limiter = TokenBucketLimiter(rate=math.inf)
        assert limiter.unlimited
        assert all(limiter.try_acquire() for _ in range(1000))
        assert limiter.get_wait_time_s() == 0.0


class TestAcquire:
    @pytest.mark.asyncio
    async def test_acquire_available_token(self) -> None:
        limiter = TokenBucketLimiter(rate=1.0, burst=1)
        assert await limiter.acquire() is True

    @pytest.mark.asyncio
    async def test_preset_cancel_consumes_nothing(self) -> None:
        clock = FakeClock()
        limiter = TokenBucketLimiter(rate=1.0, burst=1, _time_fn=clock)
        event = asyncio.Event()
        event.set()

        assert await limiter.acquire(event) is False
        assert limiter.try_acquire() is True

    @pytest.mark.asyncio
    async def test_cancel_while_waiting(self) -> None:
        limiter = TokenBucketLimiter(rate=0.1, burst=1)
        assert await limiter.acquire()

        event = asyncio.Event()
        waiter = asyncio.create_task(limiter.acquire(event))
        await asyncio.sleep(0.02)
        assert not waiter.done()

        event.set()
        assert await asyncio.wait_for(waiter, timeout=1.0) is False
        assert limiter.get_status()["waiters"] == 0

    @pytest.mark.asyncio
    async def test_cancel_while_queued_behind_other_waiter(self) -> None:
        limiter = TokenBucketLimiter(rate=0.5, burst=1)
        assert limiter.try_acquire()

        head = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0.01)
        event = asyncio.Event()
        queued = asyncio.create_task(limiter.acquire(event))
        await asyncio.sleep(0.01)
        assert not queued.done()
        assert limiter.get_status()["waiters"] == 2

        start = time.monotonic()
        event.set()
        assert await asyncio.wait_for(queued, timeout=1.0) is False
        assert time.monotonic() - start < 0.5
        assert not head.done()
        assert limiter.get_status()["waiters"] == 1

        head.cancel()
        with pytest.raises(asyncio.CancelledError):
            await head
        assert limiter.get_status()["waiters"] == 0
        assert not limiter._lock.locked()

    @pytest.mark.asyncio
    async def test_cancelled_queued_waiter_does_not_block_next(self) -> None:
        limiter = TokenBucketLimiter(rate=20.0, burst=1)
        assert limiter.try_acquire()

        head = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)
        event = asyncio.Event()
        cancelled = asyncio.create_task(limiter.acquire(event))
        await asyncio.sleep(0)
        tail = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)

        event.set()
        results = await asyncio.wait_for(asyncio.gather(head, cancelled, tail), timeout=2.0)
        assert results == [True, False, True]

    @pytest.mark.asyncio
    async def test_concurrent_rate_bound(self) -> None:
        """N acquisitions at rate R with burst B take at least (N - B) / R."""
        rate, burst, n = 50.0, 2, 8
        limiter = TokenBucketLimiter(rate=rate, burst=burst)

        start = time.monotonic()
        results = await asyncio.gather(*(limiter.acquire() for _ in range(n)))
        elapsed = time.monotonic() - start

        assert all(results)
        assert elapsed >= (n - burst) / rate * 0.95

    @pytest.mark.asyncio
    async def test_waiters_served_in_order(self) -> None:
        limiter = TokenBucketLimiter(rate=100.0, burst=1)
        order: list[int] = []

        async def worker(i: int) -> None:
            await limiter.acquire()
            order.append(i)

        tasks = []
        for i in range(5):
            tasks.append(asyncio.create_task(worker(i)))
            await asyncio.sleep(0)
        await asyncio.gather(*tasks)

        assert order == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_unlimited_acquire_never_waits(self) -> None:
        limiter = TokenBucketLimiter(rate=math.inf)
        start = time.monotonic()
        for _ in range(100):
            assert await limiter.acquire()
        assert time.monotonic() - start < 0.5
