"""
Token bucket rate limiter shared by every call of a client.

The bucket holds up to `burst` tokens and refills continuously at `rate`
tokens per second. Each request attempt consumes one token. Waiters queue on
an asyncio.Lock, which wakes them in FIFO order, so a waiter is never starved
while the bucket refills.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class TokenBucketLimiter:
    """
    Async token bucket gate.

    Usage:
        limiter = TokenBucketLimiter(rate=10.0, burst=1)
        if not await limiter.acquire(cancel_event):
            ...  # cancelled before a token was granted
    """

    def __init__(
        self,
        rate: float = 10.0,
        burst: int = 1,
        *,
        _time_fn: Callable[[], float] | None = None,
    ) -> None:
        """
        Initialize the limiter with a full bucket.

        Args:
            rate: Sustained tokens per second (math.inf disables limiting).
            burst: Bucket capacity.
            _time_fn: Optional monotonic clock (seconds) for deterministic tests.
        """
        if not rate > 0:
            raise ValueError(f"rate must be > 0, got {rate}")
        if burst < 1:
            raise ValueError(f"burst must be >= 1, got {burst}")
        self._rate = float(rate)
        self._burst = burst
        self._time_fn = _time_fn
        self._tokens = float(burst)
        self._last_update = self._now()
        self._lock = asyncio.Lock()
        self._waiters = 0

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def burst(self) -> int:
        return self._burst

    @property
    def unlimited(self) -> bool:
        return math.isinf(self._rate)

    def _now(self) -> float:
        """Get current monotonic time in seconds."""
        if self._time_fn is not None:
            return self._time_fn()
        return time.monotonic()

    def _refill(self, now: float) -> None:
        """Refill tokens based on elapsed time."""
        elapsed = now - self._last_update
        if elapsed <= 0:
            return
        self._tokens = min(self._tokens + elapsed * self._rate, float(self._burst))
        self._last_update = now

    def try_acquire(self) -> bool:
        """
        Consume a token without waiting.

        Returns:
            True if a token was consumed, False if the bucket is empty or
            other callers are already queued.
        """
        if self.unlimited:
            return True
        if self._lock.locked():
            return False
        self._refill(self._now())
        if self._tokens >= 1:
            self._tokens -= 1
            return True
        return False

    def get_wait_time_s(self) -> float:
        """Seconds until the next token is available (0 if available now)."""
        if self.unlimited:
            return 0.0
        self._refill(self._now())
        if self._tokens >= 1:
            return 0.0
        return (1 - self._tokens) / self._rate

    async def _lock_or_cancel(self, cancel_event: asyncio.Event | None) -> bool:
        """
        Take the waiter lock unless cancel_event fires first.

        Returns:
            True with the lock held, False (lock not held) if cancelled.
        """
        if cancel_event is None:
            await self._lock.acquire()
            return True

        lock_task = asyncio.ensure_future(self._lock.acquire())
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({lock_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            cancel_task.cancel()
            if lock_task.done() and not lock_task.cancelled():
                self._lock.release()
            else:
                lock_task.cancel()
            raise
        cancel_task.cancel()

        if lock_task.done():
            if cancel_event.is_set():
                self._lock.release()
                return False
            return True

        # Leave the lock queue so the waiters behind us move up
        lock_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await lock_task
        return False

    async def _wait_for_token(self, cancel_event: asyncio.Event | None) -> bool:
        """Wait for a token while holding the waiter lock."""
        while True:
            if cancel_event is not None and cancel_event.is_set():
                return False

            self._refill(self._now())
            if self._tokens >= 1:
                self._tokens -= 1
                return True

            wait_s = (1 - self._tokens) / self._rate
            if cancel_event is None:
                await asyncio.sleep(wait_s)
                continue
            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=wait_s)
            except TimeoutError:
                continue
            return False

    async def acquire(self, cancel_event: asyncio.Event | None = None) -> bool:
        """
        Wait for a token.

        A set cancel_event ends the wait promptly, also for a caller still
        queued behind other waiters.

        Args:
            cancel_event: Optional event; once set, the wait ends without
                consuming a token.

        Returns:
            True when a token was consumed, False if cancelled first.
        """
        if cancel_event is not None and cancel_event.is_set():
            return False
        if self.unlimited:
            return True

        self._waiters += 1
        try:
            if not await self._lock_or_cancel(cancel_event):
                logger.debug("Rate limiter wait cancelled while queued")
                return False
            try:
                acquired = await self._wait_for_token(cancel_event)
            finally:
                self._lock.release()
            if not acquired:
                logger.debug("Rate limiter wait cancelled")
            return acquired
        finally:
            self._waiters -= 1

    def reset(self) -> None:
        """Refill the bucket to capacity."""
        self._tokens = float(self._burst)
        self._last_update = self._now()

    def get_status(self) -> dict[str, float | int]:
        """Get current limiter status for observability."""
        if not self.unlimited:
            self._refill(self._now())
        return {
            "available_tokens": round(self._tokens, 3),
            "rate_per_sec": self._rate,
            "burst": self._burst,
            "waiters": self._waiters,
        }
