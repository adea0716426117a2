"""
Retry backoff policy for the request executor.

Deterministic exponential backoff: the first retry waits the initial delay,
each later retry waits twice the previous one. There is no jitter and no cap;
the attempt count is bounded instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True)
class BackoffPolicy:
    """Configuration for exponential retry backoff.

    Attributes:
        initial_backoff_s: Delay before the first retry (seconds).
        max_retries: Retries allowed after the first attempt.
        multiplier: Growth factor between consecutive delays.
    """

    initial_backoff_s: float = 1.0
    max_retries: int = 3
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.initial_backoff_s < 0:
            raise ValueError(f"initial_backoff_s must be >= 0, got {self.initial_backoff_s}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")

    @property
    def max_attempts(self) -> int:
        """Total attempts per logical request (first try plus retries)."""
        return self.max_retries + 1

    def delays(self) -> Iterator[float]:
        """Yield the sleep before each retry, in order."""
        for retry in range(self.max_retries):
            yield compute_backoff_delay(self, retry)


def compute_backoff_delay(policy: BackoffPolicy, retry: int) -> float:
    """
    Compute the delay before a retry.

    Args:
        policy: Backoff configuration.
        retry: Zero-based retry index (0 = first retry).

    Returns:
        Delay in seconds.
    """
    if retry < 0:
        raise ValueError(f"retry must be >= 0, got {retry}")
    return policy.initial_backoff_s * (policy.multiplier**retry)
