"""
Prometheus metrics exporter for the Manapool client.

Exports low-cardinality metrics only: no endpoint, path, order or SKU labels.

- manapool_client_*  : request pipeline counters (ClientMetrics)
- manapool_limiter_* : token bucket gauges (TokenBucketLimiter.get_status())
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import Counter, Gauge
from prometheus_client.registry import CollectorRegistry

if TYPE_CHECKING:
    from manapool.executor import ClientMetrics
    from manapool.ratelimit import TokenBucketLimiter

# Labels that would cause cardinality explosion
FORBIDDEN_LABELS = frozenset(
    {
        "endpoint",
        "path",
        "query",
        "order_id",
        "sku",
        "tcgplayer_id",
        "webhook_id",
        "email",
        "token",
    }
)

# ClientMetrics field -> (metric name, help)
_COUNTERS: dict[str, tuple[str, str]] = {
    "requests": ("manapool_client_requests", "Total logical requests started"),
    "attempts": ("manapool_client_attempts", "Total HTTP attempts sent"),
    "retries": ("manapool_client_retries", "Total attempts beyond the first"),
    "server_errors": ("manapool_client_server_errors", "Total 5xx responses received"),
    "transport_errors": (
        "manapool_client_transport_errors",
        "Total attempts that failed without a response",
    ),
    "cancellations": ("manapool_client_cancellations", "Total requests ended by cancellation"),
    "limiter_wait_s": (
        "manapool_client_limiter_wait_seconds",
        "Total seconds spent waiting for rate limiter tokens",
    ),
}


class MetricsExporter:
    """
    Sync client and limiter state into Prometheus metrics.

    Usage:
        registry = CollectorRegistry()
        exporter = MetricsExporter(registry=registry)
        exporter.update(client_metrics=client.metrics, limiter=client.limiter)
        # generate_latest(registry) -> bytes for a /metrics endpoint
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """
        Initialize metrics exporter.

        Args:
            registry: Prometheus CollectorRegistry. If None, a private one is created.
        """
        self._registry = registry or CollectorRegistry()

        self._counters: dict[str, Counter] = {
            field: Counter(name, help_text, registry=self._registry)
            for field, (name, help_text) in _COUNTERS.items()
        }

        self._limiter_available_tokens = Gauge(
            "manapool_limiter_available_tokens",
            "Tokens currently available in the rate limiter bucket",
            registry=self._registry,
        )
        self._limiter_rate_per_sec = Gauge(
            "manapool_limiter_rate_per_sec",
            "Configured sustained request rate",
            registry=self._registry,
        )
        self._limiter_burst = Gauge(
            "manapool_limiter_burst",
            "Configured rate limiter bucket size",
            registry=self._registry,
        )
        self._limiter_waiters = Gauge(
            "manapool_limiter_waiters",
            "Callers currently waiting for a token",
            registry=self._registry,
        )

        # Last seen values; counters are monotonic so only deltas are applied
        self._last: dict[str, float] = dict.fromkeys(_COUNTERS, 0)

    @property
    def registry(self) -> CollectorRegistry:
        """Get the Prometheus CollectorRegistry."""
        return self._registry

    def update(
        self,
        client_metrics: ClientMetrics | None = None,
        limiter: TokenBucketLimiter | None = None,
    ) -> None:
        """
        Update metrics from component state.

        Call periodically (e.g. on every scrape).
        """
        if client_metrics is not None:
            self._update_client_metrics(client_metrics)
        if limiter is not None:
            self._update_limiter_metrics(limiter)

    def _update_client_metrics(self, metrics: ClientMetrics) -> None:
        for field, counter in self._counters.items():
            current = getattr(metrics, field)
            delta = current - self._last[field]
            if delta > 0:
                counter.inc(delta)
            self._last[field] = current

    def _update_limiter_metrics(self, limiter: TokenBucketLimiter) -> None:
        status = limiter.get_status()
        self._limiter_available_tokens.set(status["available_tokens"])
        self._limiter_rate_per_sec.set(status["rate_per_sec"])
        self._limiter_burst.set(status["burst"])
        self._limiter_waiters.set(status["waiters"])

    def reset_counter_tracking(self) -> None:
        """
        Reset internal counter tracking.

        Use when the client's metrics are reset. Does NOT reset the
        Prometheus counters themselves.
        """
        self._last = dict.fromkeys(_COUNTERS, 0)


# Counters are exported with the _total suffix by prometheus_client
REQUIRED_METRIC_NAMES: frozenset[str] = frozenset(
    {f"{name}_total" for name, _ in _COUNTERS.values()}
    | {
        "manapool_limiter_available_tokens",
        "manapool_limiter_rate_per_sec",
        "manapool_limiter_burst",
        "manapool_limiter_waiters",
    }
)
