"""
Request execution pipeline.

One logical request becomes up to max_retries + 1 HTTP attempts:
- every attempt first takes a token from the shared rate limiter
- transport failures are retried with exponential backoff, except when the
  caller's cancel_event is set (immediately terminal)
- responses with status < 500 end the loop, 4xx included
- 5xx responses are retried; the last one is returned as-is for decoding
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from urllib.parse import urlencode

import aiohttp

from manapool.backoff import BackoffPolicy
from manapool.config import ACCESS_TOKEN_HEADER, EMAIL_HEADER, ClientConfig
from manapool.errors import NetworkError
from manapool.logging_config import LogSink, safe_log
from manapool.ratelimit import TokenBucketLimiter

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, str | int | bool | Sequence[str]] | Sequence[tuple[str, str]]
SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class LogicalRequest:
    """
    A single caller-visible operation, before any attempt is made.

    Attributes:
        method: HTTP method.
        path: Endpoint path relative to the base URL.
        query: Optional query parameters (repeated keys allowed).
        body: Optional raw request body.
        content_type: Content-Type sent when a body is present.
    """

    method: str
    path: str
    query: QueryParams | None = None
    body: bytes | None = None
    content_type: str | None = None


@dataclass
class ClientMetrics:
    """Counters for the request pipeline."""

    requests: int = 0  # Logical requests started
    attempts: int = 0  # HTTP attempts sent
    retries: int = 0  # Attempts beyond the first
    server_errors: int = 0  # 5xx responses received
    transport_errors: int = 0  # Attempts without a response
    cancellations: int = 0  # Requests ended by cancel_event
    limiter_wait_s: float = 0.0  # Total time spent waiting for tokens


def build_url(base_url: str, path: str, query: QueryParams | None = None) -> str:
    """Join base URL and path, appending the encoded query string if any."""
    url = base_url + path.lstrip("/")
    if query:
        items = query.items() if isinstance(query, Mapping) else query
        encoded = urlencode(
            [(k, _query_value(v)) for k, v in items],
            doseq=True,
        )
        if encoded:
            url = f"{url}?{encoded}"
    return url


def _query_value(value: object) -> object:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [_query_value(v) for v in value]
    return value


class RequestExecutor:
    """
    Performs logical requests under the shared limiter and backoff policy.

    The executor owns the aiohttp session unless one is supplied.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        limiter: TokenBucketLimiter | None = None,
        log: LogSink | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        """
        Initialize the executor.

        Args:
            config: Shared client configuration.
            session: Optional caller-owned aiohttp session (custom transport).
            limiter: Optional shared rate limiter; built from config if None.
            log: Log sink for debug/error lines; defaults to this module's logger.
            sleep: Backoff sleep function (asyncio.sleep by default).
        """
        self._config = config
        self._session = session
        self._owns_session = session is None
        self._limiter = limiter or TokenBucketLimiter(config.rate_limit, config.rate_burst)
        self._log: LogSink = log if log is not None else logger
        self._sleep: SleepFn = sleep or asyncio.sleep
        self._backoff = BackoffPolicy(
            initial_backoff_s=config.initial_backoff_s,
            max_retries=config.max_retries,
        )
        self._timeout = aiohttp.ClientTimeout(total=config.timeout_s)
        self.metrics = ClientMetrics()

    @property
    def limiter(self) -> TokenBucketLimiter:
        return self._limiter

    @property
    def backoff(self) -> BackoffPolicy:
        return self._backoff

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or (self._owns_session and self._session.closed):
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this executor created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _build_headers(self, request: LogicalRequest) -> dict[str, str]:
        headers = {
            ACCESS_TOKEN_HEADER: self._config.access_token,
            EMAIL_HEADER: self._config.email,
            "User-Agent": self._config.user_agent,
            "Accept": "application/json",
        }
        if request.body is not None and request.content_type:
            headers["Content-Type"] = request.content_type
        return headers

    async def _acquire_token(self, cancel_event: asyncio.Event | None) -> None:
        started = time.monotonic()
        acquired = await self._limiter.acquire(cancel_event)
        self.metrics.limiter_wait_s += time.monotonic() - started
        if not acquired:
            self.metrics.cancellations += 1
            raise NetworkError("rate limiter wait cancelled")

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        cancel_event: asyncio.Event | None,
    ) -> aiohttp.ClientResponse | None:
        """
        Perform one HTTP exchange.

        Returns:
            The response, or None if cancel_event fired first (the in-flight
            request is cancelled and any late response released).

        Raises:
            aiohttp.ClientError, TimeoutError: On transport failure.
        """
        session = await self._get_session()

        async def _do() -> aiohttp.ClientResponse:
            return await session.request(
                method, url, headers=headers, data=body, timeout=self._timeout
            )

        if cancel_event is None:
            return await _do()

        request_task = asyncio.ensure_future(_do())
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_task.cancel()
            if not request_task.done():
                request_task.cancel()

        if request_task in done:
            return request_task.result()

        # Cancelled: let the request task unwind, release a response that slipped through
        await asyncio.wait({request_task})
        if not request_task.cancelled() and request_task.exception() is None:
            request_task.result().release()
        return None

    async def execute(
        self,
        request: LogicalRequest,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> aiohttp.ClientResponse:
        """
        Execute a logical request with rate limiting and retries.

        Args:
            request: The logical request.
            cancel_event: Optional cancellation signal observed at the limiter
                wait and during the network exchange.

        Returns:
            The final response. May carry a 5xx status when retries ran out;
            the caller must decode (and thereby release) it.

        Raises:
            NetworkError: Cancellation, or transport failure after all retries.
        """
        url = build_url(self._config.base_url, request.path, request.query)
        headers = self._build_headers(request)
        max_attempts = self._backoff.max_attempts
        delays = self._backoff.delays()
        self.metrics.requests += 1

        for attempt in range(max_attempts):
            await self._acquire_token(cancel_event)

            safe_log(
                self._log.debug,
                "API request: %s %s (attempt %d/%d)",
                request.method,
                url,
                attempt + 1,
                max_attempts,
            )
            self.metrics.attempts += 1
            if attempt > 0:
                self.metrics.retries += 1

            try:
                response = await self._send(
                    request.method, url, headers, request.body, cancel_event
                )
            except (aiohttp.ClientError, TimeoutError) as e:
                self.metrics.transport_errors += 1
                safe_log(
                    self._log.error,
                    "Request failed (attempt %d/%d): %s",
                    attempt + 1,
                    max_attempts,
                    e,
                )
                if cancel_event is not None and cancel_event.is_set():
                    self.metrics.cancellations += 1
                    raise NetworkError("request cancelled", e) from e
                if attempt < max_attempts - 1:
                    await self._sleep(next(delays))
                    continue
                raise NetworkError("request failed after retries", e) from e

            if response is None:
                self.metrics.cancellations += 1
                raise NetworkError("request cancelled")

            if response.status < 500:
                return response

            self.metrics.server_errors += 1
            if attempt == max_attempts - 1:
                return response

            safe_log(
                self._log.error,
                "Server error %d (attempt %d/%d), retrying...",
                response.status,
                attempt + 1,
                max_attempts,
            )
            response.release()
            await self._sleep(next(delays))

        # Unreachable: the loop always returns or raises on its last attempt
        raise NetworkError("request failed after retries")
