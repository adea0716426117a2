"""
Async Manapool API client.

Usage:
    config = ClientConfig.from_env()
    async with ManapoolClient(config) as client:
        account = await client.get_seller_account()

One client may be shared by any number of coroutines on the same event loop;
they share the rate limiter and the HTTP session.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import aiohttp
import orjson
import pydantic

from manapool.decoder import decode_response
from manapool.endpoints import (
    AccountEndpoints,
    InventoryEndpoints,
    OrderEndpoints,
    PriceEndpoints,
    WebhookEndpoints,
)
from manapool.errors import NetworkError
from manapool.executor import LogicalRequest, RequestExecutor

if TYPE_CHECKING:
    import asyncio

    from manapool.config import ClientConfig
    from manapool.executor import ClientMetrics, QueryParams, SleepFn
    from manapool.logging_config import LogSink
    from manapool.ratelimit import TokenBucketLimiter

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


def _jsonable(payload: Any) -> Any:
    """Convert pydantic models (also inside lists) to JSON-ready data."""
    if isinstance(payload, pydantic.BaseModel):
        return payload.model_dump(mode="json", exclude_none=True)
    if isinstance(payload, (list, tuple)):
        return [_jsonable(item) for item in payload]
    return payload


def encode_json(payload: Any) -> bytes:
    """
    Serialize a request payload.

    Raises:
        NetworkError: The payload cannot be serialized.
    """
    try:
        return orjson.dumps(_jsonable(payload))
    except (TypeError, ValueError) as e:
        raise NetworkError("failed to encode request body", e) from e


class ManapoolClient(
    AccountEndpoints,
    InventoryEndpoints,
    OrderEndpoints,
    PriceEndpoints,
    WebhookEndpoints,
):
    """
    Manapool REST client.

    Every call goes through the shared rate limiter and retry policy, then
    decodes into a pydantic model or raises APIError/ValidationError/
    NetworkError.
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
        Initialize the client.

        Args:
            config: Client configuration.
            session: Optional aiohttp session; the client does not close it.
            limiter: Optional limiter, e.g. to share one budget across clients.
            log: Log sink (default: the manapool stdlib logger).
            sleep: Backoff sleep function, injectable for tests.
        """
        self._config = config
        self._log: LogSink = log if log is not None else logger
        self._executor = RequestExecutor(
            config, session=session, limiter=limiter, log=self._log, sleep=sleep
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def metrics(self) -> ClientMetrics:
        return self._executor.metrics

    @property
    def limiter(self) -> TokenBucketLimiter:
        return self._executor.limiter

    async def close(self) -> None:
        """Close the HTTP session if the client created it."""
        await self._executor.close()

    async def __aenter__(self) -> ManapoolClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: QueryParams | None = None,
        json: Any = None,
        data: bytes | None = None,
        content_type: str | None = None,
        model: Any = None,
        cancel_event: asyncio.Event | None = None,
    ) -> Any:
        """
        Perform one logical API call.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            query: Query parameters.
            json: JSON payload (pydantic models are dumped, None fields omitted).
            data: Raw body, used when json is None.
            content_type: Content-Type for data (json implies application/json).
            model: Type to decode a success body into; None discards it.
            cancel_event: Optional cancellation signal.

        Returns:
            The decoded value, or None for an empty body or model=None.

        Raises:
            APIError: Non-2xx final response.
            NetworkError: Transport failure, cancellation, or encode/read failure.
            DecodeError: Success body does not match model.
        """
        body = data
        if json is not None:
            body = encode_json(json)
            content_type = JSON_CONTENT_TYPE
        elif data is not None and content_type is None:
            content_type = "application/octet-stream"

        response = await self._executor.execute(
            LogicalRequest(method, path, query=query, body=body, content_type=content_type),
            cancel_event=cancel_event,
        )
        return await decode_response(response, model, log=self._log)
