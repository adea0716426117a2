"""
Response decoding.

Turns a raw aiohttp response into either a validated pydantic value or an
APIError. The response is always read and released exactly once.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, TypeVar, overload

import aiohttp
import orjson
import pydantic

from manapool.errors import APIError, DecodeError, NetworkError
from manapool.logging_config import LogSink, safe_log

logger = logging.getLogger(__name__)

T = TypeVar("T")


@lru_cache(maxsize=256)
def _adapter(model: Any) -> pydantic.TypeAdapter[Any]:
    return pydantic.TypeAdapter(model)


def api_error_from_body(status_code: int, body: bytes) -> APIError:
    """
    Build an APIError, preferring the JSON envelope's message.

    The raw body is the default message. When a JSON object has string (or
    absent) "error" and "message" fields, the non-empty one replaces it,
    "error" first.
    """
    text = body.decode("utf-8", errors="replace")
    message = text
    try:
        data = orjson.loads(body) if body else None
    except orjson.JSONDecodeError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        detail = data.get("message")
        # A non-string field means the envelope does not apply; keep the raw body
        if all(value is None or isinstance(value, str) for value in (error, detail)):
            if error:
                message = error
            elif detail:
                message = detail

    return APIError(status_code, message, body)


def decode_body(body: bytes, model: type[T] | Any) -> T:
    """
    Parse JSON bytes and validate them against model.

    Raises:
        DecodeError: Malformed JSON or a schema mismatch.
    """
    try:
        data = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise DecodeError("failed to decode response", e) from e
    try:
        result: T = _adapter(model).validate_python(data)
    except pydantic.ValidationError as e:
        raise DecodeError("failed to decode response", e) from e
    return result


@overload
async def decode_response(
    response: aiohttp.ClientResponse, model: None = None, *, log: LogSink | None = None
) -> None: ...


@overload
async def decode_response(
    response: aiohttp.ClientResponse, model: type[T] | Any, *, log: LogSink | None = None
) -> T | None: ...


async def decode_response(
    response: aiohttp.ClientResponse,
    model: Any = None,
    *,
    log: LogSink | None = None,
) -> Any:
    """
    Decode a response into model.

    Args:
        response: Response returned by the executor.
        model: Pydantic model (or any TypeAdapter-compatible type); None to
            discard the body.
        log: Log sink; status and raw body are logged at debug level.

    Returns:
        The validated value, or None for an empty body or when model is None.

    Raises:
        APIError: Status outside [200, 300).
        NetworkError: The body could not be read.
        DecodeError: Success body does not decode into model.
    """
    sink: LogSink = log if log is not None else logger
    try:
        body = await response.read()
    except (aiohttp.ClientError, TimeoutError) as e:
        raise NetworkError("failed to read response body", e) from e
    finally:
        response.release()

    status = response.status
    safe_log(
        sink.debug,
        "API response: status=%d, body=%s",
        status,
        body.decode("utf-8", errors="replace"),
    )

    if not 200 <= status < 300:
        raise api_error_from_body(status, body)

    if model is None or not body:
        return None

    return decode_body(body, model)
