"""
Async client for the Manapool marketplace API.

Calls are rate limited by a shared token bucket, retried with exponential
backoff on transport failures and 5xx responses, and decoded into pydantic
models or typed errors (APIError, ValidationError, NetworkError).
"""

import logging

from manapool.backoff import BackoffPolicy, compute_backoff_delay
from manapool.client import ManapoolClient
from manapool.config import DEFAULT_BASE_URL, ClientConfig, __version__
from manapool.decoder import decode_response
from manapool.errors import (
    APIError,
    DecodeError,
    ErrorKind,
    ManapoolError,
    NetworkError,
    ValidationError,
    is_forbidden,
    is_known_error,
    is_not_found,
    is_rate_limited,
    is_server_error,
    is_unauthorized,
)
from manapool.executor import ClientMetrics, LogicalRequest, RequestExecutor
from manapool.logging_config import LogSink, NullLogSink
from manapool.pagination import iterate_inventory
from manapool.ratelimit import TokenBucketLimiter

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DEFAULT_BASE_URL",
    "APIError",
    "BackoffPolicy",
    "ClientConfig",
    "ClientMetrics",
    "DecodeError",
    "ErrorKind",
    "LogSink",
    "LogicalRequest",
    "ManapoolClient",
    "ManapoolError",
    "NetworkError",
    "NullLogSink",
    "RequestExecutor",
    "TokenBucketLimiter",
    "ValidationError",
    "__version__",
    "compute_backoff_delay",
    "decode_response",
    "is_forbidden",
    "is_known_error",
    "is_not_found",
    "is_rate_limited",
    "is_server_error",
    "is_unauthorized",
    "iterate_inventory",
]
