"""
Typed errors for the Manapool client.

Three kinds of failure reach callers:
- APIError: a well-formed HTTP response with a non-2xx status.
- ValidationError: caller input rejected before any network I/O.
- NetworkError: transport failure, cancellation, or body read/encode failure.

DecodeError is separate: a 2xx response whose JSON does not fit the
requested model. It is not one of the known kinds.

All classes support structural pattern matching:

    match exc:
        case APIError(404, _):
            ...
        case NetworkError(message, cause):
            ...
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar


class ErrorKind(str, Enum):
    """Category of a known client error."""

    API = "api"
    VALIDATION = "validation"
    NETWORK = "network"


class ManapoolError(Exception):
    """Base class for the known client error kinds."""

    kind: ClassVar[ErrorKind]


class APIError(ManapoolError):
    """Non-2xx HTTP response from the Manapool API."""

    kind = ErrorKind.API
    __match_args__ = ("status_code", "message")

    def __init__(self, status_code: int, message: str, body: bytes = b"") -> None:
        super().__init__(status_code, message)
        self.status_code = status_code
        self.message = message
        self.body = body

    def __str__(self) -> str:
        return f"manapool API error (status {self.status_code}): {self.message}"

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def is_forbidden(self) -> bool:
        return self.status_code == 403

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


class ValidationError(ManapoolError):
    """Caller input rejected before any request was sent."""

    kind = ErrorKind.VALIDATION
    __match_args__ = ("field", "message")

    def __init__(self, field: str, message: str) -> None:
        super().__init__(field, message)
        self.field = field
        self.message = message

    def __str__(self) -> str:
        return f"validation error on {self.field}: {self.message}"


class NetworkError(ManapoolError):
    """No usable HTTP response was obtained."""

    kind = ErrorKind.NETWORK
    __match_args__ = ("message", "cause")

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"network error: {self.message}: {self.cause}"
        return f"network error: {self.message}"


class DecodeError(ValueError):
    """Successful response body could not be decoded into the target model."""

    __match_args__ = ("message", "cause")

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


def is_known_error(exc: BaseException) -> bool:
    """Check whether exc is an API, validation or network error."""
    return isinstance(exc, ManapoolError)


def is_not_found(exc: BaseException) -> bool:
    return isinstance(exc, APIError) and exc.is_not_found


def is_unauthorized(exc: BaseException) -> bool:
    return isinstance(exc, APIError) and exc.is_unauthorized


def is_forbidden(exc: BaseException) -> bool:
    return isinstance(exc, APIError) and exc.is_forbidden


def is_rate_limited(exc: BaseException) -> bool:
    return isinstance(exc, APIError) and exc.is_rate_limited


def is_server_error(exc: BaseException) -> bool:
    return isinstance(exc, APIError) and exc.is_server_error
