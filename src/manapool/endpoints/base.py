"""Shared helpers for endpoint mixins."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from manapool.errors import ValidationError

if TYPE_CHECKING:
    import asyncio

    from manapool.executor import QueryParams
    from manapool.logging_config import LogSink


def require_id(field: str, value: str) -> str:
    """
    Check an identifier and quote it for use as a path segment.

    Raises:
        ValidationError: If value is empty.
    """
    if not value:
        raise ValidationError(field, f"{field} cannot be empty")
    return quote(value, safe="")


def require_sku(sku: int) -> int:
    """
    Check a TCGPlayer SKU.

    Raises:
        ValidationError: If sku is not positive.
    """
    if sku <= 0:
        raise ValidationError("sku", f"sku must be positive, got {sku}")
    return sku


class EndpointMixin:
    """
    Base for endpoint groups mixed into ManapoolClient.

    Subclasses call self.request(), which ManapoolClient provides.
    """

    _log: LogSink

    if TYPE_CHECKING:

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
        ) -> Any: ...
