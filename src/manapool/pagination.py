"""Iterate over paginated seller inventory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from manapool.errors import ValidationError
from manapool.models import MAX_PAGE_LIMIT, InventoryOptions

if TYPE_CHECKING:
    import asyncio
    from collections.abc import AsyncIterator

    from manapool.client import ManapoolClient
    from manapool.models import InventoryItem

logger = logging.getLogger(__name__)


async def iterate_inventory(
    client: ManapoolClient,
    *,
    page_size: int = MAX_PAGE_LIMIT,
    cancel_event: asyncio.Event | None = None,
) -> AsyncIterator[InventoryItem]:
    """
    Yield every item of the seller's inventory, one page at a time.

    Stops when a page is empty or offset + returned reaches the reported
    total. Errors from any page propagate to the caller.

    Args:
        client: Client to fetch pages with.
        page_size: Items per page (1..500).
        cancel_event: Optional cancellation signal for every page request.

    Raises:
        ValidationError: page_size outside 1..500.
    """
    if page_size <= 0:
        raise ValidationError("page_size", f"page_size must be positive, got {page_size}")
    InventoryOptions(limit=page_size).validate()

    offset = 0
    while True:
        page = await client.get_seller_inventory(
            InventoryOptions(limit=page_size, offset=offset), cancel_event=cancel_event
        )
        if page is None or not page.inventory:
            return
        for item in page.inventory:
            yield item

        returned = page.pagination.returned or len(page.inventory)
        offset += returned
        logger.debug("Fetched inventory page (offset=%d, total=%d)", offset, page.pagination.total)
        if offset >= page.pagination.total:
            return
