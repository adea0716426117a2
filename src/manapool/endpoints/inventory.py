"""
Inventory endpoints.

Seller inventory lives under /seller/inventory; public listings under
/inventory. SKU routes take TCGPlayer SKUs, which must be positive.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from manapool.endpoints.base import EndpointMixin, require_id, require_sku
from manapool.errors import ValidationError
from manapool.logging_config import safe_log
from manapool.models import (
    InventoryBulkItemBySKU,
    InventoryItem,
    InventoryItemResponse,
    InventoryItemsResponse,
    InventoryListingResponse,
    InventoryListingsResponse,
    InventoryOptions,
    InventoryResponse,
    InventoryUpdateRequest,
)

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Sequence


class InventoryEndpoints(EndpointMixin):
    async def get_seller_inventory(
        self,
        opts: InventoryOptions | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> InventoryResponse | None:
        """
        Get one page of the seller's inventory.

        Args:
            opts: Pagination; limit 0 means 500, the maximum.
            cancel_event: Optional cancellation signal.

        Raises:
            ValidationError: limit outside 0..500 or negative offset.
        """
        opts = (opts or InventoryOptions()).validate()
        safe_log(
            self._log.debug,
            "Getting seller inventory (limit=%d, offset=%d)",
            opts.limit,
            opts.offset,
        )
        result: InventoryResponse | None = await self.request(
            "GET",
            "/seller/inventory",
            query=opts.to_query(),
            model=InventoryResponse,
            cancel_event=cancel_event,
        )
        if result is not None:
            safe_log(
                self._log.debug,
                "Retrieved %d inventory items (total: %d)",
                result.pagination.returned,
                result.pagination.total,
            )
        return result

    async def get_inventory_by_tcgplayer_id(
        self,
        tcgplayer_id: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> InventoryItem | None:
        """
        Look up a seller inventory item by TCGPlayer ID.

        Raises:
            ValidationError: Empty tcgplayer_id.
            APIError: 404 if the item is not in inventory.
        """
        segment = require_id("tcgplayer_id", tcgplayer_id)
        return await self.request(
            "GET",
            f"/seller/inventory/tcgsku/{segment}",
            model=InventoryItem,
            cancel_event=cancel_event,
        )

    async def get_inventory_listings(
        self,
        ids: Sequence[str],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> InventoryListingsResponse | None:
        """Get public listings by ID. Empty IDs are skipped."""
        query = [("id", listing_id) for listing_id in ids if listing_id]
        if not query:
            raise ValidationError("ids", "at least one listing id is required")
        return await self.request(
            "GET",
            "/inventory/listings",
            query=query,
            model=InventoryListingsResponse,
            cancel_event=cancel_event,
        )

    async def get_inventory_listing(
        self,
        listing_id: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> InventoryItemResponse | None:
        segment = require_id("id", listing_id)
        return await self.request(
            "GET",
            f"/inventory/listings/{segment}",
            model=InventoryItemResponse,
            cancel_event=cancel_event,
        )

    async def get_inventory_by_sku(
        self,
        sku: int,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> InventoryListingResponse | None:
        require_sku(sku)
        return await self.request(
            "GET",
            f"/inventory/tcgsku/{sku}",
            model=InventoryListingResponse,
            cancel_event=cancel_event,
        )

    async def update_inventory_by_sku(
        self,
        sku: int,
        update: InventoryUpdateRequest,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> InventoryListingResponse | None:
        require_sku(sku)
        return await self.request(
            "PUT",
            f"/inventory/tcgsku/{sku}",
            json=update,
            model=InventoryListingResponse,
            cancel_event=cancel_event,
        )

    async def delete_inventory_by_sku(
        self,
        sku: int,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> InventoryListingResponse | None:
        """Remove a listing; the API echoes the deleted item."""
        require_sku(sku)
        return await self.request(
            "DELETE",
            f"/inventory/tcgsku/{sku}",
            model=InventoryListingResponse,
            cancel_event=cancel_event,
        )

    async def create_inventory_bulk(
        self,
        items: Sequence[InventoryBulkItemBySKU],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> InventoryItemsResponse | None:
        """
        Create or update many listings by SKU in one request.

        Raises:
            ValidationError: Empty items.
        """
        if not items:
            raise ValidationError("items", "items cannot be empty")
        return await self.request(
            "POST",
            "/seller/inventory",
            json=list(items),
            model=InventoryItemsResponse,
            cancel_event=cancel_event,
        )
