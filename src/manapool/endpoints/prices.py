"""Market price exports. These are large, so callers may want a longer timeout."""

from __future__ import annotations

from typing import TYPE_CHECKING

from manapool.endpoints.base import EndpointMixin
from manapool.models import SealedPricesList, SinglesPricesList, VariantPricesList

if TYPE_CHECKING:
    import asyncio


class PriceEndpoints(EndpointMixin):
    async def get_singles_prices(
        self, *, cancel_event: asyncio.Event | None = None
    ) -> SinglesPricesList | None:
        return await self.request(
            "GET", "/prices/singles", model=SinglesPricesList, cancel_event=cancel_event
        )

    async def get_variant_prices(
        self, *, cancel_event: asyncio.Event | None = None
    ) -> VariantPricesList | None:
        return await self.request(
            "GET", "/prices/variants", model=VariantPricesList, cancel_event=cancel_event
        )

    async def get_sealed_prices(
        self, *, cancel_event: asyncio.Event | None = None
    ) -> SealedPricesList | None:
        return await self.request(
            "GET", "/prices/sealed", model=SealedPricesList, cancel_event=cancel_event
        )
