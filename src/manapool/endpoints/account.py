"""Seller account endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from manapool.endpoints.base import EndpointMixin
from manapool.models import Account, SellerAccountUpdate

if TYPE_CHECKING:
    import asyncio


class AccountEndpoints(EndpointMixin):
    async def get_seller_account(
        self, *, cancel_event: asyncio.Event | None = None
    ) -> Account | None:
        """Get the authenticated seller's account."""
        return await self.request("GET", "/account", model=Account, cancel_event=cancel_event)

    async def update_seller_account(
        self,
        update: SellerAccountUpdate,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> Account | None:
        """
        Update seller account settings.

        Fields left as None are not sent.
        """
        return await self.request(
            "PUT", "/account", json=update, model=Account, cancel_event=cancel_event
        )
