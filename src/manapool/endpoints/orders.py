"""Order endpoints (buyer-facing /orders and seller-facing /seller/orders)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from manapool.endpoints.base import EndpointMixin, require_id
from manapool.models import (
    OrderDetailsResponse,
    OrderFulfillmentRequest,
    OrderFulfillmentResponse,
    OrderReportsResponse,
    OrdersOptions,
    OrdersResponse,
)

if TYPE_CHECKING:
    import asyncio


class OrderEndpoints(EndpointMixin):
    async def _list_orders(
        self,
        path: str,
        opts: OrdersOptions | None,
        cancel_event: asyncio.Event | None,
    ) -> OrdersResponse | None:
        opts = opts or OrdersOptions()
        opts.validate()
        return await self.request(
            "GET",
            path,
            query=opts.to_query(),
            model=OrdersResponse,
            cancel_event=cancel_event,
        )

    async def get_orders(
        self,
        opts: OrdersOptions | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> OrdersResponse | None:
        return await self._list_orders("/orders", opts, cancel_event)

    async def get_order(
        self, order_id: str, *, cancel_event: asyncio.Event | None = None
    ) -> OrderDetailsResponse | None:
        segment = require_id("id", order_id)
        return await self.request(
            "GET", f"/orders/{segment}", model=OrderDetailsResponse, cancel_event=cancel_event
        )

    async def update_order_fulfillment(
        self,
        order_id: str,
        req: OrderFulfillmentRequest,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> OrderFulfillmentResponse | None:
        segment = require_id("id", order_id)
        return await self.request(
            "PUT",
            f"/orders/{segment}/fulfillment",
            json=req,
            model=OrderFulfillmentResponse,
            cancel_event=cancel_event,
        )

    async def get_seller_orders(
        self,
        opts: OrdersOptions | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> OrdersResponse | None:
        return await self._list_orders("/seller/orders", opts, cancel_event)

    async def get_seller_order(
        self, order_id: str, *, cancel_event: asyncio.Event | None = None
    ) -> OrderDetailsResponse | None:
        segment = require_id("id", order_id)
        return await self.request(
            "GET",
            f"/seller/orders/{segment}",
            model=OrderDetailsResponse,
            cancel_event=cancel_event,
        )

    async def update_seller_order_fulfillment(
        self,
        order_id: str,
        req: OrderFulfillmentRequest,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> OrderFulfillmentResponse | None:
        segment = require_id("id", order_id)
        return await self.request(
            "PUT",
            f"/seller/orders/{segment}/fulfillment",
            json=req,
            model=OrderFulfillmentResponse,
            cancel_event=cancel_event,
        )

    async def get_seller_order_reports(
        self, order_id: str, *, cancel_event: asyncio.Event | None = None
    ) -> OrderReportsResponse | None:
        """Get buyer-reported issues for a seller order."""
        segment = require_id("id", order_id)
        return await self.request(
            "GET",
            f"/seller/orders/{segment}/reports",
            model=OrderReportsResponse,
            cancel_event=cancel_event,
        )
