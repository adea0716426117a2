"""Webhook registration endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from manapool.endpoints.base import EndpointMixin, require_id
from manapool.models import Webhook, WebhookRegisterRequest, WebhooksResponse

if TYPE_CHECKING:
    import asyncio


class WebhookEndpoints(EndpointMixin):
    async def get_webhooks(
        self, topic: str = "", *, cancel_event: asyncio.Event | None = None
    ) -> WebhooksResponse | None:
        """List registered webhooks, optionally filtered by topic."""
        query = {"topic": topic} if topic else None
        return await self.request(
            "GET", "/webhooks", query=query, model=WebhooksResponse, cancel_event=cancel_event
        )

    async def get_webhook(
        self, webhook_id: str, *, cancel_event: asyncio.Event | None = None
    ) -> Webhook | None:
        segment = require_id("id", webhook_id)
        return await self.request(
            "GET", f"/webhooks/{segment}", model=Webhook, cancel_event=cancel_event
        )

    async def register_webhook(
        self,
        req: WebhookRegisterRequest,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> Webhook | None:
        return await self.request(
            "PUT", "/webhooks/register", json=req, model=Webhook, cancel_event=cancel_event
        )

    async def delete_webhook(
        self, webhook_id: str, *, cancel_event: asyncio.Event | None = None
    ) -> None:
        segment = require_id("id", webhook_id)
        await self.request("DELETE", f"/webhooks/{segment}", cancel_event=cancel_event)
