"""
Endpoint groups mixed into ManapoolClient.

Each group validates its arguments (raising ValidationError before any I/O),
builds the path and query, and delegates to ManapoolClient.request().
"""

from manapool.endpoints.account import AccountEndpoints
from manapool.endpoints.inventory import InventoryEndpoints
from manapool.endpoints.orders import OrderEndpoints
from manapool.endpoints.prices import PriceEndpoints
from manapool.endpoints.webhooks import WebhookEndpoints

__all__ = [
    "AccountEndpoints",
    "InventoryEndpoints",
    "OrderEndpoints",
    "PriceEndpoints",
    "WebhookEndpoints",
]
