"""
Request and response schemas for the Manapool API.

Response models ignore unknown fields so new API fields do not break
decoding. Request models serialize with model_dump(mode="json").
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

from manapool.errors import ValidationError

MAX_PAGE_LIMIT = 500


def parse_timestamp(value: Any) -> Any:
    """
    Parse Manapool timestamps.

    Accepts RFC 3339 ("2025-08-05T20:38:54.549229Z") and the no-colon offset
    form ("2025-08-05T20:38:54.549229+0000"). Non-strings pass through.
    """
    if not isinstance(value, str):
        return value
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"cannot parse timestamp: {value!r}")


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


Timestamp = Annotated[
    datetime,
    BeforeValidator(parse_timestamp),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]


class ApiModel(BaseModel):
    """Base for API response models."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class RequestModel(BaseModel):
    """Base for request payloads."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


# =============================================================================
# Account
# =============================================================================


class Account(ApiModel):
    username: str = ""
    email: str = ""
    verified: bool = False
    singles_live: bool = False
    sealed_live: bool = False
    payouts_enabled: bool = False


class SellerAccountUpdate(RequestModel):
    singles_live: bool | None = None
    sealed_live: bool | None = None


# =============================================================================
# Inventory
# =============================================================================

_CONDITION_NAMES = {
    "NM": "Near Mint",
    "LP": "Lightly Played",
    "MP": "Moderately Played",
    "HP": "Heavily Played",
    "DMG": "Damaged",
}
_FOIL_FINISHES = frozenset({"FO", "EF"})


class Pagination(ApiModel):
    total: int = 0
    returned: int = 0
    offset: int = 0
    limit: int = 0


class Single(ApiModel):
    scryfall_id: str = ""
    mtgjson_id: str = ""
    tcgplayer_id: int | None = None
    name: str = ""
    set: str = ""
    number: str = ""
    language_id: str = ""
    condition_id: str = ""
    finish_id: str = ""

    def condition_name(self) -> str:
        """Human-readable condition, e.g. "Near Mint Foil"."""
        name = _CONDITION_NAMES.get(self.condition_id, "Unknown")
        if self.finish_id in _FOIL_FINISHES:
            name += " Foil"
        return name


class Sealed(ApiModel):
    mtgjson_id: str = ""
    tcgplayer_id: int | None = None
    name: str = ""
    set: str = ""
    language_id: str = ""


class Product(ApiModel):
    type: str = ""
    id: str = ""
    tcgplayer_sku: int | None = None
    single: Single | None = None
    sealed: Sealed | None = None


class InventoryItem(ApiModel):
    id: str = ""
    product_type: str = ""
    product_id: str = ""
    product: Product = Field(default_factory=Product)
    price_cents: int = 0
    quantity: int = 0
    effective_as_of: Timestamp | None = None

    @property
    def price_dollars(self) -> float:
        return self.price_cents / 100.0


class InventoryResponse(ApiModel):
    inventory: list[InventoryItem] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class InventoryItemsResponse(ApiModel):
    inventory: list[InventoryItem] = Field(default_factory=list)


class InventoryListingResponse(ApiModel):
    inventory: InventoryItem = Field(default_factory=InventoryItem)


class InventoryListingsResponse(ApiModel):
    inventory_items: list[InventoryItem] = Field(default_factory=list)


class InventoryItemResponse(ApiModel):
    inventory_item: InventoryItem = Field(default_factory=InventoryItem)


class InventoryUpdateRequest(RequestModel):
    price_cents: int
    quantity: int


class InventoryBulkItemBySKU(RequestModel):
    tcgplayer_sku: int
    price_cents: int
    quantity: int


@dataclass
class InventoryOptions:
    """Pagination for seller inventory (limit 0 means the 500 default)."""

    limit: int = 0
    offset: int = 0

    def validate(self) -> InventoryOptions:
        """
        Check bounds and apply defaults.

        Returns:
            A copy with the default limit applied.

        Raises:
            ValidationError: limit outside 0..500 or negative offset.
        """
        if self.limit < 0:
            raise ValidationError("limit", f"limit must be non-negative, got {self.limit}")
        if self.limit > MAX_PAGE_LIMIT:
            raise ValidationError("limit", f"limit must not exceed {MAX_PAGE_LIMIT}, got {self.limit}")
        if self.offset < 0:
            raise ValidationError("offset", f"offset must be non-negative, got {self.offset}")
        return InventoryOptions(limit=self.limit or MAX_PAGE_LIMIT, offset=self.offset)

    def to_query(self) -> dict[str, str]:
        return {"limit": str(self.limit), "offset": str(self.offset)}


# =============================================================================
# Orders
# =============================================================================


@dataclass
class OrdersOptions:
    """Filters for order listing endpoints. Unset filters are omitted."""

    since: datetime | None = None
    is_unfulfilled: bool | None = None
    is_fulfilled: bool | None = None
    has_fulfillments: bool | None = None
    label: str = ""
    limit: int = 0
    offset: int = 0

    def validate(self) -> None:
        if self.limit < 0:
            raise ValidationError("limit", f"limit must be non-negative, got {self.limit}")
        if self.offset < 0:
            raise ValidationError("offset", f"offset must be non-negative, got {self.offset}")

    def to_query(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.since is not None:
            params["since"] = format_timestamp(self.since)
        for name in ("is_unfulfilled", "is_fulfilled", "has_fulfillments"):
            value = getattr(self, name)
            if value is not None:
                params[name] = "true" if value else "false"
        if self.label:
            params["label"] = self.label
        if self.limit > 0:
            params["limit"] = str(self.limit)
        if self.offset > 0:
            params["offset"] = str(self.offset)
        return params


class Address(ApiModel):
    name: str = ""
    line1: str = ""
    line2: str | None = None
    line3: str | None = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""


class OrderSummary(ApiModel):
    id: str = ""
    created_at: Timestamp | None = None
    label: str = ""
    total_cents: int = 0
    shipping_method: str = ""
    latest_fulfillment_status: str | None = None


class OrdersResponse(ApiModel):
    orders: list[OrderSummary] = Field(default_factory=list)


class OrderPayment(ApiModel):
    subtotal_cents: int = 0
    shipping_cents: int = 0
    total_cents: int = 0
    fee_cents: int = 0
    net_cents: int = 0


class OrderFulfillment(ApiModel):
    status: str | None = None
    tracking_company: str | None = None
    tracking_number: str | None = None
    tracking_url: str | None = None
    in_transit_at: Timestamp | None = None
    estimated_delivery_at: Timestamp | None = None
    delivered_at: Timestamp | None = None


class OrderItem(ApiModel):
    tcgsku: int | None = None
    product_id: str = ""
    product_type: str = ""
    product: Product = Field(default_factory=Product)
    quantity: int = 0
    price_cents: int = 0


class OrderDetails(OrderSummary):
    buyer_id: str = ""
    shipping_address: Address = Field(default_factory=Address)
    payment: OrderPayment = Field(default_factory=OrderPayment)
    fulfillments: list[OrderFulfillment] = Field(default_factory=list)
    items: list[OrderItem] = Field(default_factory=list)


class OrderDetailsResponse(ApiModel):
    order: OrderDetails = Field(default_factory=OrderDetails)


class OrderFulfillmentRequest(RequestModel):
    status: str | None = None
    tracking_company: str | None = None
    tracking_number: str | None = None
    tracking_url: str | None = None
    in_transit_at: Timestamp | None = None
    estimated_delivery_at: Timestamp | None = None
    delivered_at: Timestamp | None = None


class OrderFulfillmentResponse(ApiModel):
    fulfillment: OrderFulfillment = Field(default_factory=OrderFulfillment)


class OrderReportedItem(ApiModel):
    order_item_id: str = ""
    quantity: int = 0


class OrderReportedRemediation(ApiModel):
    remediation_expense_cents: int | None = None
    comment: str | None = None
    created_at: Timestamp | None = None


class OrderReportedCharge(ApiModel):
    seller_charge_cents: int | None = None
    payout_id: str | None = None


class OrderReportedIssues(ApiModel):
    comment: str | None = None
    created_at: Timestamp | None = None
    proposed_remediation_method: str | None = None
    reporter_role: str = ""
    is_nondelivery_report: bool = False
    rescinded: bool = False
    items: list[OrderReportedItem] = Field(default_factory=list)
    remediations: list[OrderReportedRemediation] = Field(default_factory=list)
    charges: list[OrderReportedCharge] = Field(default_factory=list)


class OrderReport(ApiModel):
    report_id: str = ""
    order_id: str = ""
    order_reported_issues: OrderReportedIssues = Field(default_factory=OrderReportedIssues)


class OrderReportsResponse(ApiModel):
    reports: list[OrderReport] = Field(default_factory=list)


# =============================================================================
# Prices
# =============================================================================


class PricesMeta(ApiModel):
    as_of: Timestamp | None = None


class SinglePriceListing(ApiModel):
    url: str = ""
    name: str = ""
    set_code: str = ""
    number: str = ""
    multiverse_id: str | None = None
    scryfall_id: str = ""
    available_quantity: int = 0
    price_cents: int | None = None
    price_cents_lp_plus: int | None = None
    price_cents_nm: int | None = None
    price_cents_foil: int | None = None
    price_cents_lp_plus_foil: int | None = None
    price_cents_nm_foil: int | None = None
    price_cents_etched: int | None = None
    price_cents_lp_plus_etched: int | None = None
    price_cents_nm_etched: int | None = None


class SinglesPricesList(ApiModel):
    meta: PricesMeta = Field(default_factory=PricesMeta)
    data: list[SinglePriceListing] = Field(default_factory=list)


class VariantPriceListing(ApiModel):
    url: str = ""
    product_type: str = ""
    product_id: str = ""
    set_code: str = ""
    number: str = ""
    name: str = ""
    scryfall_id: str = ""
    tcgplayer_product_id: int | None = None
    language_id: str = ""
    condition_id: str | None = None
    finish_id: str | None = None
    low_price: int = 0
    available_quantity: int = 0


class VariantPricesList(ApiModel):
    meta: PricesMeta = Field(default_factory=PricesMeta)
    data: list[VariantPriceListing] = Field(default_factory=list)


class SealedPriceListing(ApiModel):
    url: str = ""
    product_type: str = ""
    product_id: str = ""
    set_code: str = ""
    name: str = ""
    tcgplayer_product_id: int | None = None
    language_id: str = ""
    low_price: int = 0
    available_quantity: int = 0


class SealedPricesList(ApiModel):
    meta: PricesMeta = Field(default_factory=PricesMeta)
    data: list[SealedPriceListing] = Field(default_factory=list)


# =============================================================================
# Webhooks
# =============================================================================


class Webhook(ApiModel):
    id: str = ""
    topic: str = ""
    callback_url: str = ""


class WebhooksResponse(ApiModel):
    webhooks: list[Webhook] = Field(default_factory=list)


class WebhookRegisterRequest(RequestModel):
    topic: str
    callback_url: str
