"""
Inbound payloads for adapter write and filter operations.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from .product import ProductStatus


@dataclass(frozen=True)
class StockUpdate:
    """
    Absolute stock level for one SKU.

    location_id pins the inventory location; the platform default is used
    when it is None.
    """

    sku: str
    quantity: int
    location_id: str | None = None


@dataclass(frozen=True)
class PriceUpdate:
    """New price for one SKU."""

    sku: str
    price: Decimal
    compare_at_price: Decimal | None = None


@dataclass(frozen=True)
class StatusUpdate:
    """New lifecycle status for one SKU."""

    sku: str
    status: ProductStatus


@dataclass(frozen=True)
class ProductFilters:
    """
    Filters for product listings.

    Attributes:
        updated_after: Only products updated after this instant
        status: Canonical status to filter on
        collection_id: Only products in this collection
        vendor: Vendor name
        product_type: Product type
        page_token: Continuation cursor from a previous page
    """

    updated_after: datetime | None = None
    status: ProductStatus | None = None
    collection_id: str | None = None
    vendor: str | None = None
    product_type: str | None = None
    page_token: str | None = None


@dataclass(frozen=True)
class TrackingInfo:
    """Shipment tracking attached to a fulfillment."""

    carrier: str
    tracking_number: str
    tracking_url: str | None = None
    shipped_date: datetime | None = None
