"""
Canonical product model.

Products are produced by the normalization layer from platform payloads and
handed to callers as immutable snapshots.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from marketplace_sync.utils.id_utils import split_composite_id


class ProductStatus(str, Enum):
    """Lifecycle status of a canonical product."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"


@dataclass(frozen=True)
class MarketplaceProduct:
    """
    Platform-agnostic product (one sellable variant).

    Attributes:
        id: Composite identifier "{productId}-{variantId}"
        sku: Stock keeping unit of the variant
        title: Product title
        description: Product description (may contain HTML)
        price: Variant price
        currency: ISO currency code of the price
        stock_level: Available quantity reported by the platform
        status: Canonical lifecycle status
        images: Image URLs, in platform order
        created_at: Creation timestamp
        updated_at: Last update timestamp
        marketplace_id: Marketplace the snapshot was read from
        extra: Platform passthrough fields (vendor, tags, weight...)
    """

    id: str
    sku: str
    title: str
    price: Decimal
    currency: str
    stock_level: int
    status: ProductStatus
    description: str = ""
    images: tuple[str, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None
    marketplace_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def product_id(self) -> str:
        """Platform product id part of the composite identifier."""
        return split_composite_id(self.id)[0]

    @property
    def variant_id(self) -> str | None:
        """Platform variant id part of the composite identifier."""
        return split_composite_id(self.id)[1]

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        """Convert product to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "sku": self.sku,
            "title": self.title,
            "description": self.description,
            "price": str(self.price),
            "currency": self.currency,
            "stock_level": self.stock_level,
            "status": self.status.value,
            "images": list(self.images),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "marketplace_id": self.marketplace_id,
            "extra": dict(self.extra),
        }
