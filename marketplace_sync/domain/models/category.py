"""
Canonical taxonomy models.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class MarketplaceCategory:
    """
    Marketplace category (a collection on Shopify).

    Attributes:
        id: Platform category id
        name: Display name
        path: Handle or path of the category
        parent_id: Parent category id; None for top-level categories
        level: Depth in the taxonomy, 1 for top level
        is_leaf: Whether products can be attached directly
    """

    id: str
    name: str
    path: str
    parent_id: str | None = None
    level: int = 1
    is_leaf: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class CategoryAttribute:
    """Attribute a product listed in a category can carry."""

    id: str
    name: str
    required: bool
    type: str
    values: tuple[str, ...] | None = None
