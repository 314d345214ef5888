"""
Shopify REST clients organized by responsibility.

This module contains specialized REST clients for different Shopify resources,
following the single responsibility principle.
"""

from .base_client import BaseShopifyRestClient, ShopifyPage, ShopifyResponse
from .collection_client import ShopifyCollectionClient
from .inventory_client import ShopifyInventoryClient
from .order_client import ShopifyOrderClient
from .product_client import ShopifyProductClient
from .unified_client import ShopifyRestClient

__all__ = [
    "BaseShopifyRestClient",
    "ShopifyPage",
    "ShopifyResponse",
    "ShopifyProductClient",
    "ShopifyInventoryClient",
    "ShopifyOrderClient",
    "ShopifyCollectionClient",
    "ShopifyRestClient",
]
