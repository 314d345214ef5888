"""
Unified Shopify REST client that combines all specialized clients.

This module provides a single interface that delegates to specialized clients
sharing one HTTP session, one rate limiter and one retry handler.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from marketplace_sync.core.config import Settings
from marketplace_sync.domain.models.credentials import MarketplaceCredentials
from marketplace_sync.utils.rate_limiter import LeakyBucketRateLimiter
from marketplace_sync.utils.retry_handler import RetryHandler

from .base_client import BaseShopifyRestClient, ShopifyPage
from .collection_client import ShopifyCollectionClient
from .inventory_client import ShopifyInventoryClient
from .order_client import ShopifyOrderClient
from .product_client import ShopifyProductClient

logger = logging.getLogger(__name__)


class ShopifyRestClient(BaseShopifyRestClient):
    """
    Unified Shopify REST client.

    Specialized clients are reachable as attributes (products, inventory,
    orders, collections); the delegating methods below are what the adapter
    uses.
    """

    def __init__(
        self,
        credentials: MarketplaceCredentials,
        rate_limiter: LeakyBucketRateLimiter,
        settings: Optional[Settings] = None,
        retry_handler: Optional[RetryHandler] = None,
    ):
        """Initialize the unified client with all specialized clients."""
        super().__init__(credentials, rate_limiter, settings=settings, retry_handler=retry_handler)

        shared = {"settings": self.settings, "retry_handler": self.retry_handler}
        self.products = ShopifyProductClient(credentials, rate_limiter, **shared)
        self.inventory = ShopifyInventoryClient(credentials, rate_limiter, **shared)
        self.orders = ShopifyOrderClient(credentials, rate_limiter, **shared)
        self.collections = ShopifyCollectionClient(credentials, rate_limiter, **shared)

    @property
    def _specialized_clients(self) -> List[BaseShopifyRestClient]:
        return [self.products, self.inventory, self.orders, self.collections]

    async def initialize(self):
        """
        Initialize the unified client and share its session.
        """
        await super().initialize()

        for client in self._specialized_clients:
            client.session = self.session

    async def close(self):
        """Close the shared session once and detach it from the specialized clients."""
        await super().close()

        for client in self._specialized_clients:
            client.session = None

    # =============================================================================
    # PRODUCT OPERATIONS - Delegate to ProductClient
    # =============================================================================

    async def list_products(self, limit: int = 250, page_token: Optional[str] = None, **filters: Any) -> ShopifyPage:
        """Delegate to product client."""
        return await self.products.list_products(limit, page_token, **filters)

    async def count_products(self, **filters: Any) -> int:
        """Delegate to product client."""
        return await self.products.count_products(**filters)

    async def get_product(self, product_id: str) -> Dict[str, Any]:
        """Delegate to product client."""
        return await self.products.get_product(product_id)

    async def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Delegate to product client."""
        return await self.products.update_product(product_id, fields)

    async def get_variant(self, variant_id: str) -> Dict[str, Any]:
        """Delegate to product client."""
        return await self.products.get_variant(variant_id)

    async def update_variant(self, variant_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Delegate to product client."""
        return await self.products.update_variant(variant_id, fields)

    # =============================================================================
    # INVENTORY OPERATIONS - Delegate to InventoryClient
    # =============================================================================

    async def set_inventory_level(self, inventory_item_id: str, location_id: str, available: int) -> Dict[str, Any]:
        """Delegate to inventory client."""
        return await self.inventory.set_inventory_level(inventory_item_id, location_id, available)

    # =============================================================================
    # ORDER OPERATIONS - Delegate to OrderClient
    # =============================================================================

    async def list_orders(
        self,
        updated_at_min: Optional[datetime] = None,
        limit: int = 50,
        page_token: Optional[str] = None,
        status: str = "any",
    ) -> ShopifyPage:
        """Delegate to order client."""
        return await self.orders.list_orders(updated_at_min, limit, page_token, status)

    async def count_orders(self, updated_at_min: Optional[datetime] = None, status: str = "any") -> int:
        """Delegate to order client."""
        return await self.orders.count_orders(updated_at_min, status)

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        """Delegate to order client."""
        return await self.orders.get_order(order_id)

    async def update_order(self, order_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Delegate to order client."""
        return await self.orders.update_order(order_id, fields)

    async def cancel_order(self, order_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        """Delegate to order client."""
        return await self.orders.cancel_order(order_id, reason)

    async def create_fulfillment(self, order_id: str, fulfillment: Dict[str, Any]) -> Dict[str, Any]:
        """Delegate to order client."""
        return await self.orders.create_fulfillment(order_id, fulfillment)

    # =============================================================================
    # COLLECTION OPERATIONS - Delegate to CollectionClient
    # =============================================================================

    async def list_custom_collections(self, limit: int = 250) -> List[Dict[str, Any]]:
        """Delegate to collection client."""
        return await self.collections.list_custom_collections(limit)

    async def list_smart_collections(self, limit: int = 250) -> List[Dict[str, Any]]:
        """Delegate to collection client."""
        return await self.collections.list_smart_collections(limit)

    async def list_collection_products(
        self, collection_id: str, limit: int = 250, page_token: Optional[str] = None
    ) -> ShopifyPage:
        """Delegate to collection client."""
        return await self.collections.list_collection_products(collection_id, limit, page_token)

    async def create_collect(self, collection_id: str, product_id: str) -> Dict[str, Any]:
        """Delegate to collection client."""
        return await self.collections.create_collect(collection_id, product_id)
