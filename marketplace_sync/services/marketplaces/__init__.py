"""
Marketplace adapters, factory and sync service.
"""

from .base_adapter import BaseMarketplaceAdapter
from .batch import BatchOrchestrator
from .factory import MarketplaceAdapterFactory
from .interfaces import CollectionManagement, MarketplaceAdapter, supports
from .shopify import ShopifyAdapter
from .sync_service import MarketplaceSyncService

__all__ = [
    "BaseMarketplaceAdapter",
    "BatchOrchestrator",
    "CollectionManagement",
    "MarketplaceAdapter",
    "MarketplaceAdapterFactory",
    "MarketplaceSyncService",
    "ShopifyAdapter",
    "supports",
]
