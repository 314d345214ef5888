"""
Registry of marketplace adapters.

Maps a marketplace id to the callable that builds its adapter, and creates
initialized adapters from credentials.
"""

import logging
from typing import Callable, Dict, List, Optional

from marketplace_sync.core.config import Settings, get_settings
from marketplace_sync.domain.models import MarketplaceCredentials
from marketplace_sync.utils.error_handler import ConfigurationError

from .interfaces import MarketplaceAdapter
from .shopify import ShopifyAdapter

logger = logging.getLogger(__name__)

AdapterBuilder = Callable[..., MarketplaceAdapter]


class MarketplaceAdapterFactory:
    """
    Builds adapters by marketplace id.

    Every adapter gets its own rate limiter; call allowances are never shared
    between marketplaces.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._builders: Dict[str, AdapterBuilder] = {}
        self.register("shopify", ShopifyAdapter)

    def register(self, marketplace_id: str, builder: AdapterBuilder) -> None:
        """
        Register (or replace) the builder of a marketplace.

        Args:
            marketplace_id: Identifier, case-insensitive
            builder: Callable accepting settings=... and returning an adapter
        """
        key = marketplace_id.lower()
        if key in self._builders:
            logger.info(f"Replacing adapter builder for {key}")
        self._builders[key] = builder

    def available_marketplaces(self) -> List[str]:
        return sorted(self._builders)

    def is_supported(self, marketplace_id: str) -> bool:
        return marketplace_id.lower() in self._builders

    async def create(self, marketplace_id: str, credentials: MarketplaceCredentials) -> MarketplaceAdapter:
        """
        Build and initialize an adapter.

        Raises:
            ConfigurationError: If the marketplace is not registered
            InitializationError: If the adapter fails to initialize
        """
        key = marketplace_id.lower()
        builder = self._builders.get(key)
        if builder is None:
            raise ConfigurationError(
                f"Unsupported marketplace: {marketplace_id}",
                details={"available": self.available_marketplaces()},
            )

        adapter = builder(settings=self.settings)
        await adapter.initialize(credentials)
        logger.info(f"Created {adapter.marketplace_name} adapter")
        return adapter
