"""Tests unitarios para la fábrica de adaptadores."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from marketplace_sync.services.marketplaces import MarketplaceAdapterFactory, ShopifyAdapter
from marketplace_sync.utils.error_handler import ConfigurationError, InitializationError


def fake_builder(adapter):
    return MagicMock(return_value=adapter)


class TestMarketplaceAdapterFactory:
    def test_shopify_registered_by_default(self, settings):
        factory = MarketplaceAdapterFactory(settings)

        assert factory.available_marketplaces() == ["shopify"]
        assert factory.is_supported("Shopify")

    @pytest.mark.asyncio
    async def test_create_initializes_adapter(self, settings, credentials):
        adapter = MagicMock(initialize=AsyncMock(), marketplace_name="Fake")
        builder = fake_builder(adapter)
        factory = MarketplaceAdapterFactory(settings)
        factory.register("Fake", builder)

        created = await factory.create("FAKE", credentials)

        assert created is adapter
        builder.assert_called_once_with(settings=settings)
        adapter.initialize.assert_awaited_once_with(credentials)

    @pytest.mark.asyncio
    async def test_unknown_marketplace(self, settings, credentials):
        factory = MarketplaceAdapterFactory(settings)

        with pytest.raises(ConfigurationError, match="Unsupported marketplace"):
            await factory.create("ebay", credentials)

    @pytest.mark.asyncio
    async def test_initialization_error_propagates(self, settings, credentials):
        adapter = MagicMock(initialize=AsyncMock(side_effect=InitializationError("bad token")))
        factory = MarketplaceAdapterFactory(settings)
        factory.register("fake", fake_builder(adapter))

        with pytest.raises(InitializationError):
            await factory.create("fake", credentials)

    def test_each_adapter_gets_its_own_limiter(self, settings):
        first = ShopifyAdapter(settings=settings)
        second = ShopifyAdapter(settings=settings)

        assert first.rate_limiter is not second.rate_limiter
