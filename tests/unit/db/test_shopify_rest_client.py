"""Tests unitarios para los clientes REST de Shopify."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from marketplace_sync.db.shopify_clients import BaseShopifyRestClient, ShopifyRestClient
from marketplace_sync.domain.models import MarketplaceCredentials
from marketplace_sync.utils.error_handler import (
    AuthenticationError,
    ConfigurationError,
    NotFoundError,
    NotInitializedError,
    RateLimitError,
    TransportError,
    ValidationError,
)
from marketplace_sync.utils.rate_limiter import LeakyBucketRateLimiter
from marketplace_sync.utils.retry_handler import RetryHandler, RetryPolicy

BASE_URL = "https://test-shop.myshopify.com/admin/api/2024-10"


@pytest.fixture
def rate_limiter():
    return LeakyBucketRateLimiter(1000, 40)


@pytest.fixture
def client(credentials, rate_limiter, settings):
    return ShopifyRestClient(credentials, rate_limiter, settings=settings)


def attach(client, session):
    """Comparte una sesión falsa con el cliente y sus clientes especializados."""
    client.session = session
    for specialized in (client.products, client.inventory, client.orders, client.collections):
        specialized.session = session
    return session


class TestConstruction:
    def test_requires_rate_limiter(self, credentials, settings):
        with pytest.raises(ConfigurationError):
            BaseShopifyRestClient(credentials, None, settings=settings)

    def test_base_url_uses_credentials_api_version(self, rate_limiter, settings):
        credentials = MarketplaceCredentials(store_domain="shop.myshopify.com", access_token="t", api_version="2025-01")
        client = BaseShopifyRestClient(credentials, rate_limiter, settings=settings)

        assert client.base_url == "https://shop.myshopify.com/admin/api/2025-01"

    def test_specialized_clients_share_dependencies(self, client):
        assert client.products.retry_handler is client.retry_handler
        assert client.orders.rate_limiter is client.rate_limiter


class TestSessionLifecycle:
    """Tests de creación y cierre de la sesión compartida."""

    @pytest.mark.asyncio
    async def test_initialize_sets_token_header_and_shares_session(self, client):
        with (
            patch("marketplace_sync.db.shopify_clients.base_client.aiohttp.ClientSession") as mock_session_cls,
            patch("marketplace_sync.db.shopify_clients.base_client.aiohttp.TCPConnector"),
        ):
            mock_session_cls.return_value = MagicMock(close=AsyncMock())
            await client.initialize()

        headers = mock_session_cls.call_args.kwargs["headers"]
        assert headers["X-Shopify-Access-Token"] == "shpat_test"
        assert mock_session_cls.call_args.kwargs["auth"] is None
        assert client.products.session is client.session
        assert client.collections.session is client.session

        await client.close()

        assert client.session is None
        assert client.orders.session is None

    @pytest.mark.asyncio
    async def test_request_before_initialize_fails(self, client):
        with pytest.raises(NotInitializedError):
            await client.test_connection()


class TestRequests:
    """Tests del ciclo petición/respuesta."""

    @pytest.mark.asyncio
    async def test_list_products_parses_next_cursor(self, client, session_factory, response_factory):
        link = f'<{BASE_URL}/products.json?limit=2&page_info=cursor-2>; rel="next"'
        session = attach(
            client,
            session_factory(
                [response_factory(200, {"products": [{"id": 1}, {"id": 2}]}, {"Link": link})]
            ),
        )

        page = await client.list_products(limit=2, status="active")

        assert [p["id"] for p in page.items] == [1, 2]
        assert page.next_page_token == "cursor-2"
        assert session.calls[0]["url"] == f"{BASE_URL}/products.json"
        assert session.calls[0]["params"] == {"limit": 2, "status": "active"}

    @pytest.mark.asyncio
    async def test_cursor_replaces_filters(self, client, session_factory, response_factory):
        """Con page_info Shopify no acepta otros filtros."""
        session = attach(client, session_factory([response_factory(200, {"products": []})]))

        await client.list_products(limit=500, page_token="abc", status="active")

        assert session.calls[0]["params"] == {"limit": 250, "page_info": "abc"}

    @pytest.mark.asyncio
    async def test_none_params_are_dropped(self, client, session_factory, response_factory):
        session = attach(client, session_factory([response_factory(200, {"count": 3})]))

        assert await client.count_products(vendor=None, status="draft") == 3
        assert session.calls[0]["params"] == {"status": "draft"}

    @pytest.mark.asyncio
    async def test_each_request_acquires_a_token(self, client, session_factory, response_factory):
        attach(client, session_factory([response_factory(200, {"shop": {"name": "S"}})]))
        client.rate_limiter.acquire = AsyncMock()

        await client.test_connection()

        client.rate_limiter.acquire.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_call_limit_header_is_recorded(self, client, session_factory, response_factory):
        headers = {"X-Shopify-Shop-Api-Call-Limit": "12/40"}
        attach(client, session_factory([response_factory(200, {"shop": {"name": "S"}}, headers)]))

        await client.test_connection()

        assert client.rate_limiter.platform_telemetry["used"] == 12
        assert client.rate_limiter.platform_telemetry["limit"] == 40

    @pytest.mark.asyncio
    async def test_update_variant_payload(self, client, session_factory, response_factory):
        session = attach(client, session_factory([response_factory(200, {"variant": {"id": 201}})]))

        await client.update_variant("201", {"price": "9.99"})

        call = session.calls[0]
        assert call["method"] == "PUT"
        assert call["url"] == f"{BASE_URL}/variants/201.json"
        assert call["json"] == {"variant": {"id": 201, "price": "9.99"}}

    @pytest.mark.asyncio
    async def test_set_inventory_level_payload(self, client, session_factory, response_factory):
        session = attach(client, session_factory([response_factory(200, {"inventory_level": {"available": 5}})]))

        await client.set_inventory_level("301", "gid://shopify/Location/401", 5)

        assert session.calls[0]["url"] == f"{BASE_URL}/inventory_levels/set.json"
        assert session.calls[0]["json"] == {"inventory_item_id": 301, "location_id": 401, "available": 5}

    @pytest.mark.asyncio
    async def test_set_inventory_level_rejects_negative(self, client, session_factory):
        session = attach(client, session_factory([]))

        with pytest.raises(ValidationError):
            await client.set_inventory_level("301", "401", -1)

        assert session.calls == []

    @pytest.mark.asyncio
    async def test_list_orders_includes_any_status(self, client, session_factory, response_factory):
        session = attach(client, session_factory([response_factory(200, {"orders": []})]))

        await client.list_orders(updated_at_min=datetime(2024, 3, 1, tzinfo=UTC), limit=20)

        assert session.calls[0]["params"] == {
            "limit": 20,
            "status": "any",
            "updated_at_min": "2024-03-01T00:00:00+00:00",
        }

    @pytest.mark.asyncio
    async def test_default_location_prefers_active(self, client, session_factory, response_factory):
        locations = {"locations": [{"id": 1, "active": False}, {"id": 2, "active": True}]}
        attach(client, session_factory([response_factory(200, locations)]))

        assert await client.get_default_location_id() == "2"

    @pytest.mark.asyncio
    async def test_no_locations_fails(self, client, session_factory, response_factory):
        attach(client, session_factory([response_factory(200, {"locations": []})]))

        with pytest.raises(TransportError):
            await client.get_default_location_id()


class TestErrorClassification:
    """Tests de clasificación de respuestas no exitosas."""

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, client, session_factory, response_factory):
        attach(client, session_factory([response_factory(404, {"errors": "Not Found"})]))

        with pytest.raises(NotFoundError, match="Not Found"):
            await client.get_product("111")

    @pytest.mark.asyncio
    async def test_422_flattens_field_errors(self, client, session_factory, response_factory):
        body = {"errors": {"price": ["must be a number"]}}
        attach(client, session_factory([response_factory(422, body)]))

        with pytest.raises(ValidationError, match="price: must be a number"):
            await client.update_variant("201", {"price": "abc"})

    @pytest.mark.asyncio
    async def test_401_is_not_retried(self, credentials, rate_limiter, settings, session_factory, response_factory):
        retry_handler = RetryHandler("test", RetryPolicy(max_attempts=3, base_delay=0, jitter=False))
        client = ShopifyRestClient(credentials, rate_limiter, settings=settings, retry_handler=retry_handler)
        session = attach(client, session_factory([response_factory(401, {"errors": "Invalid API key"})]))

        with pytest.raises(AuthenticationError):
            await client.test_connection()

        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_429_is_retried_with_retry_after(
        self, credentials, rate_limiter, settings, session_factory, response_factory
    ):
        retry_handler = RetryHandler("test", RetryPolicy(max_attempts=2, base_delay=1, jitter=False))
        client = ShopifyRestClient(credentials, rate_limiter, settings=settings, retry_handler=retry_handler)
        session = attach(
            client,
            session_factory(
                [
                    response_factory(429, {"errors": "Exceeded 2 calls per second"}, {"Retry-After": "2.0"}),
                    response_factory(200, {"shop": {"name": "S"}}),
                ]
            ),
        )

        with patch("marketplace_sync.utils.retry_handler.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            shop = await client.test_connection()

        assert shop["name"] == "S"
        assert len(session.calls) == 2
        mock_sleep.assert_awaited_once_with(2.0)

    @pytest.mark.asyncio
    async def test_429_exhausted_raises_rate_limit(self, client, session_factory, response_factory):
        attach(client, session_factory([response_factory(429, {"errors": "Throttled"})]))

        with pytest.raises(RateLimitError):
            await client.test_connection()

    @pytest.mark.asyncio
    async def test_network_error_is_transport(self, client, session_factory):
        attach(client, session_factory([aiohttp.ClientConnectionError("Connection reset")]))

        with pytest.raises(TransportError):
            await client.test_connection()

    @pytest.mark.asyncio
    async def test_invalid_json_is_transport(self, client, session_factory, response_factory):
        attach(client, session_factory([response_factory(200, "<html>maintenance</html>")]))

        with pytest.raises(TransportError):
            await client.test_connection()
