"""Fixtures compartidos para los tests del adaptador de marketplaces."""

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from marketplace_sync.core.config import Settings
from marketplace_sync.db.shopify_clients import ShopifyPage
from marketplace_sync.domain.models import MarketplaceCredentials


class FakeClock:
    """Reloj monotónico manual."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    """Respuesta aiohttp mínima usable como async context manager."""

    def __init__(self, status: int = 200, body: Any = None, headers: dict[str, str] | None = None):
        self.status = status
        self.headers = headers or {}
        if isinstance(body, (dict, list)):
            self._text = json.dumps(body)
        else:
            self._text = body or ""

    async def text(self) -> str:
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Sesión aiohttp falsa que devuelve respuestas en orden y registra las llamadas."""

    def __init__(self, responses: list[Any]):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method, url, params=None, json=None):
        self.calls.append({"method": method, "url": url, "params": params, "json": json})
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    async def close(self):
        self.closed = True


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        ENVIRONMENT="testing",
        SHOPIFY_MAX_RETRIES=0,
        SHOPIFY_RETRY_INITIAL_DELAY=0.01,
        SHOPIFY_RETRY_MAX_DELAY=0.05,
        SHOPIFY_CALLS_PER_SECOND=1000.0,
        SHOPIFY_BUCKET_SIZE=40,
    )


@pytest.fixture
def credentials():
    return MarketplaceCredentials(store_domain="test-shop.myshopify.com", access_token="shpat_test")


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def shopify_product():
    """Producto Shopify con dos variantes."""
    return {
        "id": 111,
        "title": "Classic Tee",
        "body_html": "<p>Cotton tee</p>",
        "vendor": "Acme",
        "product_type": "Shirts",
        "status": "active",
        "tags": "summer, cotton",
        "created_at": "2024-01-10T10:00:00-05:00",
        "updated_at": "2024-02-01T12:30:00Z",
        "images": [{"src": "https://cdn.example.com/tee.jpg"}],
        "variants": [
            {
                "id": 201,
                "sku": "TEE-S",
                "title": "Small",
                "price": "19.99",
                "compare_at_price": "24.99",
                "inventory_quantity": 7,
                "inventory_item_id": 301,
                "barcode": "",
                "weight": 0.2,
                "weight_unit": "kg",
            },
            {
                "id": 202,
                "sku": "TEE-M",
                "title": "Medium",
                "price": "21.50",
                "compare_at_price": None,
                "inventory_quantity": 3,
                "inventory_item_id": 302,
            },
        ],
    }


@pytest.fixture
def second_product():
    return {
        "id": 112,
        "title": "Canvas Bag",
        "status": "archived",
        "tags": "",
        "variants": [
            {"id": 203, "sku": "BAG-1", "title": "Default Title", "price": "35.00", "inventory_quantity": 0},
        ],
    }


@pytest.fixture
def shopify_order():
    """Pedido Shopify con totales 100 + 10 + 8 - 5 = 113."""
    return {
        "id": 5001,
        "name": "#1001",
        "order_number": 1001,
        "email": "jane@example.com",
        "currency": "USD",
        "financial_status": "paid",
        "fulfillment_status": None,
        "cancelled_at": None,
        "total_line_items_price": "100.00",
        "subtotal_price": "95.00",
        "total_tax": "8.00",
        "total_discounts": "5.00",
        "total_price": "113.00",
        "gateway": "shopify_payments",
        "note": "Leave at the door",
        "tags": "vip",
        "created_at": "2024-03-01T09:00:00Z",
        "updated_at": "2024-03-01T09:05:00Z",
        "customer": {"first_name": "Jane", "last_name": "Doe", "phone": "+15550001"},
        "shipping_lines": [{"title": "Standard", "price": "10.00"}],
        "shipping_address": {
            "name": "Jane Doe",
            "address1": "1 Main St",
            "city": "Springfield",
            "province": "IL",
            "zip": "62701",
            "country": "United States",
        },
        "line_items": [
            {
                "id": 9001,
                "product_id": 111,
                "variant_id": 201,
                "sku": "TEE-S",
                "name": "Classic Tee - Small",
                "quantity": 2,
                "fulfillable_quantity": 2,
                "price": "30.00",
            },
            {
                "id": 9002,
                "product_id": 112,
                "variant_id": 203,
                "sku": "BAG-1",
                "name": "Canvas Bag",
                "quantity": 1,
                "fulfillable_quantity": 1,
                "price": "40.00",
            },
        ],
    }


@pytest.fixture
def mock_client(shopify_product, second_product):
    """Cliente REST simulado con las operaciones que usa el adaptador."""
    client = MagicMock()
    client.initialize = AsyncMock()
    client.close = AsyncMock()
    client.test_connection = AsyncMock(return_value={"name": "Test Shop", "currency": "EUR"})
    client.list_products = AsyncMock(return_value=ShopifyPage(items=[shopify_product, second_product]))
    client.count_products = AsyncMock(return_value=2)
    client.get_product = AsyncMock(return_value=shopify_product)
    client.update_product = AsyncMock(return_value={})
    client.get_variant = AsyncMock(return_value={"id": 201, "inventory_item_id": 301})
    client.update_variant = AsyncMock(return_value={})
    client.get_default_location_id = AsyncMock(return_value="401")
    client.set_inventory_level = AsyncMock(return_value={})
    client.list_orders = AsyncMock(return_value=ShopifyPage(items=[]))
    client.count_orders = AsyncMock(return_value=0)
    client.get_order = AsyncMock()
    client.update_order = AsyncMock(return_value={})
    client.cancel_order = AsyncMock(return_value={})
    client.create_fulfillment = AsyncMock(return_value={})
    client.list_custom_collections = AsyncMock(return_value=[])
    client.list_smart_collections = AsyncMock(return_value=[])
    client.list_collection_products = AsyncMock(return_value=ShopifyPage(items=[]))
    client.create_collect = AsyncMock(return_value={"id": 777})
    return client


@pytest.fixture
def response_factory():
    return FakeResponse


@pytest.fixture
def session_factory():
    return FakeSession
