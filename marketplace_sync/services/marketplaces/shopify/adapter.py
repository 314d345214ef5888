"""
Shopify marketplace adapter.

Implements the marketplace contract on top of the Shopify Admin REST API.
Lookups by SKU scan a bounded product page because Shopify has no direct SKU
search; write paths resolve the SKU to the composite product id and split it
back into platform ids.
"""

import logging
from datetime import UTC, datetime
from typing import Any, Awaitable, Callable, Optional, Sequence

from marketplace_sync.core.config import Settings
from marketplace_sync.db.shopify_clients import ShopifyPage, ShopifyRestClient
from marketplace_sync.domain.models import (
    BatchReport,
    CategoryAttribute,
    ConnectionStatus,
    MarketplaceCategory,
    MarketplaceCredentials,
    MarketplaceOrder,
    MarketplaceProduct,
    OperationResult,
    OrderAcknowledgment,
    PaginatedResponse,
    PriceUpdate,
    ProductFilters,
    StatusUpdate,
    StockUpdate,
    TrackingInfo,
)
from marketplace_sync.utils.error_handler import (
    InitializationError,
    NotFoundError,
    UnknownPlatformError,
    ValidationError,
    classify_exception,
)
from marketplace_sync.utils.id_utils import split_composite_id
from marketplace_sync.utils.rate_limiter import LeakyBucketRateLimiter

from ..base_adapter import BaseMarketplaceAdapter
from ..batch import BatchOrchestrator
from . import mapper

logger = logging.getLogger(__name__)

ACKNOWLEDGED_TAG = "acknowledged"

ClientFactory = Callable[..., ShopifyRestClient]


class ShopifyAdapter(BaseMarketplaceAdapter):
    """
    Marketplace adapter for Shopify.

    Also offers the CollectionManagement capability.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rate_limiter: Optional[LeakyBucketRateLimiter] = None,
        client_factory: Optional[ClientFactory] = None,
        batch_orchestrator: Optional[BatchOrchestrator] = None,
    ):
        """
        Args:
            settings: Configuration (global settings by default)
            rate_limiter: Limiter owned by this adapter (built from settings by default)
            client_factory: Callable building the REST client from
                (credentials, rate_limiter, settings=...)
            batch_orchestrator: Batch runner (built from settings by default)
        """
        super().__init__(settings=settings, rate_limiter=rate_limiter, batch_orchestrator=batch_orchestrator)
        self._client_factory = client_factory or ShopifyRestClient
        self._client: Optional[ShopifyRestClient] = None
        self.shop_name: Optional[str] = None
        self.shop_currency: str = self.settings.DEFAULT_CURRENCY

    @property
    def marketplace_id(self) -> str:
        return "shopify"

    @property
    def marketplace_name(self) -> str:
        return "Shopify"

    # =============================================================================
    # LIFECYCLE
    # =============================================================================

    async def initialize(self, credentials: MarketplaceCredentials) -> None:
        """
        Validate credentials, open the HTTP session and probe /shop.json.

        Raises:
            InitializationError: Missing credentials or failed connectivity probe
        """
        if credentials is None:
            raise InitializationError("Shopify credentials are required")

        missing = credentials.missing_fields()
        if missing:
            raise InitializationError(
                f"Missing required Shopify credentials: {', '.join(missing)}", details={"missing": missing}
            )

        if self._initialized:
            await self.close()

        logger.info(f"Initializing Shopify adapter for {credentials.store_domain}")
        client = self._client_factory(credentials, self.rate_limiter, settings=self.settings)

        try:
            await client.initialize()
            shop = await client.test_connection()
        except Exception as e:
            await client.close()
            error = classify_exception(e, {"operation": "initialize"})
            logger.error(f"Failed to initialize Shopify adapter: {error.message}")
            raise InitializationError(
                f"Failed to connect to Shopify: {error.message}",
                details={"cause": error.code.value},
            ) from e

        self._client = client
        self._credentials = credentials
        self._record_shop(shop)
        self._initialized = True
        logger.info(f"Shopify adapter initialized for {self.shop_name} ({self.shop_currency})")

    async def test_connection(self) -> ConnectionStatus:
        """Probe /shop.json. Never raises."""
        if not self._initialized or self._client is None:
            return ConnectionStatus(connected=False, message="Shopify adapter not initialized")

        try:
            shop = await self._client.test_connection()
        except Exception as e:
            error = self._classify(e, "test_connection")
            return ConnectionStatus(connected=False, message=f"Failed to connect to Shopify: {error.message}")

        self._record_shop(shop)
        return ConnectionStatus(connected=True, message=f"Connected to Shopify shop: {self.shop_name}")

    def _record_shop(self, shop: dict[str, Any]) -> None:
        self.shop_name = shop.get("name") or self.shop_name
        self.shop_currency = shop.get("currency") or self.settings.DEFAULT_CURRENCY

    async def _release(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    # =============================================================================
    # HELPERS
    # =============================================================================

    @property
    def client(self) -> ShopifyRestClient:
        self._ensure_initialized()
        return self._client  # type: ignore[return-value]

    def _to_product(self, product: dict[str, Any], variant: Optional[dict[str, Any]] = None) -> MarketplaceProduct:
        return mapper.product_from_platform(product, variant, self.shop_currency, self.marketplace_id)

    def _to_order(self, order: dict[str, Any]) -> MarketplaceOrder:
        return mapper.order_from_platform(order, self.shop_currency, self.marketplace_id)

    @staticmethod
    def _split_id(product_id: str) -> tuple[str, Optional[str]]:
        try:
            return split_composite_id(product_id)
        except ValueError as e:
            raise ValidationError(str(e), field="id", invalid_value=product_id) from e

    async def _scan_page(self) -> ShopifyPage:
        """One product page at the platform's maximum size, for SKU scans."""
        return await self.client.list_products(limit=self.settings.SHOPIFY_MAX_PAGE_SIZE)

    async def _resolve_sku(self, sku: str) -> MarketplaceProduct:
        """
        Resolve a SKU to its canonical product.

        Raises:
            NotFoundError: If no variant in the scanned page has the SKU
        """
        if not sku:
            raise ValidationError("SKU is required", field="sku")

        page = await self._scan_page()
        match = mapper.find_variant_by_sku(page.items, sku)
        if match is None:
            raise NotFoundError(f"Product with SKU {sku} not found", details={"sku": sku})

        return self._to_product(*match)

    async def _seek_cursor(
        self, fetch_page: Callable[[Optional[str]], Awaitable[ShopifyPage]], page: int
    ) -> tuple[bool, Optional[str]]:
        """
        Follow `page` continuation cursors from the first page.

        Returns:
            (reached, cursor): reached is False when the listing ends first
        """
        cursor: Optional[str] = None
        for _ in range(page):
            result = await fetch_page(cursor)
            cursor = result.next_page_token
            if not cursor:
                return False, None
        return True, cursor

    def _validate_paging(self, page: int, page_size: int) -> int:
        """
        Check paging arguments and return the page size actually used.

        Sizes above SHOPIFY_MAX_PAGE_SIZE are clamped so that totals and cursor
        walks match what the platform returns per request.
        """
        if page < 0:
            raise ValidationError("page must be >= 0", field="page", invalid_value=page)
        if page_size < 1:
            raise ValidationError("page_size must be >= 1", field="page_size", invalid_value=page_size)

        max_page_size = self.settings.SHOPIFY_MAX_PAGE_SIZE
        if page_size > max_page_size:
            logger.debug(f"page_size {page_size} clamped to {max_page_size}")
            return max_page_size
        return page_size

    @staticmethod
    def _append_note(existing: Optional[str], line: str) -> str:
        return f"{existing}\n{line}" if existing else line

    # =============================================================================
    # PRODUCTS
    # =============================================================================

    async def get_product_by_sku(self, sku: str) -> OperationResult[MarketplaceProduct]:
        try:
            self._ensure_initialized()
            logger.debug(f"Getting Shopify product by SKU {sku}")
            return self._success(await self._resolve_sku(sku))
        except Exception as e:
            return self._failure(e, "get_product_by_sku", sku=sku)

    async def get_product_by_id(self, product_id: str) -> OperationResult[MarketplaceProduct]:
        """
        Get a product by composite id ("{productId}-{variantId}") or bare product id.

        A bare product id returns the first variant.
        """
        try:
            self._ensure_initialized()
            platform_product_id, variant_id = self._split_id(product_id)

            product = await self.client.get_product(platform_product_id)
            variants = product.get("variants") or []

            if variant_id is None:
                return self._success(self._to_product(product))

            variant = next((v for v in variants if str(v.get("id")) == variant_id), None)
            if variant is None:
                raise NotFoundError(f"Variant {variant_id} not found in product {platform_product_id}")

            return self._success(self._to_product(product, variant))
        except Exception as e:
            return self._failure(e, "get_product_by_id", product_id=product_id)

    async def get_products_by_skus(self, skus: Sequence[str]) -> OperationResult[list[MarketplaceProduct]]:
        """
        Resolve several SKUs with one scan of the product page.

        SKUs that are not found are logged and left out; the call still succeeds.
        """
        requested: list[str] = []
        try:
            self._ensure_initialized()
            requested = list(dict.fromkeys(sku for sku in skus if sku))
            if not requested:
                return self._success([])

            pending = set(requested)
            found: dict[str, MarketplaceProduct] = {}

            page = await self._scan_page()
            for product in page.items:
                for variant in product.get("variants") or []:
                    sku = variant.get("sku")
                    if sku in pending:
                        found[sku] = self._to_product(product, variant)
                        pending.discard(sku)
                if not pending:
                    break

            if pending:
                logger.warning(f"SKUs not found on Shopify: {', '.join(sorted(pending))}")

            return self._success([found[sku] for sku in requested if sku in found])
        except Exception as e:
            return self._failure(e, "get_products_by_skus", count=len(requested))

    def _product_query(self, filters: Optional[ProductFilters]) -> dict[str, Any]:
        if filters is None:
            return {}

        query: dict[str, Any] = {
            "vendor": filters.vendor,
            "product_type": filters.product_type,
            "collection_id": filters.collection_id,
        }
        if filters.updated_after:
            query["updated_at_min"] = filters.updated_after.isoformat()
        if filters.status:
            query["status"] = mapper.to_platform_status(filters.status)

        return {key: value for key, value in query.items() if value is not None}

    async def get_products(
        self, page: int = 0, page_size: int = 50, filters: Optional[ProductFilters] = None
    ) -> PaginatedResponse[MarketplaceProduct]:
        """
        Get one page of products.

        filters.page_token jumps straight to a page; otherwise page n is
        reached by following n cursors from the first page. A page reached
        through a token always reports has_prev.
        """
        try:
            self._ensure_initialized()
            page_size = self._validate_paging(page, page_size)

            query = self._product_query(filters)
            total = await self.client.count_products(**query)

            async def fetch(cursor: Optional[str]) -> ShopifyPage:
                return await self.client.list_products(limit=page_size, page_token=cursor, **query)

            cursor = filters.page_token if filters else None
            has_prev = page > 0 or cursor is not None
            if cursor is None and page > 0:
                reached, cursor = await self._seek_cursor(fetch, page)
                if not reached:
                    return PaginatedResponse.build([], total, page, page_size)

            result = await fetch(cursor)
            products = [self._to_product(product) for product in result.items]
            return PaginatedResponse.build(
                products, total, page, page_size, result.next_page_token, has_prev=has_prev
            )
        except Exception as e:
            return self._failed_page(e, "get_products", page, page_size)

    # =============================================================================
    # BATCH WRITES
    # =============================================================================

    async def update_stock(self, items: Sequence[StockUpdate]) -> BatchReport:
        """
        Set absolute stock levels.

        SKU -> variant -> inventory item -> location (re-resolved per item
        unless the update pins one).
        """

        async def apply(item: StockUpdate) -> None:
            if item.quantity < 0:
                raise ValidationError("Stock quantity cannot be negative", field="quantity", invalid_value=item.quantity)

            product = await self._resolve_sku(item.sku)
            _, variant_id = self._split_id(product.id)
            if variant_id is None:
                raise NotFoundError(f"No variant found for SKU {item.sku}")

            variant = await self.client.get_variant(variant_id)
            inventory_item_id = variant.get("inventory_item_id")
            if not inventory_item_id:
                raise UnknownPlatformError(f"Variant {variant_id} has no inventory item")

            location_id = item.location_id or await self.client.get_default_location_id()
            await self.client.set_inventory_level(str(inventory_item_id), location_id, item.quantity)

        return await self._run_batch(items, apply, "update_stock")

    async def update_prices(self, items: Sequence[PriceUpdate]) -> BatchReport:
        async def apply(item: PriceUpdate) -> None:
            if item.price < 0:
                raise ValidationError("Price cannot be negative", field="price", invalid_value=item.price)

            product = await self._resolve_sku(item.sku)
            _, variant_id = self._split_id(product.id)
            if variant_id is None:
                raise NotFoundError(f"No variant found for SKU {item.sku}")

            fields = {"price": str(item.price)}
            if item.compare_at_price is not None:
                fields["compare_at_price"] = str(item.compare_at_price)

            await self.client.update_variant(variant_id, fields)

        return await self._run_batch(items, apply, "update_prices")

    async def update_status(self, items: Sequence[StatusUpdate]) -> BatchReport:
        async def apply(item: StatusUpdate) -> None:
            platform_status = mapper.to_platform_status(item.status)
            product = await self._resolve_sku(item.sku)
            product_id, _ = self._split_id(product.id)
            await self.client.update_product(product_id, {"status": platform_status})

        return await self._run_batch(items, apply, "update_status")

    # =============================================================================
    # ORDERS
    # =============================================================================

    async def get_recent_orders(
        self, since: datetime, page: int = 0, page_size: int = 50
    ) -> PaginatedResponse[MarketplaceOrder]:
        """Orders of any status updated since `since`."""
        try:
            self._ensure_initialized()
            page_size = self._validate_paging(page, page_size)

            total = await self.client.count_orders(updated_at_min=since)

            async def fetch(cursor: Optional[str]) -> ShopifyPage:
                return await self.client.list_orders(updated_at_min=since, limit=page_size, page_token=cursor)

            cursor: Optional[str] = None
            if page > 0:
                reached, cursor = await self._seek_cursor(fetch, page)
                if not reached:
                    return PaginatedResponse.build([], total, page, page_size)

            result = await fetch(cursor)
            orders = [self._to_order(order) for order in result.items]
            return PaginatedResponse.build(orders, total, page, page_size, result.next_page_token)
        except Exception as e:
            return self._failed_page(e, "get_recent_orders", page, page_size)

    async def get_order_by_id(self, order_id: str) -> OperationResult[MarketplaceOrder]:
        try:
            self._ensure_initialized()
            return self._success(self._to_order(await self.client.get_order(order_id)))
        except Exception as e:
            return self._failure(e, "get_order_by_id", order_id=order_id)

    async def acknowledge_order(self, order_id: str) -> OperationResult[OrderAcknowledgment]:
        """
        Mark an order as received: adds the "acknowledged" tag and a note line,
        keeping existing tags and note.
        """
        try:
            self._ensure_initialized()
            order = await self.client.get_order(order_id)
            now = datetime.now(UTC)

            await self.client.update_order(
                order_id,
                {
                    "tags": mapper.merge_tags(order.get("tags"), ACKNOWLEDGED_TAG),
                    "note": self._append_note(order.get("note"), f"Order acknowledged by system on {now.isoformat()}"),
                },
            )
            logger.info(f"Shopify order {order_id} acknowledged")
            return self._success(OrderAcknowledgment(order_id=str(order_id), success=True, timestamp=now))
        except Exception as e:
            return self._failure(e, "acknowledge_order", order_id=order_id)

    async def update_order_status(
        self, order_id: str, status: str, tracking_info: Optional[TrackingInfo] = None
    ) -> OperationResult[str]:
        """
        Push an order status change.

        "cancelled" cancels the order, "fulfilled"/"shipped" create a
        fulfillment for the open lines (with tracking when given), any other
        status is recorded as a tag plus a note line.
        """
        try:
            self._ensure_initialized()
            normalized = (status or "").strip().lower()
            if not normalized:
                raise ValidationError("Order status is required", field="status")

            if normalized == "cancelled":
                await self.client.cancel_order(order_id)

            elif normalized in ("fulfilled", "shipped"):
                await self._fulfill(order_id, tracking_info)

            else:
                order = await self.client.get_order(order_id)
                note_line = f"Order status updated to {normalized} on {datetime.now(UTC).isoformat()}"
                await self.client.update_order(
                    order_id,
                    {
                        "tags": mapper.merge_tags(order.get("tags"), normalized),
                        "note": self._append_note(order.get("note"), note_line),
                    },
                )

            logger.info(f"Shopify order {order_id} status updated to {normalized}")
            return self._success(str(order_id))
        except Exception as e:
            return self._failure(e, "update_order_status", order_id=order_id, status=status)

    async def _fulfill(self, order_id: str, tracking_info: Optional[TrackingInfo]) -> None:
        order = await self.client.get_order(order_id)

        line_items = []
        for line in order.get("line_items") or []:
            quantity = line.get("fulfillable_quantity", line.get("quantity", 0))
            if quantity:
                line_items.append({"id": line["id"], "quantity": quantity})

        if not line_items:
            raise ValidationError(f"Order {order_id} has no lines left to fulfill")

        fulfillment: dict[str, Any] = {
            "location_id": int(await self.client.get_default_location_id()),
            "notify_customer": True,
            "line_items": line_items,
        }
        if tracking_info:
            fulfillment["tracking_number"] = tracking_info.tracking_number
            fulfillment["tracking_company"] = tracking_info.carrier
            if tracking_info.tracking_url:
                fulfillment["tracking_urls"] = [tracking_info.tracking_url]

        await self.client.create_fulfillment(order_id, fulfillment)

    # =============================================================================
    # TAXONOMY
    # =============================================================================

    async def get_categories(self, parent_id: Optional[str] = None) -> OperationResult[list[MarketplaceCategory]]:
        """
        Custom and smart collections as flat categories.

        Collections have no hierarchy, so any parent_id yields an empty list.
        """
        try:
            self._ensure_initialized()
            if parent_id:
                return self._success([])

            collections = await self.client.list_custom_collections()
            collections += await self.client.list_smart_collections()
            return self._success([mapper.category_from_collection(c) for c in collections])
        except Exception as e:
            return self._failure(e, "get_categories", parent_id=parent_id)

    async def get_category_attributes(self, category_id: str) -> OperationResult[list[CategoryAttribute]]:
        try:
            self._ensure_initialized()
            return self._success(list(mapper.DEFAULT_CATEGORY_ATTRIBUTES))
        except Exception as e:
            return self._failure(e, "get_category_attributes", category_id=category_id)

    # =============================================================================
    # COLLECTION MANAGEMENT CAPABILITY
    # =============================================================================

    async def get_collection_products(self, collection_id: str) -> OperationResult[list[MarketplaceProduct]]:
        try:
            self._ensure_initialized()
            page = await self.client.list_collection_products(
                collection_id, limit=self.settings.SHOPIFY_MAX_PAGE_SIZE
            )
            return self._success([self._to_product(product) for product in page.items])
        except Exception as e:
            return self._failure(e, "get_collection_products", collection_id=collection_id)

    async def add_product_to_collection(self, collection_id: str, product_id: str) -> OperationResult[str]:
        """Attach a product (composite or bare id) to a custom collection; returns the collect id."""
        try:
            self._ensure_initialized()
            platform_product_id, _ = self._split_id(product_id)
            collect = await self.client.create_collect(collection_id, platform_product_id)
            return self._success(str(collect.get("id", "")))
        except Exception as e:
            return self._failure(e, "add_product_to_collection", collection_id=collection_id, product_id=product_id)
