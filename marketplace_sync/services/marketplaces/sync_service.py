"""
Multi-marketplace sync service.

Keeps one initialized adapter per marketplace and fans product, stock and
order operations out to them.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from marketplace_sync.domain.models import (
    BatchReport,
    ConnectionStatus,
    MarketplaceCredentials,
    MarketplaceOrder,
    MarketplaceProduct,
    PaginatedResponse,
    PriceUpdate,
    ProductStatus,
    StatusUpdate,
    StockUpdate,
)
from marketplace_sync.utils.error_handler import AppException, NotInitializedError, classify_exception, log_error

from .factory import MarketplaceAdapterFactory
from .interfaces import MarketplaceAdapter

logger = logging.getLogger(__name__)

NOT_INITIALIZED_REASON = "Adapter not initialized. Call initialize_marketplace() first."


@dataclass(frozen=True)
class MarketplaceFailure:
    marketplace_id: str
    reason: str


@dataclass
class ProductSyncResult:
    """Marketplaces where the product sync succeeded or failed."""

    successful: List[str] = field(default_factory=list)
    failed: List[MarketplaceFailure] = field(default_factory=list)


@dataclass
class StockSyncResult:
    """SKUs updated per marketplace, plus marketplaces that failed as a whole."""

    successful: Dict[str, List[str]] = field(default_factory=dict)
    failed: List[MarketplaceFailure] = field(default_factory=list)


class MarketplaceSyncService:
    """
    Fans catalog and order operations out to initialized marketplaces.
    """

    def __init__(self, factory: Optional[MarketplaceAdapterFactory] = None):
        self.factory = factory or MarketplaceAdapterFactory()
        self.adapters: Dict[str, MarketplaceAdapter] = {}

    def _targets(self, marketplace_ids: Optional[Sequence[str]]) -> List[str]:
        if marketplace_ids is None:
            return list(self.adapters)
        return [marketplace_id.lower() for marketplace_id in marketplace_ids]

    def _adapter(self, marketplace_id: str) -> MarketplaceAdapter:
        adapter = self.adapters.get(marketplace_id.lower())
        if adapter is None:
            raise NotInitializedError(f"Adapter for {marketplace_id} not initialized")
        return adapter

    async def initialize_marketplace(self, marketplace_id: str, credentials: MarketplaceCredentials) -> bool:
        """
        Create and initialize the adapter of a marketplace.

        An adapter already registered under the same id is closed and
        replaced on success.

        Returns:
            bool: True if the adapter is ready
        """
        key = marketplace_id.lower()
        try:
            adapter = await self.factory.create(key, credentials)
        except AppException as e:
            logger.error(f"Failed to initialize {marketplace_id} adapter: {e.message}")
            return False

        previous = self.adapters.get(key)
        if previous is not None:
            await previous.close()

        self.adapters[key] = adapter
        logger.info(f"Successfully initialized {adapter.marketplace_name} adapter")
        return True

    async def sync_product(
        self,
        sku: str,
        price: Decimal,
        stock_level: int,
        active: bool,
        marketplace_ids: Optional[Sequence[str]] = None,
    ) -> ProductSyncResult:
        """
        Push stock, price and status of one SKU to each marketplace.

        Steps run in that order and stop at the first failing one for a
        marketplace; other marketplaces are unaffected.
        """
        result = ProductSyncResult()

        for marketplace_id in self._targets(marketplace_ids):
            adapter = self.adapters.get(marketplace_id)
            if adapter is None:
                result.failed.append(MarketplaceFailure(marketplace_id, NOT_INITIALIZED_REASON))
                continue

            reason = await self._push_product(adapter, sku, price, stock_level, active)
            if reason is None:
                result.successful.append(marketplace_id)
            else:
                logger.error(f"Error syncing product {sku} to {marketplace_id}: {reason}")
                result.failed.append(MarketplaceFailure(marketplace_id, reason))

        return result

    async def _push_product(
        self, adapter: MarketplaceAdapter, sku: str, price: Decimal, stock_level: int, active: bool
    ) -> Optional[str]:
        """Returns the failure reason, or None when every step succeeded."""
        status = ProductStatus.ACTIVE if active else ProductStatus.INACTIVE
        steps = (
            ("Stock", adapter.update_stock, StockUpdate(sku=sku, quantity=stock_level)),
            ("Price", adapter.update_prices, PriceUpdate(sku=sku, price=price)),
            ("Status", adapter.update_status, StatusUpdate(sku=sku, status=status)),
        )

        for label, write, update in steps:
            try:
                report: BatchReport = await write([update])
            except Exception as e:
                context = {"operation": f"sync_product.{label.lower()}", "sku": sku}
                log_error(e, context)
                error = classify_exception(e, context)
                return f"{label} update failed: {error.message}"

            failure = next((f for f in report.failed if f.sku == sku), None)
            if failure is not None:
                return f"{label} update failed: {failure.reason}"
            if report.error is not None:
                return f"{label} update failed: {report.error.message}"

        return None

    async def sync_stock_levels(
        self, updates: Sequence[StockUpdate], marketplace_ids: Optional[Sequence[str]] = None
    ) -> StockSyncResult:
        """
        Push stock levels to each marketplace.

        Per-SKU failures are logged; a marketplace only counts as failed when
        its whole batch failed.
        """
        result = StockSyncResult()
        updates = list(updates)

        for marketplace_id in self._targets(marketplace_ids):
            adapter = self.adapters.get(marketplace_id)
            if adapter is None:
                result.failed.append(MarketplaceFailure(marketplace_id, NOT_INITIALIZED_REASON))
                continue

            report = await adapter.update_stock(updates)
            if report.error is not None:
                logger.error(f"Stock sync to {marketplace_id} failed: {report.error.message}")
                result.failed.append(MarketplaceFailure(marketplace_id, report.error.message))
                continue

            if report.failed:
                logger.warning(
                    f"Some stock updates failed for {marketplace_id}: "
                    f"{', '.join(f'{f.sku} ({f.reason})' for f in report.failed)}"
                )
            result.successful[marketplace_id] = list(report.successful)

        return result

    async def get_product(self, sku: str, marketplace_id: str) -> Optional[MarketplaceProduct]:
        """
        Raises:
            NotInitializedError: If the marketplace has no adapter
        """
        result = await self._adapter(marketplace_id).get_product_by_sku(sku)
        return result.data if result.success else None

    async def get_recent_orders(
        self, marketplace_id: str, days_since: int = 7, page: int = 0, page_size: int = 20
    ) -> PaginatedResponse[MarketplaceOrder]:
        """
        Raises:
            NotInitializedError: If the marketplace has no adapter
        """
        adapter = self._adapter(marketplace_id)
        since = datetime.now(UTC) - timedelta(days=days_since)
        return await adapter.get_recent_orders(since, page, page_size)

    async def check_marketplace_health(self) -> Dict[str, ConnectionStatus]:
        results: Dict[str, ConnectionStatus] = {}
        for marketplace_id, adapter in self.adapters.items():
            results[marketplace_id] = await adapter.test_connection()
        return results

    async def close_all(self) -> None:
        """Close every adapter, even if some fail to close."""
        adapters = list(self.adapters.items())
        self.adapters.clear()

        outcomes = await asyncio.gather(*(adapter.close() for _, adapter in adapters), return_exceptions=True)
        for (marketplace_id, _), outcome in zip(adapters, outcomes):
            if isinstance(outcome, Exception):
                log_error(outcome, {"operation": "close", "marketplace_id": marketplace_id})
