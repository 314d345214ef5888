"""
Marketplace adapter contract.

MarketplaceAdapter is the platform-agnostic surface every integration
implements. Platform-specific capabilities are separate optional protocols
that callers check for explicitly.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Protocol, Sequence, runtime_checkable

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


class MarketplaceAdapter(ABC):
    """
    Contract for marketplace integrations.

    Every method except initialize() returns a result envelope; expected
    failures never raise across this boundary.
    """

    @property
    @abstractmethod
    def marketplace_id(self) -> str:
        """Stable identifier ("shopify")."""

    @property
    @abstractmethod
    def marketplace_name(self) -> str:
        """Human-readable name."""

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        """True between a successful initialize() and close()."""

    @abstractmethod
    async def initialize(self, credentials: MarketplaceCredentials) -> None:
        """
        Prepare the adapter for use.

        Raises:
            InitializationError: Missing credentials or failed connectivity probe
        """

    @abstractmethod
    async def test_connection(self) -> ConnectionStatus:
        """Probe connectivity. Never raises."""

    @abstractmethod
    async def get_product_by_sku(self, sku: str) -> OperationResult[MarketplaceProduct]:
        ...

    @abstractmethod
    async def get_product_by_id(self, product_id: str) -> OperationResult[MarketplaceProduct]:
        ...

    @abstractmethod
    async def get_products_by_skus(self, skus: Sequence[str]) -> OperationResult[list[MarketplaceProduct]]:
        ...

    @abstractmethod
    async def get_products(
        self, page: int = 0, page_size: int = 50, filters: ProductFilters | None = None
    ) -> PaginatedResponse[MarketplaceProduct]:
        ...

    @abstractmethod
    async def update_stock(self, items: Sequence[StockUpdate]) -> BatchReport:
        ...

    @abstractmethod
    async def update_prices(self, items: Sequence[PriceUpdate]) -> BatchReport:
        ...

    @abstractmethod
    async def update_status(self, items: Sequence[StatusUpdate]) -> BatchReport:
        ...

    @abstractmethod
    async def get_recent_orders(
        self, since: datetime, page: int = 0, page_size: int = 50
    ) -> PaginatedResponse[MarketplaceOrder]:
        ...

    @abstractmethod
    async def get_order_by_id(self, order_id: str) -> OperationResult[MarketplaceOrder]:
        ...

    @abstractmethod
    async def acknowledge_order(self, order_id: str) -> OperationResult[OrderAcknowledgment]:
        ...

    @abstractmethod
    async def update_order_status(
        self, order_id: str, status: str, tracking_info: TrackingInfo | None = None
    ) -> OperationResult[str]:
        ...

    @abstractmethod
    async def get_categories(self, parent_id: str | None = None) -> OperationResult[list[MarketplaceCategory]]:
        ...

    @abstractmethod
    async def get_category_attributes(self, category_id: str) -> OperationResult[list[CategoryAttribute]]:
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release resources. Idempotent."""


@runtime_checkable
class CollectionManagement(Protocol):
    """Optional capability: manage product membership of collections."""

    async def get_collection_products(self, collection_id: str) -> OperationResult[list[MarketplaceProduct]]:
        """List the products of a collection."""
        ...

    async def add_product_to_collection(self, collection_id: str, product_id: str) -> OperationResult[str]:
        """Attach a product to a collection."""
        ...


def supports(adapter: MarketplaceAdapter, capability: type) -> bool:
    """
    Check whether an adapter offers an optional capability.

    Args:
        adapter: Adapter instance
        capability: runtime_checkable capability protocol

    Returns:
        bool: True if the adapter implements the capability
    """
    return isinstance(adapter, capability)
