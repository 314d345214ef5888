"""
Canonical models exchanged through the adapter contract.
"""

from .category import CategoryAttribute, MarketplaceCategory
from .credentials import MarketplaceCredentials
from .order import (
    Address,
    CustomerDetails,
    MarketplaceOrder,
    OrderLineItem,
    OrderStatus,
    OrderTotals,
    PaymentStatus,
    ShippingStatus,
)
from .payloads import PriceUpdate, ProductFilters, StatusUpdate, StockUpdate, TrackingInfo
from .product import MarketplaceProduct, ProductStatus
from .results import (
    BatchFailure,
    BatchReport,
    ConnectionStatus,
    OperationResult,
    OrderAcknowledgment,
    PaginatedResponse,
)

__all__ = [
    "Address",
    "BatchFailure",
    "BatchReport",
    "CategoryAttribute",
    "ConnectionStatus",
    "CustomerDetails",
    "MarketplaceCategory",
    "MarketplaceCredentials",
    "MarketplaceOrder",
    "MarketplaceProduct",
    "OperationResult",
    "OrderAcknowledgment",
    "OrderLineItem",
    "OrderStatus",
    "OrderTotals",
    "PaginatedResponse",
    "PaymentStatus",
    "PriceUpdate",
    "ProductFilters",
    "ProductStatus",
    "ShippingStatus",
    "StatusUpdate",
    "StockUpdate",
    "TrackingInfo",
]
