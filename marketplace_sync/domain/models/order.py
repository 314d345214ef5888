"""
Canonical order model.

Orders are immutable snapshots of platform state at fetch time. Only the
targeted adapter operations (acknowledge, status update) push changes back.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from marketplace_sync.domain.value_objects.money import Money


class OrderStatus(str, Enum):
    """Canonical order status."""

    NEW = "new"
    PARTIALLY_FULFILLED = "partially_fulfilled"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Canonical payment status."""

    PENDING = "pending"
    AUTHORIZED = "authorized"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"
    VOIDED = "voided"
    UNKNOWN = "unknown"


class ShippingStatus(str, Enum):
    """Canonical shipping status."""

    AWAITING_FULFILLMENT = "awaiting_fulfillment"
    PARTIALLY_SHIPPED = "partially_shipped"
    SHIPPED = "shipped"


@dataclass(frozen=True)
class CustomerDetails:
    """Customer contact snapshot taken from the order."""

    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Address:
    """Postal address attached to an order."""

    name: str = ""
    line1: str = ""
    city: str = ""
    country: str = ""
    postal_code: str = ""
    line2: str | None = None
    state: str | None = None
    company: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class OrderLineItem:
    """
    One order line.

    Attributes:
        id: Platform line item id
        product_id: Platform product id (None for custom lines)
        variant_id: Platform variant id (None for custom lines)
        sku: Variant SKU
        title: Line title as shown to the customer
        quantity: Ordered quantity
        unit_price: Price per unit
        total: unit_price * quantity
    """

    id: str
    product_id: str | None
    variant_id: str | None
    sku: str
    title: str
    quantity: int
    unit_price: Money
    total: Money


@dataclass(frozen=True)
class OrderTotals:
    """
    Order financial totals.

    total always equals subtotal + shipping + tax - discount.
    """

    subtotal: Money
    shipping: Money
    tax: Money
    discount: Money
    total: Money

    def __post_init__(self) -> None:
        expected = self.subtotal + self.shipping + self.tax - self.discount
        if self.total != expected:
            raise ValueError(f"Order total {self.total} does not match computed total {expected}")

    @classmethod
    def compute(cls, subtotal: Money, shipping: Money, tax: Money, discount: Money) -> "OrderTotals":
        """Build totals deriving total from its components."""
        return cls(
            subtotal=subtotal,
            shipping=shipping,
            tax=tax,
            discount=discount,
            total=subtotal + shipping + tax - discount,
        )

    @property
    def currency(self) -> str:
        return self.total.currency


@dataclass(frozen=True)
class MarketplaceOrder:
    """
    Platform-agnostic order snapshot.

    Attributes:
        id: Platform order id
        order_number: Human-facing order number (e.g. "#1001")
        customer: Customer contact snapshot
        items: Order lines
        totals: Financial totals
        order_status: Canonical order status
        payment_status: Canonical payment status
        shipping_status: Canonical shipping status
        currency: ISO currency code
        shipping_address: Delivery address, if any
        billing_address: Billing address, if any
        shipping_method: Title of the first shipping line
        payment_method: Payment gateway name
        created_at: Creation timestamp
        updated_at: Last update timestamp
        notes: Free-text order note
        tags: Order tags
        marketplace_id: Marketplace the snapshot was read from
    """

    id: str
    order_number: str
    customer: CustomerDetails
    items: tuple[OrderLineItem, ...]
    totals: OrderTotals
    order_status: OrderStatus
    payment_status: PaymentStatus
    shipping_status: ShippingStatus
    currency: str
    shipping_address: Address | None = None
    billing_address: Address | None = None
    shipping_method: str | None = None
    payment_method: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    notes: str | None = None
    tags: tuple[str, ...] = ()
    marketplace_id: str = ""

    @property
    def total_quantity(self) -> int:
        """Get total number of units ordered."""
        return sum(item.quantity for item in self.items)

    @property
    def is_cancelled(self) -> bool:
        return self.order_status == OrderStatus.CANCELLED

    def to_dict(self) -> dict[str, Any]:
        """Convert order to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "order_number": self.order_number,
            "customer": {
                "email": self.customer.email,
                "first_name": self.customer.first_name,
                "last_name": self.customer.last_name,
                "phone": self.customer.phone,
            },
            "items": [
                {
                    "id": item.id,
                    "product_id": item.product_id,
                    "variant_id": item.variant_id,
                    "sku": item.sku,
                    "title": item.title,
                    "quantity": item.quantity,
                    "unit_price": str(item.unit_price.amount),
                    "total": str(item.total.amount),
                }
                for item in self.items
            ],
            "totals": {
                "subtotal": str(self.totals.subtotal.amount),
                "shipping": str(self.totals.shipping.amount),
                "tax": str(self.totals.tax.amount),
                "discount": str(self.totals.discount.amount),
                "total": str(self.totals.total.amount),
            },
            "order_status": self.order_status.value,
            "payment_status": self.payment_status.value,
            "shipping_status": self.shipping_status.value,
            "currency": self.currency,
            "shipping_method": self.shipping_method,
            "payment_method": self.payment_method,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "notes": self.notes,
            "tags": list(self.tags),
            "marketplace_id": self.marketplace_id,
        }
