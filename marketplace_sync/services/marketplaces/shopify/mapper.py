"""
Normalization between Shopify REST payloads and the canonical model.

Platform enumerations map through fixed tables; unknown values fall back to
a defined canonical value instead of failing.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from marketplace_sync.domain.models import (
    Address,
    CategoryAttribute,
    CustomerDetails,
    MarketplaceCategory,
    MarketplaceOrder,
    MarketplaceProduct,
    OrderLineItem,
    OrderStatus,
    OrderTotals,
    PaymentStatus,
    ProductStatus,
    ShippingStatus,
)
from marketplace_sync.domain.value_objects import Money
from marketplace_sync.utils.error_handler import ValidationError
from marketplace_sync.utils.id_utils import join_composite_id

logger = logging.getLogger(__name__)

PRODUCT_STATUS_FROM_PLATFORM = {
    "active": ProductStatus.ACTIVE,
    "archived": ProductStatus.INACTIVE,
    "draft": ProductStatus.DRAFT,
}

PRODUCT_STATUS_TO_PLATFORM = {
    ProductStatus.ACTIVE: "active",
    ProductStatus.INACTIVE: "archived",
    ProductStatus.DRAFT: "draft",
}

PAYMENT_STATUS_FROM_PLATFORM = {
    "pending": PaymentStatus.PENDING,
    "authorized": PaymentStatus.AUTHORIZED,
    "partially_paid": PaymentStatus.PARTIALLY_PAID,
    "paid": PaymentStatus.PAID,
    "partially_refunded": PaymentStatus.PARTIALLY_REFUNDED,
    "refunded": PaymentStatus.REFUNDED,
    "voided": PaymentStatus.VOIDED,
}

SHIPPING_STATUS_FROM_PLATFORM = {
    "fulfilled": ShippingStatus.SHIPPED,
    "partial": ShippingStatus.PARTIALLY_SHIPPED,
}

# Shopify has no per-collection attribute schema; these are the product
# fields every collection accepts.
DEFAULT_CATEGORY_ATTRIBUTES = (
    CategoryAttribute(id="title", name="Title", required=True, type="string"),
    CategoryAttribute(id="body_html", name="Description", required=False, type="html"),
    CategoryAttribute(id="vendor", name="Vendor", required=False, type="string"),
    CategoryAttribute(id="product_type", name="Product Type", required=False, type="string"),
    CategoryAttribute(id="tags", name="Tags", required=False, type="string"),
)


def map_product_status(value: str | None) -> ProductStatus:
    """Shopify product status to canonical; unknown values become draft."""
    return PRODUCT_STATUS_FROM_PLATFORM.get((value or "").lower(), ProductStatus.DRAFT)


def to_platform_status(status: ProductStatus | str) -> str:
    """
    Canonical product status to the Shopify value.

    Raises:
        ValidationError: If status is not a canonical product status
    """
    try:
        return PRODUCT_STATUS_TO_PLATFORM[ProductStatus(status)]
    except ValueError as e:
        raise ValidationError(f"Unknown product status: {status!r}", field="status", invalid_value=status) from e


def map_order_status(order: dict[str, Any]) -> OrderStatus:
    if order.get("cancelled_at"):
        return OrderStatus.CANCELLED

    fulfillment_status = order.get("fulfillment_status")
    if fulfillment_status == "fulfilled":
        return OrderStatus.FULFILLED
    if fulfillment_status == "partial":
        return OrderStatus.PARTIALLY_FULFILLED
    return OrderStatus.NEW


def map_payment_status(value: str | None) -> PaymentStatus:
    return PAYMENT_STATUS_FROM_PLATFORM.get((value or "").lower(), PaymentStatus.UNKNOWN)


def map_shipping_status(value: str | None) -> ShippingStatus:
    return SHIPPING_STATUS_FROM_PLATFORM.get((value or "").lower(), ShippingStatus.AWAITING_FULFILLMENT)


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse a Shopify ISO-8601 timestamp.

    Naive values are assumed to be UTC; unparseable values yield None.
    """
    if not value:
        return None

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable timestamp: {value}")
        return None

    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _decimal(value: Any, default: str = "0") -> Decimal:
    if value is None or value == "":
        return Decimal(default)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        logger.warning(f"Invalid decimal value: {value!r}")
        return Decimal(default)


def _money(value: Any, currency: str) -> Money:
    amount = _decimal(value)
    return Money(amount=max(amount, Decimal("0")), currency=currency)


def _optional_id(value: Any) -> str | None:
    return str(value) if value is not None else None


def product_from_platform(
    product: dict[str, Any],
    variant: dict[str, Any] | None = None,
    currency: str = "USD",
    marketplace_id: str = "shopify",
) -> MarketplaceProduct:
    """
    Build a canonical product from a Shopify product and one of its variants.

    Args:
        product: Shopify product payload
        variant: Variant to represent; the first variant when None
        currency: Shop currency (Shopify product payloads carry none)
        marketplace_id: Marketplace identifier stamped on the record

    Returns:
        MarketplaceProduct: Canonical snapshot
    """
    if variant is None:
        variants = product.get("variants") or []
        variant = variants[0] if variants else {}

    variant_title = variant.get("title")
    extra = {
        "vendor": product.get("vendor"),
        "tags": [tag.strip() for tag in (product.get("tags") or "").split(",") if tag.strip()],
        "product_type": product.get("product_type"),
        "variant_title": None if variant_title == "Default Title" else variant_title,
        "weight": variant.get("weight"),
        "weight_unit": variant.get("weight_unit"),
        "barcode": variant.get("barcode") or None,
        "inventory_item_id": _optional_id(variant.get("inventory_item_id")),
        "compare_at_price": variant.get("compare_at_price"),
    }

    return MarketplaceProduct(
        id=join_composite_id(product["id"], variant["id"]) if variant.get("id") else str(product["id"]),
        sku=variant.get("sku") or "",
        title=product.get("title") or "",
        description=product.get("body_html") or "",
        price=_decimal(variant.get("price")),
        currency=currency,
        stock_level=int(variant.get("inventory_quantity") or 0),
        status=map_product_status(product.get("status")),
        images=tuple(image["src"] for image in product.get("images") or [] if image.get("src")),
        created_at=parse_timestamp(product.get("created_at")),
        updated_at=parse_timestamp(product.get("updated_at")),
        marketplace_id=marketplace_id,
        extra=extra,
    )


def find_variant_by_sku(
    products: Iterable[dict[str, Any]], sku: str
) -> tuple[dict[str, Any], dict[str, Any]] | None:
    """Linear scan for the (product, variant) pair whose variant has this SKU."""
    for product in products:
        for variant in product.get("variants") or []:
            if variant.get("sku") == sku:
                return product, variant
    return None


def address_from_platform(address: dict[str, Any] | None) -> Address | None:
    if not address:
        return None

    return Address(
        name=address.get("name") or "",
        line1=address.get("address1") or "",
        line2=address.get("address2") or None,
        city=address.get("city") or "",
        state=address.get("province") or None,
        postal_code=address.get("zip") or "",
        country=address.get("country") or "",
        company=address.get("company") or None,
        phone=address.get("phone") or None,
    )


def order_totals_from_platform(order: dict[str, Any], currency: str) -> OrderTotals:
    """
    Compute canonical totals from a Shopify order.

    subtotal is the pre-discount sum of line items; total is derived from
    the components so the totals invariant always holds.
    """
    subtotal = _money(order.get("total_line_items_price", order.get("subtotal_price")), currency)
    shipping = Money.zero(currency)
    for line in order.get("shipping_lines") or []:
        shipping = shipping + _money(line.get("price"), currency)
    tax = _money(order.get("total_tax"), currency)
    discount = _money(order.get("total_discounts"), currency)

    gross = subtotal + shipping + tax
    if discount.amount > gross.amount:
        logger.warning(f"Order {order.get('id')}: discount {discount} exceeds gross {gross}, capping")
        discount = gross

    totals = OrderTotals.compute(subtotal=subtotal, shipping=shipping, tax=tax, discount=discount)

    platform_total = order.get("total_price")
    if platform_total is not None and _decimal(platform_total) != totals.total.amount:
        logger.warning(
            f"Order {order.get('id')}: computed total {totals.total.amount} "
            f"differs from platform total_price {platform_total}"
        )

    return totals


def line_item_from_platform(item: dict[str, Any], currency: str) -> OrderLineItem:
    unit_price = _money(item.get("price"), currency)
    quantity = int(item.get("quantity") or 0)
    return OrderLineItem(
        id=str(item.get("id", "")),
        product_id=_optional_id(item.get("product_id")),
        variant_id=_optional_id(item.get("variant_id")),
        sku=item.get("sku") or "",
        title=item.get("name") or item.get("title") or "",
        quantity=quantity,
        unit_price=unit_price,
        total=unit_price * quantity,
    )


def order_from_platform(
    order: dict[str, Any], default_currency: str = "USD", marketplace_id: str = "shopify"
) -> MarketplaceOrder:
    """
    Build a canonical order from a Shopify order payload.

    Args:
        order: Shopify order payload
        default_currency: Currency used when the order carries none
        marketplace_id: Marketplace identifier stamped on the record

    Returns:
        MarketplaceOrder: Canonical snapshot
    """
    currency = order.get("currency") or default_currency
    customer = order.get("customer") or {}
    shipping_lines = order.get("shipping_lines") or []

    return MarketplaceOrder(
        id=str(order["id"]),
        order_number=order.get("name") or str(order.get("order_number", order["id"])),
        customer=CustomerDetails(
            email=order.get("email") or customer.get("email") or "",
            first_name=customer.get("first_name") or "",
            last_name=customer.get("last_name") or "",
            phone=customer.get("phone") or order.get("phone") or None,
        ),
        items=tuple(line_item_from_platform(item, currency) for item in order.get("line_items") or []),
        totals=order_totals_from_platform(order, currency),
        order_status=map_order_status(order),
        payment_status=map_payment_status(order.get("financial_status")),
        shipping_status=map_shipping_status(order.get("fulfillment_status")),
        currency=currency,
        shipping_address=address_from_platform(order.get("shipping_address")),
        billing_address=address_from_platform(order.get("billing_address")),
        shipping_method=shipping_lines[0].get("title") if shipping_lines else None,
        payment_method=order.get("gateway") or None,
        created_at=parse_timestamp(order.get("created_at")),
        updated_at=parse_timestamp(order.get("updated_at")),
        notes=order.get("note") or None,
        tags=tuple(tag.strip() for tag in (order.get("tags") or "").split(",") if tag.strip()),
        marketplace_id=marketplace_id,
    )


def category_from_collection(collection: dict[str, Any]) -> MarketplaceCategory:
    """Shopify collections are flat: every collection is a top-level leaf."""
    updated_at = parse_timestamp(collection.get("updated_at"))
    return MarketplaceCategory(
        id=str(collection["id"]),
        name=collection.get("title") or "",
        path=collection.get("handle") or "",
        parent_id=None,
        level=1,
        is_leaf=True,
        created_at=parse_timestamp(collection.get("published_at")) or updated_at,
        updated_at=updated_at,
    )


def merge_tags(existing: str | None, *new_tags: str) -> str:
    """Add tags to a Shopify comma-separated tag string without duplicates."""
    tags = [tag.strip() for tag in (existing or "").split(",") if tag.strip()]
    for tag in new_tags:
        if tag not in tags:
            tags.append(tag)
    return ", ".join(tags)
