"""
Identifier and cursor helpers for the Shopify REST API.

Handles the composite product identifier used by the canonical model
("{productId}-{variantId}"), GraphQL global ids that some callers still pass
in ("gid://shopify/Product/123"), and the opaque `page_info` cursor carried
by the `Link` response header.
"""

import logging
import re
from typing import Optional, Tuple
from urllib.parse import parse_qs, urlparse

logger = logging.getLogger(__name__)

_GID_PATTERN = re.compile(r"gid://shopify/\w+/(\d+)")
_LINK_ENTRY_PATTERN = re.compile(r'<([^>]+)>\s*;\s*rel="?([^";]+)"?')


def graphql_to_rest_id(graphql_id: str) -> str:
    """
    Extract the numeric ID from a GraphQL global ID.

    Args:
        graphql_id: GraphQL global ID (e.g., "gid://shopify/Product/298548887612")

    Returns:
        Numeric REST ID (e.g., "298548887612"), or the input unchanged
    """
    if not graphql_id:
        return ""

    graphql_id = str(graphql_id).strip()
    if graphql_id.isdigit():
        return graphql_id

    match = _GID_PATTERN.match(graphql_id)
    if match:
        return match.group(1)

    return graphql_id


def join_composite_id(product_id, variant_id) -> str:
    """Build the canonical product identifier from a product and variant id."""
    return f"{graphql_to_rest_id(str(product_id))}-{graphql_to_rest_id(str(variant_id))}"


def split_composite_id(composite_id: str) -> Tuple[str, Optional[str]]:
    """
    Split a canonical product identifier into its platform parts.

    Args:
        composite_id: "{productId}-{variantId}", a bare product id or a gid

    Returns:
        Tuple of (product_id, variant_id); variant_id is None for bare ids

    Raises:
        ValueError: If the identifier is empty or not numeric
    """
    if not composite_id or not str(composite_id).strip():
        raise ValueError("Product identifier cannot be empty")

    value = str(composite_id).strip()
    if value.startswith("gid://"):
        value = graphql_to_rest_id(value)

    product_part, sep, variant_part = value.partition("-")
    if not product_part.isdigit() or (sep and not variant_part.isdigit()):
        raise ValueError(f"Invalid product identifier: {composite_id}")

    return product_part, variant_part if sep else None


def extract_next_page_token(link_header: Optional[str]) -> Optional[str]:
    """
    Get the `page_info` cursor of the rel="next" entry of a Link header.

    Args:
        link_header: Raw header value, e.g.
            '<https://shop/admin/api/2024-10/products.json?page_info=abc&limit=50>; rel="next"'

    Returns:
        The opaque cursor, or None when there is no next page
    """
    if not link_header:
        return None

    for entry in link_header.split(","):
        match = _LINK_ENTRY_PATTERN.search(entry)
        if not match or match.group(2).strip() != "next":
            continue

        values = parse_qs(urlparse(match.group(1)).query).get("page_info")
        if values:
            return values[0]

        logger.debug(f"rel=next link without page_info: {match.group(1)}")

    return None
