"""
Shopify REST client for product and variant operations.
"""

import logging
from typing import Any, Dict, Optional

from marketplace_sync.utils.error_handler import NotFoundError
from marketplace_sync.utils.id_utils import graphql_to_rest_id

from .base_client import BaseShopifyRestClient, ShopifyPage

logger = logging.getLogger(__name__)


class ShopifyProductClient(BaseShopifyRestClient):
    """
    Specialized client for Shopify product operations.

    Handles product listing, counting, lookup and updates of products and
    their variants.
    """

    async def list_products(
        self,
        limit: int = 250,
        page_token: Optional[str] = None,
        **filters: Any,
    ) -> ShopifyPage:
        """
        List one page of products.

        Args:
            limit: Page size (capped at the platform maximum)
            page_token: Cursor from a previous page; filters are ignored with it
            **filters: Query filters (status, updated_at_min, collection_id...)

        Returns:
            ShopifyPage: Products and the next-page cursor
        """
        params = self._page_params(limit, page_token, filters)
        page = await self._get_page("/products.json", "products", params)
        logger.debug(f"Fetched {len(page.items)} products (next cursor: {page.next_page_token is not None})")
        return page

    async def count_products(self, **filters: Any) -> int:
        """
        Count products matching the filters.

        Returns:
            int: Product count
        """
        response = await self._request("GET", "/products/count.json", params=filters)
        return int(response.data.get("count", 0))

    async def get_product(self, product_id: str) -> Dict[str, Any]:
        """
        Get a product with its variants and images.

        Raises:
            NotFoundError: If the product does not exist
        """
        product_id = graphql_to_rest_id(product_id)
        response = await self._request("GET", f"/products/{product_id}.json")
        product = response.data.get("product")
        if not product:
            raise NotFoundError(f"Product with ID {product_id} not found")
        return product

    async def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update product attributes (status, title...).

        Args:
            product_id: Platform product id
            fields: Attributes to change

        Returns:
            Dict: Updated product
        """
        product_id = graphql_to_rest_id(product_id)
        payload = {"product": {"id": int(product_id), **fields}}
        response = await self._request("PUT", f"/products/{product_id}.json", payload=payload)
        return response.data.get("product") or {}

    async def get_variant(self, variant_id: str) -> Dict[str, Any]:
        """
        Get a variant (price, inventory_item_id...).

        Raises:
            NotFoundError: If the variant does not exist
        """
        variant_id = graphql_to_rest_id(variant_id)
        response = await self._request("GET", f"/variants/{variant_id}.json")
        variant = response.data.get("variant")
        if not variant:
            raise NotFoundError(f"Variant with ID {variant_id} not found")
        return variant

    async def update_variant(self, variant_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update variant attributes (price, compare_at_price...).

        Returns:
            Dict: Updated variant
        """
        variant_id = graphql_to_rest_id(variant_id)
        payload = {"variant": {"id": int(variant_id), **fields}}
        response = await self._request("PUT", f"/variants/{variant_id}.json", payload=payload)
        return response.data.get("variant") or {}
