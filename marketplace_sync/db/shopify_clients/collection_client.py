"""
Shopify REST client for collection operations.

Collections are the closest Shopify equivalent of marketplace categories.
"""

import logging
from typing import Any, Dict, List, Optional

from marketplace_sync.utils.id_utils import graphql_to_rest_id

from .base_client import BaseShopifyRestClient, ShopifyPage

logger = logging.getLogger(__name__)


class ShopifyCollectionClient(BaseShopifyRestClient):
    """
    Specialized client for Shopify collection operations.
    """

    async def list_custom_collections(self, limit: int = 250) -> List[Dict[str, Any]]:
        """Get the first page of manually curated collections."""
        page = await self._get_page("/custom_collections.json", "custom_collections", {"limit": limit})
        return page.items

    async def list_smart_collections(self, limit: int = 250) -> List[Dict[str, Any]]:
        """Get the first page of rule-based collections."""
        page = await self._get_page("/smart_collections.json", "smart_collections", {"limit": limit})
        return page.items

    async def list_collection_products(
        self, collection_id: str, limit: int = 250, page_token: Optional[str] = None
    ) -> ShopifyPage:
        """
        List products that belong to a collection.

        Args:
            collection_id: Collection id (numeric or gid)
            limit: Page size
            page_token: Cursor from a previous page

        Returns:
            ShopifyPage: Products of the collection
        """
        collection_id = graphql_to_rest_id(collection_id)
        params = self._page_params(limit, page_token, {})
        return await self._get_page(f"/collections/{collection_id}/products.json", "products", params)

    async def create_collect(self, collection_id: str, product_id: str) -> Dict[str, Any]:
        """
        Add a product to a custom collection.

        Returns:
            Dict: Created collect
        """
        payload = {
            "collect": {
                "collection_id": int(graphql_to_rest_id(collection_id)),
                "product_id": int(graphql_to_rest_id(product_id)),
            }
        }
        response = await self._request("POST", "/collects.json", payload=payload)
        logger.info(f"Product {product_id} added to collection {collection_id}")
        return response.data.get("collect") or {}
