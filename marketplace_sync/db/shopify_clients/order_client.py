"""
Shopify REST client for order operations.

Covers order listing for polling, lookups and the targeted write
operations (tags/note update, cancellation, fulfillment).
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from marketplace_sync.utils.error_handler import NotFoundError
from marketplace_sync.utils.id_utils import graphql_to_rest_id

from .base_client import BaseShopifyRestClient, ShopifyPage

logger = logging.getLogger(__name__)


class ShopifyOrderClient(BaseShopifyRestClient):
    """
    Specialized client for Shopify order operations.
    """

    async def list_orders(
        self,
        updated_at_min: Optional[datetime] = None,
        limit: int = 50,
        page_token: Optional[str] = None,
        status: str = "any",
    ) -> ShopifyPage:
        """
        List one page of orders updated since a date.

        Args:
            updated_at_min: Lower bound on the update timestamp
            limit: Page size
            page_token: Cursor from a previous page
            status: Shopify status filter ("any" includes closed and cancelled)

        Returns:
            ShopifyPage: Orders and the next-page cursor
        """
        filters: Dict[str, Any] = {"status": status}
        if updated_at_min:
            filters["updated_at_min"] = updated_at_min.isoformat()

        params = self._page_params(limit, page_token, filters)
        return await self._get_page("/orders.json", "orders", params)

    async def count_orders(self, updated_at_min: Optional[datetime] = None, status: str = "any") -> int:
        """Count orders updated since a date."""
        params: Dict[str, Any] = {"status": status}
        if updated_at_min:
            params["updated_at_min"] = updated_at_min.isoformat()

        response = await self._request("GET", "/orders/count.json", params=params)
        return int(response.data.get("count", 0))

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        """
        Get an order by id.

        Raises:
            NotFoundError: If the order does not exist
        """
        order_id = graphql_to_rest_id(order_id)
        response = await self._request("GET", f"/orders/{order_id}.json")
        order = response.data.get("order")
        if not order:
            raise NotFoundError(f"Order with ID {order_id} not found")
        return order

    async def update_order(self, order_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update order attributes (tags, note).

        Raises:
            NotFoundError: If the platform returns no order
        """
        order_id = graphql_to_rest_id(order_id)
        payload = {"order": {"id": int(order_id), **fields}}
        response = await self._request("PUT", f"/orders/{order_id}.json", payload=payload)
        order = response.data.get("order")
        if not order:
            raise NotFoundError(f"Order with ID {order_id} not found")
        return order

    async def cancel_order(self, order_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        """Cancel an order."""
        order_id = graphql_to_rest_id(order_id)
        payload = {"reason": reason} if reason else {}
        response = await self._request("POST", f"/orders/{order_id}/cancel.json", payload=payload)
        logger.info(f"Order {order_id} cancelled")
        return response.data.get("order") or {}

    async def create_fulfillment(self, order_id: str, fulfillment: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a fulfillment for an order.

        Args:
            order_id: Platform order id
            fulfillment: Fulfillment body (location_id, line_items, tracking...)

        Returns:
            Dict: Created fulfillment
        """
        order_id = graphql_to_rest_id(order_id)
        response = await self._request(
            "POST", f"/orders/{order_id}/fulfillments.json", payload={"fulfillment": fulfillment}
        )
        logger.info(f"Fulfillment created for order {order_id}")
        return response.data.get("fulfillment") or {}
