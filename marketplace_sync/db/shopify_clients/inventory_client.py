"""
Shopify REST client for inventory operations.
"""

import logging
from typing import Any, Dict

from marketplace_sync.utils.error_handler import ValidationError
from marketplace_sync.utils.id_utils import graphql_to_rest_id

from .base_client import BaseShopifyRestClient

logger = logging.getLogger(__name__)


class ShopifyInventoryClient(BaseShopifyRestClient):
    """
    Specialized client for Shopify inventory operations.

    Inventory is tracked per inventory item and location; a variant maps to
    exactly one inventory item.
    """

    async def set_inventory_level(self, inventory_item_id: str, location_id: str, available: int) -> Dict[str, Any]:
        """
        Set the available quantity of an inventory item at a location.

        Args:
            inventory_item_id: Inventory item of the variant
            location_id: Location to update
            available: Absolute available quantity

        Returns:
            Dict: Resulting inventory level

        Raises:
            ValidationError: If the quantity is negative
        """
        if available < 0:
            raise ValidationError("Stock quantity cannot be negative", field="available", invalid_value=available)

        payload = {
            "inventory_item_id": int(graphql_to_rest_id(str(inventory_item_id))),
            "location_id": int(graphql_to_rest_id(str(location_id))),
            "available": available,
        }
        response = await self._request("POST", "/inventory_levels/set.json", payload=payload)

        logger.debug(
            f"Inventory set: item={payload['inventory_item_id']} "
            f"location={payload['location_id']} available={available}"
        )
        return response.data.get("inventory_level") or {}
