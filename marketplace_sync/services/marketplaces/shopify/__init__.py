"""
Shopify marketplace integration.
"""

from .adapter import ShopifyAdapter

__all__ = ["ShopifyAdapter"]
