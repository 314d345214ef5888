"""
Marketplace Sync: rate-limited adapters between the canonical catalog/order
model and external marketplace REST APIs.
"""

from .version import __version__

__all__ = ["__version__"]
