"""
Marketplace credentials.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MarketplaceCredentials:
    """
    Platform identity and secrets for one adapter instance.

    Attributes:
        store_domain: Shop domain ("my-shop.myshopify.com")
        access_token: Admin API access token
        api_key: API key (private apps, used with api_secret)
        api_secret: API secret
        api_version: API version override; configuration default otherwise
        settings: Free-form adapter options
    """

    store_domain: str
    access_token: str | None = None
    api_key: str | None = None
    api_secret: str | None = None
    api_version: str | None = None
    settings: dict[str, Any] = field(default_factory=dict)

    @property
    def uses_basic_auth(self) -> bool:
        """True when no access token is set and a key/secret pair is."""
        return not self.access_token and bool(self.api_key and self.api_secret)

    def missing_fields(self) -> list[str]:
        """
        List the required credential fields that are missing.

        Returns:
            list[str]: Field names; empty when the credentials are usable
        """
        missing = []
        if not self.store_domain or not self.store_domain.strip():
            missing.append("store_domain")
        if not self.access_token and not (self.api_key and self.api_secret):
            missing.append("access_token")
        return missing

    def __repr__(self) -> str:
        return (
            f"MarketplaceCredentials(store_domain='{self.store_domain}', "
            f"api_version={self.api_version!r}, auth={'basic' if self.uses_basic_auth else 'token'})"
        )
