"""
Base Shopify REST client with common functionality.

This module provides the foundation for all Shopify REST clients,
including session management, rate limiting, retries, error
classification and Link-header pagination.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import aiohttp
from aiohttp import ClientTimeout

from marketplace_sync.core.config import Settings, get_settings
from marketplace_sync.core.logging_config import log_api_call
from marketplace_sync.domain.models.credentials import MarketplaceCredentials
from marketplace_sync.utils.error_handler import (
    AppException,
    ConfigurationError,
    NotInitializedError,
    TransportError,
    convert_to_app_exception,
    exception_for_status,
)
from marketplace_sync.utils.id_utils import extract_next_page_token
from marketplace_sync.utils.rate_limiter import LeakyBucketRateLimiter
from marketplace_sync.utils.retry_handler import RetryHandler, create_marketplace_retry_handler
from marketplace_sync.version import __version__

logger = logging.getLogger(__name__)

CALL_LIMIT_HEADER = "x-shopify-shop-api-call-limit"


@dataclass(frozen=True)
class ShopifyResponse:
    """Decoded response: JSON body, lower-cased headers and status code."""

    data: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
    status: int = 200


@dataclass(frozen=True)
class ShopifyPage:
    """One page of a list endpoint and the cursor of the next page, if any."""

    items: List[Dict[str, Any]]
    next_page_token: Optional[str] = None


class BaseShopifyRestClient:
    """
    Base client for Shopify Admin REST API operations.

    Every request acquires one token from the shared rate limiter before it is
    sent; each retry attempt acquires again.
    """

    def __init__(
        self,
        credentials: MarketplaceCredentials,
        rate_limiter: LeakyBucketRateLimiter,
        settings: Optional[Settings] = None,
        retry_handler: Optional[RetryHandler] = None,
    ):
        """
        Initialize the base client.

        Args:
            credentials: Store domain and secrets
            rate_limiter: Limiter shared by every request of the adapter
            settings: Configuration (global settings by default)
            retry_handler: Retry strategy (built from settings by default)

        Raises:
            ConfigurationError: If a required dependency is missing
        """
        if credentials is None:
            raise ConfigurationError("credentials are required")
        if rate_limiter is None:
            raise ConfigurationError("rate_limiter is required")

        self.settings = settings or get_settings()
        self.credentials = credentials
        self.rate_limiter = rate_limiter
        self.retry_handler = retry_handler or create_marketplace_retry_handler(self.settings)
        self.api_version = credentials.api_version or self.settings.SHOPIFY_API_VERSION
        self.base_url = self.settings.shopify_api_base_url(credentials.store_domain, self.api_version)

        self.session: Optional[aiohttp.ClientSession] = None

    async def initialize(self):
        """
        Create the HTTP session.

        Connectivity is probed separately with test_connection().
        """
        if self.session:
            return

        timeout = ClientTimeout(
            total=self.settings.SHOPIFY_REQUEST_TIMEOUT,
            connect=self.settings.SHOPIFY_CONNECT_TIMEOUT,
        )
        connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"{self.settings.APP_NAME.replace(' ', '-')}/{__version__}",
        }
        auth = None
        if self.credentials.uses_basic_auth:
            auth = aiohttp.BasicAuth(self.credentials.api_key, self.credentials.api_secret)
        else:
            headers["X-Shopify-Access-Token"] = self.credentials.access_token or ""

        self.session = aiohttp.ClientSession(timeout=timeout, connector=connector, headers=headers, auth=auth)
        logger.info(f"Initialized Shopify REST client for {self.base_url}")

    async def close(self):
        """Close the HTTP session and clean up resources."""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info("Shopify REST client closed")

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> ShopifyResponse:
        """
        Execute a REST call with rate limiting, retries and error classification.

        Args:
            method: HTTP method
            path: Path relative to the versioned base URL ("/products.json")
            params: Query parameters (None values are dropped)
            payload: JSON body

        Returns:
            ShopifyResponse: Decoded response

        Raises:
            NotInitializedError: If initialize() was not called
            AppException: Classified platform or transport error
        """
        if not self.session:
            raise NotInitializedError("Client not initialized. Call initialize() first.")

        clean_params = {key: value for key, value in (params or {}).items() if value is not None}

        return await self.retry_handler.execute(
            self._send,
            method,
            path,
            clean_params,
            payload,
            context={"method": method, "path": path},
        )

    async def _send(
        self,
        method: str,
        path: str,
        params: Dict[str, Any],
        payload: Optional[Dict[str, Any]],
    ) -> ShopifyResponse:
        """Single attempt: acquire a token, send, classify."""
        await self.rate_limiter.acquire(1)

        url = f"{self.base_url}{path}"
        start_time = time.monotonic()

        try:
            async with self.session.request(method, url, params=params or None, json=payload) as response:
                duration = time.monotonic() - start_time
                headers = {key.lower(): value for key, value in response.headers.items()}

                self._record_call_limit(headers)
                log_api_call(method, url, response.status, duration)

                if response.status >= 400:
                    body = await response.text()
                    raise exception_for_status(
                        response.status,
                        f"HTTP {response.status}: {self._extract_error_message(body)}",
                        retry_after=self._parse_retry_after(headers),
                        details={"method": method, "path": path},
                    )

                text = await response.text()
                data = json.loads(text) if text.strip() else {}
                return ShopifyResponse(data=data or {}, headers=headers, status=response.status)

        except AppException:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise convert_to_app_exception(e, {"method": method, "path": path}) from e
        except ValueError as e:
            raise TransportError(f"Invalid JSON response from {path}: {e}") from e

    def _record_call_limit(self, headers: Dict[str, str]) -> None:
        """Refresh limiter telemetry from the X-Shopify-Shop-Api-Call-Limit header."""
        raw_value = headers.get(CALL_LIMIT_HEADER)
        if not raw_value:
            return

        used, _, limit = raw_value.partition("/")
        try:
            self.rate_limiter.record_platform_usage(int(used), int(limit))
        except ValueError:
            logger.debug(f"Unparseable call limit header: {raw_value}")

    @staticmethod
    def _parse_retry_after(headers: Dict[str, str]) -> Optional[float]:
        raw_value = headers.get("retry-after")
        if not raw_value:
            return None
        try:
            return float(raw_value)
        except ValueError:
            return None

    @staticmethod
    def _extract_error_message(body: str) -> str:
        """
        Flatten Shopify's error body into one line.

        Shopify returns {"errors": "Not Found"} or
        {"errors": {"title": ["can't be blank"]}}.
        """
        if not body:
            return "Unknown error"

        try:
            data = json.loads(body)
        except ValueError:
            return body[:200]

        errors = data.get("errors", data.get("error")) if isinstance(data, dict) else data
        if isinstance(errors, dict):
            parts = []
            for field_name, messages in errors.items():
                if isinstance(messages, list):
                    messages = ", ".join(str(m) for m in messages)
                parts.append(f"{field_name}: {messages}")
            return "; ".join(parts)
        if isinstance(errors, list):
            return "; ".join(str(e) for e in errors)
        return str(errors) if errors else "Unknown error"

    async def _get_page(self, path: str, key: str, params: Optional[Dict[str, Any]] = None) -> ShopifyPage:
        """
        GET a list endpoint and return its items and next-page cursor.

        Args:
            path: List endpoint
            key: Top-level JSON key holding the items ("products", "orders"...)
            params: Query parameters

        Returns:
            ShopifyPage: Items plus opaque cursor from the Link header
        """
        response = await self._request("GET", path, params=params)
        return ShopifyPage(
            items=response.data.get(key) or [],
            next_page_token=extract_next_page_token(response.headers.get("link")),
        )

    def _page_params(self, limit: int, page_token: Optional[str], filters: Dict[str, Any]) -> Dict[str, Any]:
        """
        Build list query parameters.

        Shopify rejects filter parameters alongside page_info: the cursor
        already encodes them.
        """
        limit = max(1, min(limit, self.settings.SHOPIFY_MAX_PAGE_SIZE))
        if page_token:
            return {"limit": limit, "page_info": page_token}
        return {"limit": limit, **filters}

    async def test_connection(self) -> Dict[str, Any]:
        """
        Fetch the shop record.

        Returns:
            Dict: Shop data (name, currency...)

        Raises:
            AppException: If the shop cannot be read
        """
        response = await self._request("GET", "/shop.json")
        shop = response.data.get("shop")
        if not shop:
            raise TransportError("Shop details missing from /shop.json response")

        logger.info(f"Connected to Shopify store: {shop.get('name', 'Unknown')} ({shop.get('currency', 'Unknown')})")
        return shop

    async def get_locations(self) -> List[Dict[str, Any]]:
        """
        Get all locations for the shop.

        Returns:
            List of location dictionaries
        """
        response = await self._request("GET", "/locations.json")
        return response.data.get("locations") or []

    async def get_default_location_id(self) -> str:
        """
        Resolve the location used for inventory writes.

        Picks the first active location, falling back to the first one.
        Resolved on every call.

        Returns:
            str: Location id

        Raises:
            TransportError: If the shop has no locations
        """
        locations = await self.get_locations()

        for location in locations:
            if location.get("active", False):
                logger.debug(f"Using active location: {location.get('name', 'Unknown')} ({location.get('id')})")
                return str(location["id"])

        if locations:
            location = locations[0]
            logger.warning(f"No active location, using first available: {location.get('name', 'Unknown')}")
            return str(location["id"])

        raise TransportError("No locations found for inventory operations")

    def __str__(self):
        return f"{self.__class__.__name__}(shop={self.base_url})"

    def __repr__(self):
        return (
            f"{self.__class__.__name__}("
            f"base_url='{self.base_url}', "
            f"api_version='{self.api_version}', "
            f"initialized={self.session is not None})"
        )
