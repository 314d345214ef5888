"""
Shared behaviour of marketplace adapters.

Lifecycle bookkeeping, result wrapping and error classification used by every
platform implementation.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from marketplace_sync.core.config import Settings, get_settings
from marketplace_sync.domain.models import BatchReport, MarketplaceCredentials, OperationResult, PaginatedResponse
from marketplace_sync.utils.error_handler import (
    ErrorCode,
    MarketplaceError,
    NotInitializedError,
    classify_exception,
)
from marketplace_sync.utils.rate_limiter import LeakyBucketRateLimiter

from .batch import BatchOrchestrator
from .interfaces import MarketplaceAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that describe the caller's input rather than a platform failure
_EXPECTED_CODES = {ErrorCode.NOT_FOUND, ErrorCode.VALIDATION_ERROR, ErrorCode.NOT_INITIALIZED}


class BaseMarketplaceAdapter(MarketplaceAdapter):
    """
    Base class for marketplace adapters.

    Each instance owns its rate limiter and batch orchestrator; both can be
    injected through the constructor.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rate_limiter: Optional[LeakyBucketRateLimiter] = None,
        batch_orchestrator: Optional[BatchOrchestrator] = None,
    ):
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter or LeakyBucketRateLimiter.from_settings(self.settings)
        self.batch = batch_orchestrator or BatchOrchestrator.from_settings(self.settings)
        self._credentials: Optional[MarketplaceCredentials] = None
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def credentials(self) -> Optional[MarketplaceCredentials]:
        return self._credentials

    def _ensure_initialized(self) -> None:
        """
        Raises:
            NotInitializedError: If initialize() has not succeeded
        """
        if not self._initialized:
            raise NotInitializedError(f"{self.marketplace_name} adapter not initialized. Call initialize() first.")

    def _classify(self, exception: BaseException, operation: str, **context: Any) -> MarketplaceError:
        """Classify an exception and log it at a level matching its code."""
        error = classify_exception(exception, {"operation": operation, **context})

        if error.code in _EXPECTED_CODES:
            logger.warning(f"{self.marketplace_id}.{operation} failed: {error.code.value}: {error.message}")
        else:
            logger.error(
                f"{self.marketplace_id}.{operation} failed: {error.code.value}: {error.message}",
                extra={"retriable": error.retriable, "context": context},
            )
        return error

    @staticmethod
    def _success(data: T) -> OperationResult[T]:
        return OperationResult.ok(data)

    def _failure(self, exception: BaseException, operation: str, **context: Any) -> OperationResult[Any]:
        return OperationResult.fail(self._classify(exception, operation, **context))

    def _failed_page(
        self, exception: BaseException, operation: str, page: int, page_size: int
    ) -> PaginatedResponse[Any]:
        error = self._classify(exception, operation, page=page, page_size=page_size)
        return PaginatedResponse.failed(page, page_size, error)

    async def _run_batch(
        self,
        items: Sequence[Any],
        handler: Callable[[Any], Awaitable[Any]],
        operation: str,
    ) -> BatchReport:
        """
        Run a batch write through the orchestrator.

        When the batch cannot start (adapter not initialized) every item is
        reported failed with the same reason.
        """
        items = list(items)
        try:
            self._ensure_initialized()
        except NotInitializedError as e:
            return BatchReport.all_failed([item.sku for item in items], self._classify(e, operation))

        logger.debug(f"{self.marketplace_id}.{operation}: processing {len(items)} item(s)")
        return await self.batch.run(items, handler, key=lambda item: item.sku, operation=operation)

    async def _release(self) -> None:
        """Release platform resources (HTTP sessions). Overridden by adapters."""

    async def close(self) -> None:
        """Release resources and clear credentials. Safe to call repeatedly."""
        if not self._initialized and self._credentials is None:
            return

        await self._release()
        self._credentials = None
        self._initialized = False
        logger.info(f"{self.marketplace_name} adapter closed")
