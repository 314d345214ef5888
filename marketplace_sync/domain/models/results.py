"""
Result envelopes returned across the adapter boundary.

Expected failures (not found, validation, rate limiting, transport) travel
inside these envelopes as a classified MarketplaceError instead of being
raised.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generic, Sequence, TypeVar

from marketplace_sync.utils.error_handler import MarketplaceError

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Success/failure envelope for single-item operations."""

    success: bool
    data: T | None = None
    error: MarketplaceError | None = None

    @classmethod
    def ok(cls, data: T) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: MarketplaceError) -> "OperationResult[T]":
        return cls(success=False, error=error)

    def unwrap(self) -> T:
        """
        Return the payload or raise the exception matching the error code.

        Raises:
            AppException: Typed exception rebuilt from the error
        """
        if self.success:
            return self.data  # type: ignore[return-value]
        if self.error is None:
            raise RuntimeError("Failed result without error")
        raise self.error.to_exception()


@dataclass(frozen=True)
class BatchFailure:
    """One failed item of a batch write."""

    sku: str
    reason: str


@dataclass
class BatchReport:
    """
    Per-item accounting of a batch write.

    Every input identifier appears in exactly one of successful or failed.
    error is set when the batch failed before any item was processed.
    """

    successful: list[str] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)
    error: MarketplaceError | None = None

    @classmethod
    def all_failed(cls, skus: Sequence[str], error: MarketplaceError) -> "BatchReport":
        """Report in which every item failed with the same top-level reason."""
        return cls(
            successful=[],
            failed=[BatchFailure(sku=sku, reason=error.message) for sku in skus],
            error=error,
        )

    @property
    def total(self) -> int:
        return len(self.successful) + len(self.failed)

    @property
    def success(self) -> bool:
        """True when no item failed and the batch itself did not fail."""
        return self.error is None and not self.failed

    @property
    def failed_skus(self) -> list[str]:
        return [failure.sku for failure in self.failed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "successful": list(self.successful),
            "failed": [{"sku": f.sku, "reason": f.reason} for f in self.failed],
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass(frozen=True)
class PaginatedResponse(Generic[T]):
    """
    One page of a listing.

    page is 0-based. page_token is the opaque continuation cursor for the
    next page, when the platform returned one.
    """

    data: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool
    page_token: str | None = None
    error: MarketplaceError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def build(
        cls,
        data: list[T],
        total: int,
        page: int,
        page_size: int,
        page_token: str | None = None,
        has_prev: bool | None = None,
    ) -> "PaginatedResponse[T]":
        """
        Build a page computing the navigation fields from the total count.

        has_prev defaults to page > 0.
        """
        total_pages = -(-total // page_size) if page_size > 0 else 0
        return cls(
            data=data,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next=page < total_pages - 1 or page_token is not None,
            has_prev=page > 0 if has_prev is None else has_prev,
            page_token=page_token,
        )

    @classmethod
    def failed(cls, page: int, page_size: int, error: MarketplaceError) -> "PaginatedResponse[T]":
        """Empty page carrying an error."""
        return cls(
            data=[],
            total=0,
            page=page,
            page_size=page_size,
            total_pages=0,
            has_next=False,
            has_prev=False,
            error=error,
        )


@dataclass(frozen=True)
class ConnectionStatus:
    """Outcome of a connectivity probe."""

    connected: bool
    message: str
    last_checked: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class OrderAcknowledgment:
    """Confirmation that an order was acknowledged on the platform."""

    order_id: str
    success: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
