"""Tests unitarios para la taxonomía de errores."""

import asyncio

import aiohttp
import pytest

from marketplace_sync.utils.error_handler import (
    AuthenticationError,
    ErrorCode,
    MarketplaceError,
    NotFoundError,
    RateLimitError,
    TransportError,
    UnknownPlatformError,
    ValidationError,
    classify_exception,
    convert_to_app_exception,
    exception_for_status,
)


class TestExceptionForStatus:
    """Tests de mapeo de códigos HTTP."""

    @pytest.mark.parametrize(
        "status, expected, retryable",
        [
            (404, NotFoundError, False),
            (400, ValidationError, False),
            (422, ValidationError, False),
            (401, AuthenticationError, False),
            (403, AuthenticationError, False),
            (429, RateLimitError, True),
            (500, UnknownPlatformError, True),
            (503, UnknownPlatformError, True),
            (418, UnknownPlatformError, False),
        ],
    )
    def test_status_mapping(self, status, expected, retryable):
        exception = exception_for_status(status, "boom")

        assert isinstance(exception, expected)
        assert exception.status_code == status
        assert exception.is_retryable is retryable

    def test_rate_limit_keeps_retry_after(self):
        exception = exception_for_status(429, "slow down", retry_after=2.0)
        assert exception.retry_after == 2.0


class TestConvertToAppException:
    def test_timeout_is_transport(self):
        exception = convert_to_app_exception(asyncio.TimeoutError())
        assert isinstance(exception, TransportError)
        assert exception.is_retryable

    def test_client_error_is_transport(self):
        exception = convert_to_app_exception(aiohttp.ClientConnectionError("refused"))
        assert isinstance(exception, TransportError)

    def test_unknown_exception(self):
        exception = convert_to_app_exception(KeyError("missing"), {"operation": "x"})
        assert isinstance(exception, UnknownPlatformError)
        assert exception.details["original_exception"] == "KeyError"
        assert exception.details["operation"] == "x"


class TestMarketplaceError:
    """Tests del error clasificado que viaja en los resultados."""

    def test_classify_keeps_code_and_retriable(self):
        error = classify_exception(RateLimitError("throttled", retry_after=1.0))

        assert error.code == ErrorCode.RATE_LIMIT_EXCEEDED
        assert error.retriable is True
        assert error.message == "throttled"

    def test_classify_unknown_exception(self):
        error = classify_exception(RuntimeError("oops"))
        assert error.code == ErrorCode.UNKNOWN_PLATFORM_ERROR
        assert error.retriable is False

    def test_to_exception_rebuilds_type(self):
        error = MarketplaceError(code=ErrorCode.NOT_FOUND, message="Product with SKU X not found")

        exception = error.to_exception()

        assert isinstance(exception, NotFoundError)
        assert exception.message == "Product with SKU X not found"

    def test_to_dict(self):
        error = MarketplaceError(code=ErrorCode.VALIDATION_ERROR, message="bad", details={"field": "price"})
        assert error.to_dict() == {
            "code": "VALIDATION_ERROR",
            "message": "bad",
            "retriable": False,
            "details": {"field": "price"},
        }

    def test_validation_error_details(self):
        exception = ValidationError("Price cannot be negative", field="price", invalid_value=-1)
        assert exception.details == {"field": "price", "invalid_value": "-1"}
        assert str(exception) == "VALIDATION_ERROR: Price cannot be negative"
