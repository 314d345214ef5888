"""Tests unitarios para la política de reintentos."""

from unittest.mock import AsyncMock, patch

import pytest

from marketplace_sync.utils.error_handler import NotFoundError, RateLimitError, TransportError
from marketplace_sync.utils.retry_handler import RetryHandler, RetryPolicy, create_marketplace_retry_handler


class TestRetryPolicy:
    """Tests de decisión y cálculo de delays."""

    def test_retries_only_retryable_errors(self):
        policy = RetryPolicy(max_attempts=3)

        assert policy.should_retry(TransportError("reset"), 1)
        assert not policy.should_retry(NotFoundError("missing"), 1)
        assert not policy.should_retry(ValueError("raw"), 1)

    def test_stops_at_max_attempts(self):
        policy = RetryPolicy(max_attempts=3)
        assert not policy.should_retry(TransportError("reset"), 3)

    def test_exponential_delay_without_jitter(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=10.0, jitter=False)

        assert policy.calculate_delay(1) == 1.0
        assert policy.calculate_delay(2) == 2.0
        assert policy.calculate_delay(3) == 4.0
        assert policy.calculate_delay(10) == 10.0

    def test_retry_after_takes_precedence(self):
        """El Retry-After de la plataforma debe usarse, acotado por max_delay."""
        policy = RetryPolicy(base_delay=1.0, max_delay=5.0, jitter=False)

        assert policy.calculate_delay(1, RateLimitError("429", retry_after=3.0)) == 3.0
        assert policy.calculate_delay(1, RateLimitError("429", retry_after=30.0)) == 5.0


class TestRetryHandler:
    """Tests de ejecución con reintentos."""

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        handler = RetryHandler("test", RetryPolicy(max_attempts=3, base_delay=0.1, jitter=False))
        operation = AsyncMock(side_effect=[TransportError("reset"), "ok"])

        with patch("marketplace_sync.utils.retry_handler.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await handler.execute(operation, "arg")

        assert result == "ok"
        assert operation.await_count == 2
        mock_sleep.assert_awaited_once_with(0.1)
        assert handler.get_metrics()["total_retries"] == 1

    @pytest.mark.asyncio
    async def test_non_retryable_error_raises_immediately(self):
        handler = RetryHandler("test", RetryPolicy(max_attempts=3))
        operation = AsyncMock(side_effect=NotFoundError("missing"))

        with pytest.raises(NotFoundError):
            await handler.execute(operation)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_raises_last_exception_when_exhausted(self):
        handler = RetryHandler("test", RetryPolicy(max_attempts=2, base_delay=0.1, jitter=False))
        operation = AsyncMock(side_effect=[TransportError("first"), TransportError("second")])

        with patch("marketplace_sync.utils.retry_handler.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(TransportError, match="second"):
                await handler.execute(operation)

        metrics = handler.get_metrics()
        assert metrics["total_attempts"] == 2
        assert metrics["total_failures"] == 2

    def test_factory_uses_settings(self, settings):
        """max_attempts debe ser SHOPIFY_MAX_RETRIES + 1."""
        handler = create_marketplace_retry_handler(settings)

        assert handler.retry_policy.max_attempts == settings.SHOPIFY_MAX_RETRIES + 1
        assert handler.retry_policy.base_delay == settings.SHOPIFY_RETRY_INITIAL_DELAY
