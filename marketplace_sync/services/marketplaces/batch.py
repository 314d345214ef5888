"""
Batch orchestrator for multi-item marketplace writes.

Each item is processed independently: a failing item is recorded with its
reason and never aborts the rest of the batch. Concurrency is bounded by a
semaphore; every request still goes through the adapter's shared rate
limiter.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from marketplace_sync.core.config import Settings, get_settings
from marketplace_sync.domain.models.results import BatchFailure, BatchReport
from marketplace_sync.utils.error_handler import ConfigurationError, classify_exception

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEADLINE_REASON = "Batch deadline exceeded before the item was processed"


def _default_key(item: Any) -> str:
    return item.sku


class BatchOrchestrator:
    """
    Runs a per-item coroutine over a batch and aggregates a BatchReport.

    Outcomes are reported in input order regardless of completion order.
    """

    def __init__(self, max_concurrency: int = 1, timeout: Optional[float] = None):
        """
        Args:
            max_concurrency: Items processed at the same time (1 = sequential)
            timeout: Overall deadline in seconds; unfinished items fail

        Raises:
            ConfigurationError: If max_concurrency < 1 or timeout <= 0
        """
        if max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be at least 1")
        if timeout is not None and timeout <= 0:
            raise ConfigurationError("timeout must be greater than 0")

        self.max_concurrency = max_concurrency
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "BatchOrchestrator":
        settings = settings or get_settings()
        return cls(max_concurrency=settings.BATCH_MAX_CONCURRENCY, timeout=settings.BATCH_TIMEOUT_SECONDS)

    async def run(
        self,
        items: Sequence[T],
        handler: Callable[[T], Awaitable[Any]],
        key: Callable[[T], str] = _default_key,
        operation: str = "batch",
    ) -> BatchReport:
        """
        Process every item and report per-item outcomes.

        Args:
            items: Items to process
            handler: Coroutine applied to each item; raising marks it failed
            key: Identifier of an item in the report (SKU by default)
            operation: Operation name for logs

        Returns:
            BatchReport: Every item in exactly one of successful/failed
        """
        items = list(items)
        report = BatchReport()
        if not items:
            return report

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def process(item: T) -> Optional[str]:
            async with semaphore:
                try:
                    await handler(item)
                except Exception as e:
                    error = classify_exception(e, {"operation": operation, "sku": key(item)})
                    logger.warning(f"{operation}: item {key(item)} failed: {error.code.value}: {error.message}")
                    return error.message or type(e).__name__
                return None

        tasks = [asyncio.create_task(process(item)) for item in items]
        try:
            _, pending = await asyncio.wait(tasks, timeout=self.timeout)
        finally:
            # deadline or caller cancellation
            unfinished = [task for task in tasks if not task.done()]
            for task in unfinished:
                task.cancel()
            if unfinished:
                await asyncio.gather(*unfinished, return_exceptions=True)

        if pending:
            logger.error(f"{operation}: deadline of {self.timeout}s exceeded, {len(pending)} item(s) unfinished")

        for item, task in zip(items, tasks):
            item_key = key(item)
            if task in pending:
                report.failed.append(BatchFailure(sku=item_key, reason=DEADLINE_REASON))
                continue

            reason = task.result()
            if reason is None:
                report.successful.append(item_key)
            else:
                report.failed.append(BatchFailure(sku=item_key, reason=reason))

        logger.info(f"{operation}: {len(report.successful)} succeeded, {len(report.failed)} failed")
        return report
