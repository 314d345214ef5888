"""
Reintentos para llamadas a la API de la plataforma.

Backoff exponencial con jitter. Solo se reintentan las AppException marcadas
como reintentables (429, errores de red, 5xx); el resto se propaga al primer
intento.
"""

import asyncio
import logging
import random
import time
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from marketplace_sync.core.config import Settings, get_settings
from marketplace_sync.utils.error_handler import AppException, RateLimitError

logger = logging.getLogger(__name__)

JITTER_RATIO = 0.1


class RetryPolicy:
    """
    Cuántas veces y con qué espera se reintenta una llamada.

    `max_attempts` incluye el primer intento.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
    ):
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        if attempt >= self.max_attempts:
            return False
        return isinstance(exception, AppException) and exception.is_retryable

    def calculate_delay(self, attempt: int, exception: Optional[Exception] = None) -> float:
        """
        Segundos de espera antes del intento `attempt + 1`.

        Un Retry-After de la plataforma tiene prioridad sobre el backoff,
        siempre acotado por `max_delay`.
        """
        if isinstance(exception, RateLimitError) and exception.retry_after:
            return min(exception.retry_after, self.max_delay)

        backoff = self.base_delay * self.exponential_base ** (attempt - 1)
        if self.jitter:
            spread = backoff * JITTER_RATIO
            backoff += random.uniform(-spread, spread)

        return max(0.0, min(backoff, self.max_delay))


@dataclass
class RetryStats:
    total_attempts: int = 0
    total_successes: int = 0
    total_failures: int = 0
    total_retries: int = 0
    avg_duration: float = 0.0

    def record_success(self, duration: float) -> None:
        self.total_successes += 1
        # media incremental
        self.avg_duration += (duration - self.avg_duration) / self.total_successes


class RetryHandler:
    """
    Ejecuta corrutinas aplicando una RetryPolicy y acumula estadísticas.
    """

    def __init__(self, name: str, retry_policy: Optional[RetryPolicy] = None):
        self.name = name
        self.retry_policy = retry_policy or RetryPolicy()
        self.stats = RetryStats()

    async def execute(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        context: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> Any:
        """
        Ejecuta `func(*args, **kwargs)` con reintentos.

        Args:
            func: Función async a ejecutar
            context: Datos extra para los logs

        Raises:
            Exception: La excepción del último intento
        """
        context = context or {}
        policy = self.retry_policy
        started = time.monotonic()
        attempt = 0

        while True:
            attempt += 1
            self.stats.total_attempts += 1
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                self.stats.total_failures += 1
                if not policy.should_retry(e, attempt):
                    if attempt > 1:
                        logger.warning(
                            f"{self.name}: giving up after {attempt} attempts ({type(e).__name__}: {e})",
                            extra={"attempt": attempt, "context": context},
                        )
                    raise

                delay = policy.calculate_delay(attempt, e)
                self.stats.total_retries += 1
                logger.info(
                    f"{self.name}: attempt {attempt}/{policy.max_attempts} failed, retrying in {delay:.2f}s",
                    extra={"exception": str(e), "delay": delay, "context": context},
                )
                await asyncio.sleep(delay)
            else:
                self.stats.record_success(time.monotonic() - started)
                return result

    def get_metrics(self) -> Dict[str, Any]:
        attempts = self.stats.total_attempts
        success_rate = self.stats.total_successes / attempts * 100 if attempts else 0
        return {"name": self.name, **asdict(self.stats), "success_rate": round(success_rate, 2)}

    def reset_metrics(self) -> None:
        self.stats = RetryStats()


def create_marketplace_retry_handler(settings: Optional[Settings] = None, name: str = "shopify_api") -> RetryHandler:
    """Handler con los límites de reintento de la configuración."""
    settings = settings or get_settings()
    policy = RetryPolicy(
        max_attempts=settings.SHOPIFY_MAX_RETRIES + 1,
        base_delay=settings.SHOPIFY_RETRY_INITIAL_DELAY,
        max_delay=settings.SHOPIFY_RETRY_MAX_DELAY,
    )
    return RetryHandler(name, policy)
