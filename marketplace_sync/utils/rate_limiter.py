"""
Rate limiter de tipo leaky bucket para la API de la plataforma.

El bucket se rellena de forma continua a `tokens_per_second` hasta
`bucket_size`. Cada petición saliente debita tokens antes de enviarse; si no
hay suficientes, la corrutina espera sin bloquear el event loop.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, Optional

from marketplace_sync.core.config import Settings, get_settings
from marketplace_sync.utils.error_handler import ConfigurationError

logger = logging.getLogger(__name__)


class LeakyBucketRateLimiter:
    """
    Rate limiter asíncrono compartido por todas las peticiones de un adaptador.

    El refill y el débito ocurren dentro de una sola sección crítica; la espera
    se hace fuera del lock para que otras corrutinas sigan avanzando.
    """

    def __init__(
        self,
        tokens_per_second: float,
        bucket_size: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Inicializa el rate limiter con el bucket lleno.

        Args:
            tokens_per_second: Velocidad de recarga
            bucket_size: Capacidad máxima (ráfaga)
            clock: Reloj monotónico (inyectable para tests)

        Raises:
            ConfigurationError: Si la tasa o la capacidad no son positivas
        """
        if tokens_per_second <= 0:
            raise ConfigurationError(
                "tokens_per_second must be greater than 0", details={"tokens_per_second": tokens_per_second}
            )
        if bucket_size <= 0:
            raise ConfigurationError("bucket_size must be greater than 0", details={"bucket_size": bucket_size})

        self.tokens_per_second = float(tokens_per_second)
        self.bucket_size = bucket_size
        self._clock = clock
        self.tokens = float(bucket_size)
        self.last_refill = clock()
        self._lock = asyncio.Lock()

        # Contadores reportados por la plataforma (solo telemetría)
        self.platform_telemetry: Dict[str, Any] = {"used": None, "limit": None, "updated_at": None}

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "LeakyBucketRateLimiter":
        """
        Crea un rate limiter a partir de la configuración.

        Args:
            settings: Configuración (por defecto la global)

        Returns:
            LeakyBucketRateLimiter: Instancia nueva
        """
        settings = settings or get_settings()
        return cls(settings.SHOPIFY_CALLS_PER_SECOND, settings.SHOPIFY_BUCKET_SIZE)

    def _validate_cost(self, cost: float) -> None:
        if cost <= 0:
            raise ConfigurationError("Token cost must be greater than 0", details={"cost": cost})
        if cost > self.bucket_size:
            raise ConfigurationError(
                f"Token cost {cost} exceeds bucket size {self.bucket_size}",
                details={"cost": cost, "bucket_size": self.bucket_size},
            )

    def _projected_tokens(self) -> float:
        elapsed = max(0.0, self._clock() - self.last_refill)
        return min(float(self.bucket_size), self.tokens + elapsed * self.tokens_per_second)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(float(self.bucket_size), self.tokens + elapsed * self.tokens_per_second)
        self.last_refill = now

    async def acquire(self, cost: float = 1) -> None:
        """
        Espera hasta que haya `cost` tokens disponibles y los debita.

        Args:
            cost: Tokens a consumir

        Raises:
            ConfigurationError: Si el costo es no positivo o supera la capacidad
        """
        self._validate_cost(cost)

        while True:
            async with self._lock:
                self._refill()
                if self.tokens >= cost:
                    self.tokens -= cost
                    return
                wait_time = (cost - self.tokens) / self.tokens_per_second

            logger.debug(f"Rate limit: waiting {wait_time:.3f}s for {cost} token(s)")
            await asyncio.sleep(wait_time)

    def available_capacity(self) -> float:
        """Tokens disponibles en este momento (aplica el refill pendiente)."""
        self._refill()
        return self.tokens

    def estimated_wait_time(self, cost: float = 1) -> float:
        """
        Tiempo estimado de espera para `cost` tokens, sin modificar el estado.

        Args:
            cost: Tokens requeridos

        Returns:
            float: Segundos de espera (0 si hay capacidad)
        """
        self._validate_cost(cost)
        tokens = self._projected_tokens()
        if tokens >= cost:
            return 0.0
        return (cost - tokens) / self.tokens_per_second

    def record_platform_usage(self, used: int, limit: int) -> None:
        """
        Registra el uso reportado por la plataforma (p. ej. "32/40").

        No altera los tokens locales.
        """
        self.platform_telemetry = {"used": used, "limit": limit, "updated_at": self._clock()}
        if limit and used >= limit * 0.9:
            logger.warning(f"Platform call limit nearly exhausted: {used}/{limit}")

    def get_state(self) -> Dict[str, Any]:
        """Estado actual del bucket para diagnóstico."""
        return {
            "bucket_size": self.bucket_size,
            "tokens_per_second": self.tokens_per_second,
            "tokens": round(self._projected_tokens(), 3),
            "platform": dict(self.platform_telemetry),
        }
