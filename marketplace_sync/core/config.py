"""
Configuración centralizada del adaptador de marketplaces.

Este módulo maneja las variables de entorno que controlan el comportamiento
del cliente (rate limiting, timeouts, reintentos, logging) usando
Pydantic Settings para validación automática.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para desarrollo.
    """

    # === CONFIGURACIÓN BÁSICA ===
    APP_NAME: str = "Marketplace Sync"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE_PATH: Optional[str] = Field(default=None)
    LOG_MAX_SIZE_MB: int = Field(default=10)
    LOG_BACKUP_COUNT: int = Field(default=5)
    LOG_JSON: bool = Field(default=False)
    LOG_FORMAT: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # === CONFIGURACIÓN DE SHOPIFY ===
    SHOPIFY_API_VERSION: str = Field(default="2024-10")
    # Leaky bucket: Shopify REST permite 40 llamadas de ráfaga y drena 2/s
    SHOPIFY_CALLS_PER_SECOND: float = Field(default=2.0)
    SHOPIFY_BUCKET_SIZE: int = Field(default=40)
    SHOPIFY_REQUEST_TIMEOUT: float = Field(default=30.0)
    SHOPIFY_CONNECT_TIMEOUT: float = Field(default=10.0)
    SHOPIFY_MAX_PAGE_SIZE: int = Field(default=250)

    # === CONFIGURACIÓN DE RETRIES ===
    SHOPIFY_MAX_RETRIES: int = Field(default=3)
    SHOPIFY_RETRY_INITIAL_DELAY: float = Field(default=1.0)
    SHOPIFY_RETRY_MAX_DELAY: float = Field(default=30.0)

    # === CONFIGURACIÓN DE LOTES ===
    BATCH_MAX_CONCURRENCY: int = Field(default=1)
    BATCH_TIMEOUT_SECONDS: Optional[float] = Field(default=None)

    DEFAULT_CURRENCY: str = Field(default="USD")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("SHOPIFY_CALLS_PER_SECOND", "SHOPIFY_REQUEST_TIMEOUT", "SHOPIFY_CONNECT_TIMEOUT")
    @classmethod
    def validate_positive_float(cls, v):
        """Valida que los valores de tasa y timeout sean positivos."""
        if v <= 0:
            raise ValueError("El valor debe ser mayor que 0")
        return v

    @field_validator("SHOPIFY_BUCKET_SIZE", "SHOPIFY_MAX_PAGE_SIZE", "BATCH_MAX_CONCURRENCY")
    @classmethod
    def validate_positive_int(cls, v):
        """Valida que los tamaños sean enteros positivos."""
        if v < 1:
            raise ValueError("El valor debe ser al menos 1")
        return v

    @field_validator("SHOPIFY_MAX_RETRIES")
    @classmethod
    def validate_max_retries(cls, v):
        """Valida que el número de reintentos no sea negativo."""
        if v < 0:
            raise ValueError("SHOPIFY_MAX_RETRIES no puede ser negativo")
        return v

    @field_validator("BATCH_TIMEOUT_SECONDS")
    @classmethod
    def validate_batch_timeout(cls, v):
        """Valida el deadline global de lotes (None = sin límite)."""
        if v is not None and v <= 0:
            raise ValueError("BATCH_TIMEOUT_SECONDS debe ser mayor que 0")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Valida que el entorno sea válido."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT debe ser uno de: {valid_envs}")
        return v.lower()

    @field_validator("DEFAULT_CURRENCY")
    @classmethod
    def validate_currency(cls, v):
        """Valida el código de moneda ISO."""
        if not v or len(v) != 3:
            raise ValueError("DEFAULT_CURRENCY debe ser un código ISO de 3 letras")
        return v.upper()

    def shopify_api_base_url(self, store_domain: str, api_version: Optional[str] = None) -> str:
        """
        Genera URL base de la API REST de Shopify.

        Args:
            store_domain: Dominio de la tienda (con o sin protocolo)
            api_version: Versión de API (usa la configurada si no se indica)

        Returns:
            str: URL base versionada
        """
        domain = store_domain.strip().rstrip("/")
        if not domain.startswith(("http://", "https://")):
            domain = f"https://{domain}"
        return f"{domain}/admin/api/{api_version or self.SHOPIFY_API_VERSION}"


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Usa LRU cache para evitar recrear la configuración
    múltiples veces durante la ejecución.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Recarga la configuración (útil para testing).

    Returns:
        Settings: Nueva instancia de configuración
    """
    get_settings.cache_clear()
    return get_settings()
