"""
Sistema de manejo de errores del adaptador de marketplaces.

Este módulo define la taxonomía de excepciones que usan los clientes de
plataforma y la forma clasificada (MarketplaceError) que viaja dentro de
los resultados de operación hacia los llamadores.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Type

import aiohttp

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """
    Códigos de error estandarizados para el adaptador.
    """

    UNKNOWN_PLATFORM_ERROR = "UNKNOWN_PLATFORM_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Ciclo de vida
    NOT_INITIALIZED = "NOT_INITIALIZED"
    INITIALIZATION_FAILED = "INITIALIZATION_FAILED"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"

    # Plataforma
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"


class ErrorSeverity(Enum):
    """
    Niveles de severidad para errores.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AppException(Exception):
    """
    Excepción base para todas las excepciones del adaptador.
    """

    default_code = ErrorCode.UNKNOWN_PLATFORM_ERROR
    default_severity = ErrorSeverity.MEDIUM
    default_retryable = False

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandarizado
            details: Información adicional del error
            status_code: Código HTTP asociado (si proviene de la plataforma)
            severity: Severidad del error
            is_retryable: Si la operación puede reintentarse
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        self.status_code = status_code
        self.severity = severity or self.default_severity
        self.is_retryable = self.default_retryable if is_retryable is None else is_retryable
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción a diccionario.

        Returns:
            Dict: Representación de la excepción
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
            "status_code": self.status_code,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"


class NotInitializedError(AppException):
    """El adaptador se usó antes de llamar a initialize()."""

    default_code = ErrorCode.NOT_INITIALIZED
    default_severity = ErrorSeverity.HIGH


class InitializationError(AppException):
    """Credenciales incompletas o fallo de la prueba de conectividad."""

    default_code = ErrorCode.INITIALIZATION_FAILED
    default_severity = ErrorSeverity.HIGH


class ConfigurationError(AppException):
    """Configuración inválida (por ejemplo, costo mayor que la capacidad del bucket)."""

    default_code = ErrorCode.CONFIGURATION_ERROR
    default_severity = ErrorSeverity.HIGH


class NotFoundError(AppException):
    """La entidad no existe en la plataforma."""

    default_code = ErrorCode.NOT_FOUND
    default_severity = ErrorSeverity.LOW


class ValidationError(AppException):
    """
    Petición mal formada, rechazada localmente o por la plataforma.
    """

    default_code = ErrorCode.VALIDATION_ERROR
    default_severity = ErrorSeverity.LOW

    def __init__(self, message: str, field: Optional[str] = None, invalid_value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.invalid_value = invalid_value
        if field is not None:
            self.details.update(
                {
                    "field": field,
                    "invalid_value": str(invalid_value) if invalid_value is not None else None,
                }
            )


class AuthenticationError(AppException):
    """Credenciales rechazadas por la plataforma (401/403)."""

    default_code = ErrorCode.AUTHENTICATION_FAILED
    default_severity = ErrorSeverity.HIGH


class RateLimitError(AppException):
    """
    Throttling reportado por la plataforma pese al rate limiting local.
    """

    default_code = ErrorCode.RATE_LIMIT_EXCEEDED
    default_severity = ErrorSeverity.LOW
    default_retryable = True

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
        self.details.update({"retry_after": retry_after})


class TransportError(AppException):
    """Error de red o timeout."""

    default_code = ErrorCode.TRANSPORT_ERROR
    default_retryable = True


class UnknownPlatformError(AppException):
    """Fallo no clasificado de la plataforma."""

    default_code = ErrorCode.UNKNOWN_PLATFORM_ERROR


_EXCEPTIONS_BY_CODE: Dict[ErrorCode, Type[AppException]] = {
    ErrorCode.NOT_INITIALIZED: NotInitializedError,
    ErrorCode.INITIALIZATION_FAILED: InitializationError,
    ErrorCode.CONFIGURATION_ERROR: ConfigurationError,
    ErrorCode.NOT_FOUND: NotFoundError,
    ErrorCode.VALIDATION_ERROR: ValidationError,
    ErrorCode.AUTHENTICATION_FAILED: AuthenticationError,
    ErrorCode.RATE_LIMIT_EXCEEDED: RateLimitError,
    ErrorCode.TRANSPORT_ERROR: TransportError,
    ErrorCode.UNKNOWN_PLATFORM_ERROR: UnknownPlatformError,
}


@dataclass(frozen=True)
class MarketplaceError:
    """
    Error clasificado que viaja dentro de un resultado de operación.

    Attributes:
        code: Código estandarizado
        message: Mensaje legible
        retriable: Si el llamador puede reintentar más tarde
        details: Contexto adicional
    """

    code: ErrorCode
    message: str
    retriable: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    def to_exception(self) -> AppException:
        """Reconstruye la excepción tipada correspondiente al código."""
        exception_class = _EXCEPTIONS_BY_CODE.get(self.code, UnknownPlatformError)
        return exception_class(
            self.message,
            error_code=self.code,
            details=dict(self.details),
            is_retryable=self.retriable,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "retriable": self.retriable,
            "details": self.details,
        }


def exception_for_status(
    status_code: int,
    message: str,
    retry_after: Optional[float] = None,
    details: Optional[Dict[str, Any]] = None,
) -> AppException:
    """
    Convierte un código HTTP no exitoso en la excepción correspondiente.

    Args:
        status_code: Código de respuesta de la plataforma
        message: Mensaje de error
        retry_after: Segundos sugeridos por la plataforma (429)
        details: Contexto adicional

    Returns:
        AppException: Excepción clasificada
    """
    kwargs: Dict[str, Any] = {"status_code": status_code, "details": details}

    if status_code == 404:
        return NotFoundError(message, **kwargs)
    if status_code in (400, 422):
        return ValidationError(message, **kwargs)
    if status_code in (401, 403):
        return AuthenticationError(message, **kwargs)
    if status_code == 429:
        return RateLimitError(message, retry_after=retry_after, **kwargs)
    if status_code >= 500:
        return UnknownPlatformError(message, severity=ErrorSeverity.HIGH, is_retryable=True, **kwargs)
    return UnknownPlatformError(message, **kwargs)


def convert_to_app_exception(exception: BaseException, context: Optional[Dict[str, Any]] = None) -> AppException:
    """
    Convierte una excepción estándar a AppException.

    Args:
        exception: Excepción a convertir
        context: Contexto adicional

    Returns:
        AppException: Excepción convertida
    """
    context = context or {}

    if isinstance(exception, AppException):
        exception.details.update(context)
        return exception

    if isinstance(exception, asyncio.TimeoutError):
        return TransportError(f"Request timed out: {exception}", details=context)

    if isinstance(exception, aiohttp.ClientResponseError):
        return exception_for_status(exception.status, exception.message or str(exception), details=context)

    if isinstance(exception, (aiohttp.ClientError, OSError)):
        return TransportError(f"Network error: {exception}", details=context)

    exception_type = type(exception).__name__
    return UnknownPlatformError(
        f"{exception_type}: {exception}",
        details={"original_exception": exception_type, **context},
    )


def classify_exception(exception: BaseException, context: Optional[Dict[str, Any]] = None) -> MarketplaceError:
    """
    Clasifica cualquier excepción en un MarketplaceError.

    Args:
        exception: Excepción capturada en el límite del adaptador
        context: Contexto adicional (operación, identificadores)

    Returns:
        MarketplaceError: Error clasificado para el resultado
    """
    app_exception = convert_to_app_exception(exception, context)
    return MarketplaceError(
        code=app_exception.error_code,
        message=app_exception.message,
        retriable=app_exception.is_retryable,
        details=dict(app_exception.details),
    )


def log_error(
    exception: BaseException,
    context: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Loggea un error de manera consistente.

    Args:
        exception: Excepción a loggear
        context: Contexto adicional
        level: Nivel de logging
    """
    context = context or {}
    log_data: Dict[str, Any] = {"exception_type": type(exception).__name__, "context": context}

    if isinstance(exception, AppException):
        message = f"{exception.error_code.value}: {exception.message}"
        log_data.update(
            {
                "error_code": exception.error_code.value,
                "severity": exception.severity.value,
                "is_retryable": exception.is_retryable,
            }
        )
    else:
        message = f"Unhandled exception: {type(exception).__name__}: {str(exception)}"

    logger.log(level, message, extra=log_data)
