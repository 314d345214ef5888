"""
Logging del paquete.

La configuración se arma como un dict para `logging.config.dictConfig`:
consola (texto, color o JSON) y, si hay LOG_FILE_PATH, archivos rotativos
general y de errores.
"""

import json
import logging
import logging.config
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from marketplace_sync.core.config import Settings, get_settings

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"

# Todo lo que no esté en un LogRecord vacío vino por `extra=`
_STANDARD_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

_RESET = "\033[0m"
_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}


class ColoredFormatter(logging.Formatter):
    """Colorea el nivel cuando la salida es una terminal."""

    def format(self, record):
        text = super().format(record)
        color = _LEVEL_COLORS.get(record.levelno)
        if color is None or not sys.stderr.isatty():
            return text
        return text.replace(record.levelname, f"{color}{record.levelname}{_RESET}", 1)


class StructuredFormatter(logging.Formatter):
    """
    Una línea JSON por registro.

    Los campos pasados con `extra=` quedan agrupados bajo la clave "extra".
    """

    def __init__(self, app_name: str = "Marketplace Sync", environment: str = "development", **kwargs):
        super().__init__(**kwargs)
        self.app_name = app_name
        self.environment = environment

    def format(self, record):
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "app_name": self.app_name,
            "environment": self.environment,
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        extra = {key: value for key, value in vars(record).items() if key not in _STANDARD_RECORD_ATTRS}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, ensure_ascii=False, default=str)


def _console_formatter(settings: Settings) -> str:
    if settings.LOG_JSON:
        return "json"
    return "colored" if settings.DEBUG else "standard"


def _rotating_file(settings: Settings, filename: str, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": filename,
        "maxBytes": settings.LOG_MAX_SIZE_MB * 1024 * 1024,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
    }


def get_logging_configuration(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Construye el dict de configuración para dictConfig.

    Args:
        settings: Configuración a usar (por defecto la global)
    """
    settings = settings or get_settings()

    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.LOG_LEVEL,
            "formatter": _console_formatter(settings),
            "stream": "ext://sys.stdout",
        }
    }

    if settings.LOG_FILE_PATH:
        log_path = Path(settings.LOG_FILE_PATH)
        error_path = log_path.with_name(f"{log_path.stem}_errors{log_path.suffix or '.log'}")
        handlers["file"] = _rotating_file(settings, str(log_path), settings.LOG_LEVEL)
        handlers["error_file"] = _rotating_file(settings, str(error_path), "ERROR")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": settings.LOG_FORMAT, "datefmt": DATE_FORMAT},
            "detailed": {"format": DETAILED_FORMAT, "datefmt": DATE_FORMAT},
            "colored": {"()": ColoredFormatter, "format": settings.LOG_FORMAT, "datefmt": DATE_FORMAT},
            "json": {
                "()": StructuredFormatter,
                "app_name": settings.APP_NAME,
                "environment": settings.ENVIRONMENT,
            },
        },
        "handlers": handlers,
        # aiohttp y asyncio solo desde WARNING
        "loggers": {name: {"level": "WARNING"} for name in ("aiohttp.access", "aiohttp.client", "asyncio")},
        "root": {"level": settings.LOG_LEVEL, "handlers": list(handlers)},
    }


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Aplica la configuración de logging, creando el directorio de logs si hace falta."""
    settings = settings or get_settings()

    if settings.LOG_FILE_PATH:
        Path(settings.LOG_FILE_PATH).parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(get_logging_configuration(settings))
    logging.getLogger(__name__).info(f"Logging configured at level {settings.LOG_LEVEL}")


def log_api_call(method: str, url: str, status_code: int, duration: float, **kwargs) -> None:
    """
    Registra una llamada HTTP saliente.

    2xx va a DEBUG, 4xx a WARNING y el resto a ERROR.
    """
    if 200 <= status_code < 300:
        level = logging.DEBUG
    elif 400 <= status_code < 500:
        level = logging.WARNING
    else:
        level = logging.ERROR

    duration_ms = round(duration * 1000, 2)
    logging.getLogger("marketplace_sync.api.call").log(
        level,
        f"{method} {url} -> {status_code} ({duration_ms}ms)",
        extra={"method": method, "url": url, "status_code": status_code, "duration_ms": duration_ms, **kwargs},
    )
