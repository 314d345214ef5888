"""Tests unitarios para configuración y logging."""

import json
import logging
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from marketplace_sync.core.config import Settings, get_settings, reload_settings
from marketplace_sync.core.logging_config import StructuredFormatter, get_logging_configuration, setup_logging


class TestSettings:
    """Tests de valores por defecto y validadores."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.SHOPIFY_API_VERSION == "2024-10"
        assert settings.SHOPIFY_CALLS_PER_SECOND == 2.0
        assert settings.SHOPIFY_BUCKET_SIZE == 40
        assert settings.BATCH_MAX_CONCURRENCY == 1
        assert settings.BATCH_TIMEOUT_SECONDS is None

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SHOPIFY_BUCKET_SIZE", "80")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings(_env_file=None)

        assert settings.SHOPIFY_BUCKET_SIZE == 80
        assert settings.LOG_LEVEL == "DEBUG"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("SHOPIFY_CALLS_PER_SECOND", 0),
            ("SHOPIFY_BUCKET_SIZE", 0),
            ("SHOPIFY_MAX_RETRIES", -1),
            ("BATCH_TIMEOUT_SECONDS", 0),
            ("LOG_LEVEL", "LOUD"),
            ("DEFAULT_CURRENCY", "EURO"),
        ],
    )
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_api_base_url(self, settings):
        assert settings.shopify_api_base_url("shop.myshopify.com") == "https://shop.myshopify.com/admin/api/2024-10"
        assert (
            settings.shopify_api_base_url("https://shop.myshopify.com/", "2025-01")
            == "https://shop.myshopify.com/admin/api/2025-01"
        )


class TestLoggingConfiguration:
    def test_json_console_formatter(self):
        config = get_logging_configuration(Settings(_env_file=None, LOG_JSON=True))
        assert config["handlers"]["console"]["formatter"] == "json"

    def test_file_handlers_when_path_set(self, tmp_path):
        settings = Settings(_env_file=None, LOG_FILE_PATH=str(tmp_path / "sync.log"))

        config = get_logging_configuration(settings)

        assert config["handlers"]["error_file"]["filename"].endswith("sync_errors.log")
        assert config["root"]["handlers"] == ["console", "file", "error_file"]

    def test_structured_formatter_includes_extra(self):
        formatter = StructuredFormatter(app_name="Marketplace Sync", environment="testing")
        record = logging.LogRecord("marketplace_sync.test", logging.WARNING, __file__, 1, "hello", None, None)
        record.sku = "TEE-S"

        entry = json.loads(formatter.format(record))

        assert entry["message"] == "hello"
        assert entry["environment"] == "testing"
        assert entry["extra"]["sku"] == "TEE-S"

    def test_setup_logging_creates_log_directory(self, tmp_path):
        log_path = tmp_path / "logs" / "sync.log"
        settings = Settings(_env_file=None, LOG_FILE_PATH=str(log_path))

        with patch("marketplace_sync.core.logging_config.logging.config.dictConfig") as mock_dict_config:
            setup_logging(settings)

        assert log_path.parent.is_dir()
        assert mock_dict_config.call_args.args[0]["handlers"]["file"]["filename"] == str(log_path)


class TestSettingsCache:
    def test_reload_settings_picks_up_environment(self, monkeypatch):
        monkeypatch.setenv("SHOPIFY_MAX_PAGE_SIZE", "100")

        settings = reload_settings()

        assert settings.SHOPIFY_MAX_PAGE_SIZE == 100
        assert get_settings() is settings

        monkeypatch.delenv("SHOPIFY_MAX_PAGE_SIZE")
        reload_settings()
