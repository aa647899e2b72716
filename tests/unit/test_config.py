"""
Unit tests for configuration and logging setup.
"""

import logging

import json_log_formatter
import pytest
from pydantic import ValidationError as SettingsValidationError

from sheetdb.config import DEFAULT_MAX_DEPTH, Settings, setup_logging

ENV_VARS = (
    "SHEETDB_STORE_PATH",
    "SHEETDB_MAX_DEPTH",
    "SHEETDB_LOG_LEVEL",
    "SHEETDB_LOG_FORMAT",
    "SHEETDB_SECRET_KEY",
    "SHEETDB_TOKEN_TTL_SECONDS",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, clean_env):
        settings = Settings()
        assert settings.store_path is None
        assert settings.max_depth == DEFAULT_MAX_DEPTH
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"
        assert settings.secret_key is None
        assert settings.token_ttl_seconds == 3600

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("SHEETDB_STORE_PATH", "/tmp/book.json")
        clean_env.setenv("SHEETDB_MAX_DEPTH", "2")
        clean_env.setenv("SHEETDB_LOG_FORMAT", "JSON")
        clean_env.setenv("SHEETDB_SECRET_KEY", "s3cret")

        settings = Settings()

        assert settings.store_path == "/tmp/book.json"
        assert settings.max_depth == 2
        assert settings.log_format == "json"
        assert settings.secret_key == "s3cret"

    def test_invalid_log_format_rejected(self, clean_env):
        with pytest.raises(SettingsValidationError):
            Settings(log_format="xml")

    def test_negative_max_depth_rejected(self, clean_env):
        with pytest.raises(SettingsValidationError):
            Settings(max_depth=-1)

    def test_non_positive_ttl_rejected(self, clean_env):
        with pytest.raises(SettingsValidationError):
            Settings(token_ttl_seconds=0)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_text_format(self, clean_env, root_logger):
        setup_logging(Settings(log_level="debug"))

        assert root_logger.level == logging.DEBUG
        (handler,) = root_logger.handlers
        assert not isinstance(handler.formatter, json_log_formatter.JSONFormatter)

    def test_json_format(self, clean_env, root_logger):
        setup_logging(Settings(log_format="json", log_level="WARNING"))

        assert root_logger.level == logging.WARNING
        (handler,) = root_logger.handlers
        assert isinstance(handler.formatter, json_log_formatter.JSONFormatter)

    def test_unknown_level_falls_back_to_info(self, clean_env, root_logger):
        setup_logging(Settings(log_level="chatty"))
        assert root_logger.level == logging.INFO
