"""
Configuration for SheetDB.

Settings come from environment variables prefixed with SHEETDB_ (for
example SHEETDB_STORE_PATH, SHEETDB_MAX_DEPTH) and can be overridden by
keyword arguments.

Invariants:
    - All settings have defaults suitable for local development
    - secret_key is never logged
"""

from __future__ import annotations

import logging
from typing import Optional

import json_log_formatter
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_MAX_DEPTH = 5


class Settings(BaseSettings):
    """SheetDB configuration."""

    # Workbook file; unset keeps everything in memory
    store_path: Optional[str] = Field(default=None)

    # Upper bound for relation depth on reads
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", description="text or json")

    # Access tokens
    secret_key: Optional[str] = Field(default=None)
    token_ttl_seconds: int = Field(default=3600, gt=0)

    model_config = {"env_prefix": "SHEETDB_"}

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got '{value}'")
        return value


def setup_logging(settings: Settings) -> None:
    """Configure the root logger from settings.

    Args:
        settings: SheetDB settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]
