"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_DEFAULT_MAX_UPLOAD_BYTES = 25 * 1024 * 1024


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class ImportSettings:
    """
    Runtime settings for delimited-text inventory imports.

    ``strict_numeric`` turns unreadable quantities into row errors instead
    of falling back to ``quantity_fallback``.
    """

    max_upload_bytes: int = _DEFAULT_MAX_UPLOAD_BYTES
    max_validation_errors: int = 500
    log_validation_errors: bool = True
    strict_numeric: bool = False
    quantity_fallback: int = 1
    error_preview_limit: int = 5


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@lru_cache(maxsize=1)
def get_import_settings() -> ImportSettings:
    """
    Return cached import settings from environment variables.
    """

    return ImportSettings(
        max_upload_bytes=max(1, _get_int_env("IMPORT_MAX_UPLOAD_BYTES", _DEFAULT_MAX_UPLOAD_BYTES)),
        max_validation_errors=max(1, _get_int_env("IMPORT_MAX_VALIDATION_ERRORS", 500)),
        log_validation_errors=_get_bool_env("IMPORT_LOG_VALIDATION_ERRORS", True),
        strict_numeric=_get_bool_env("IMPORT_STRICT_NUMERIC", False),
        quantity_fallback=_get_int_env("IMPORT_QUANTITY_FALLBACK", 1),
        error_preview_limit=max(0, _get_int_env("IMPORT_ERROR_PREVIEW_LIMIT", 5)),
    )


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings(level=_get_str_env("LOG_LEVEL", "INFO").upper())
