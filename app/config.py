"""
app/config.py

Settings for the import pipeline and the admin token check, read from the
environment (and `.env` files) once per process.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

_TRUTHY = {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _read_env(name: str) -> str | None:
    """
    Return the stripped value of `name`, or None when unset or blank.
    """

    _load_env_once()
    value = (os.getenv(name) or "").strip()
    return value or None


def _env_bool(name: str, default: bool) -> bool:
    value = _read_env(name)
    if value is None:
        return default
    return value.lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    value = _read_env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    return _read_env(name) or default


@dataclass(frozen=True)
class StockImportSettings:
    """
    Runtime settings for stock data CSV imports.

    Per-table upload ceilings live on the row specs, not here.
    """

    batch_size: int = 1000
    log_rejected_rows: bool = True
    upload_dir: str = "data/uploads"
    delimiter: str = ","


@dataclass(frozen=True)
class AuthSettings:
    """
    Token verification settings for admin-only endpoints.

    Tokens are issued elsewhere; this service only verifies them.
    """

    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"


@lru_cache(maxsize=1)
def get_stock_import_settings() -> StockImportSettings:
    """
    Return cached import settings from environment variables.
    """

    delimiter = _env_str("STOCK_IMPORT_DELIMITER", ",")
    return StockImportSettings(
        batch_size=max(1, _env_int("STOCK_IMPORT_BATCH_SIZE", 1000)),
        log_rejected_rows=_env_bool("STOCK_IMPORT_LOG_REJECTED_ROWS", True),
        upload_dir=_env_str("STOCK_IMPORT_UPLOAD_DIR", "data/uploads"),
        delimiter=delimiter[0],
    )


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """
    Return cached auth settings from environment variables.
    """

    return AuthSettings(
        jwt_secret=_read_env("JWT_SECRET"),
        jwt_algorithm=_env_str("JWT_ALGORITHM", "HS256"),
    )
