"""
db/session.py

Engine and session factory for the stock data database. Nothing connects
until the first session is opened.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url


@dataclass(frozen=True)
class EngineSettings:
    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle: int = 1800


def _env_flag(name: str) -> bool:
    return (os.getenv(name) or "").strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, fallback: int) -> int:
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw.isdigit() else fallback


def load_engine_settings() -> EngineSettings:
    """
    Read the database URL and pool tuning from the environment.

    Upserts rely on PostgreSQL ON CONFLICT, so other backends are refused.
    """

    url = resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError(f"Unsupported database URL scheme: {url.split(':', 1)[0]!r}.")

    return EngineSettings(
        url=url,
        echo=_env_flag("SQL_ECHO"),
        pool_size=_env_int("DB_POOL_SIZE", 5),
        max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
        pool_recycle=_env_int("DB_POOL_RECYCLE", 1800),
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    settings = load_engine_settings()
    return create_engine(
        settings.url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_recycle=settings.pool_recycle,
    )


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    return sessionmaker(
        bind=get_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


def SessionLocal() -> Session:
    """Open a new session; usable as a context manager."""
    return get_session_factory()()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request, always closed."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
