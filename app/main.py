from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

logger = logging.getLogger(__name__)


def _validate_env() -> None:
    """
    Fail fast on missing configuration, reporting every problem at once.
    """

    from db.config import load_env_files

    load_env_files()

    problems: list[str] = []
    if not any(os.getenv(name, "").strip() for name in ("DATABASE_URL", "LOCAL_DATABASE_URL")):
        problems.append("Set DATABASE_URL (or LOCAL_DATABASE_URL) to a PostgreSQL URL.")
    if not os.getenv("JWT_SECRET", "").strip():
        problems.append("Set JWT_SECRET to the secret the authentication service signs tokens with.")

    if problems:
        raise RuntimeError(
            "Stock import API cannot start:\n" + "\n".join(f"  - {problem}" for problem in problems)
        )


def _configure_logging() -> None:
    level_name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _verify_database() -> None:
    """
    Check connectivity, then that every stock table exists.

    Migrations are never applied here; run `alembic upgrade head` first.
    """

    from sqlalchemy import inspect, text
    from sqlalchemy.exc import SQLAlchemyError

    import db.models  # noqa: F401  registers all stock tables on Base.metadata
    from db.base import Base
    from db.session import get_engine

    engine = get_engine()
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise RuntimeError("Database unavailable.") from exc
    logger.info("Database connectivity confirmed")

    missing = sorted(set(Base.metadata.tables) - set(inspect(engine).get_table_names()))
    if missing:
        logger.critical("Missing tables: %s. Run 'alembic upgrade head'.", ", ".join(missing))
        raise RuntimeError(f"Database schema is missing table(s): {', '.join(missing)}.")
    logger.info("Database schema validated")


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    _verify_database()
    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Stock Data Import API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import stock_import_router

    application.include_router(stock_import_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
