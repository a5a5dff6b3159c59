"""
db/base.py

Declarative base and shared mixins for the stock data tables.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """
    Project-wide declarative base.
    All models must inherit from this class.
    """

    type_annotation_map: dict[type, Any] = {}


class TimestampMixin:
    """
    Adds created_at and updated_at.

    updated_at is refreshed by the ORM on UPDATE; bulk upserts set it
    explicitly because they bypass the unit of work.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class SymbolReferenceMixin:
    """
    Surrogate id plus a symbol column referencing the stock_info registry.
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    @declared_attr
    def symbol(cls) -> Mapped[str]:
        return mapped_column(
            String(20),
            ForeignKey("stock_info.symbol", ondelete="CASCADE", onupdate="CASCADE"),
            nullable=False,
            comment="Ticker symbol, uppercase",
        )
