"""
db/models/stock.py

Daily price bands per symbol (the `stocks` table).
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, Double, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, SymbolReferenceMixin, TimestampMixin


class Stock(SymbolReferenceMixin, TimestampMixin, Base):
    """
    OHLC prices plus band/trend indicators for one symbol on one date.
    """

    __tablename__ = "stocks"

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    open: Mapped[float | None] = mapped_column(Double, nullable=True)
    high: Mapped[float | None] = mapped_column(Double, nullable=True)
    low: Mapped[float | None] = mapped_column(Double, nullable=True)
    close: Mapped[float | None] = mapped_column(Double, nullable=True)
    band_dow: Mapped[float | None] = mapped_column(Double, nullable=True, comment="Lower band")
    band_up: Mapped[float | None] = mapped_column(Double, nullable=True, comment="Upper band")
    trend_q: Mapped[float | None] = mapped_column(Double, nullable=True)
    fq: Mapped[float | None] = mapped_column(Double, nullable=True)
    qv1: Mapped[float | None] = mapped_column(Double, nullable=True)

    __table_args__ = (
        UniqueConstraint("symbol", "date", name="uq_stocks_symbol_date"),
        Index("ix_stocks_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<Stock id={self.id} symbol={self.symbol!r} date={self.date}>"
