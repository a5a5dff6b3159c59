"""
db/models/stock_eps.py
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, Double, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, SymbolReferenceMixin, TimestampMixin


class StockEPS(SymbolReferenceMixin, TimestampMixin, Base):
    """
    Earnings per share against the industry figure (eps_nganh).
    """

    __tablename__ = "stock_eps"

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    eps: Mapped[float | None] = mapped_column(Double, nullable=True)
    eps_nganh: Mapped[float | None] = mapped_column(Double, nullable=True)

    __table_args__ = (
        UniqueConstraint("symbol", "date", name="uq_stock_eps_symbol_date"),
        Index("ix_stock_eps_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<StockEPS id={self.id} symbol={self.symbol!r} date={self.date}>"
