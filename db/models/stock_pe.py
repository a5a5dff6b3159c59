"""
db/models/stock_pe.py
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, Double, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, SymbolReferenceMixin, TimestampMixin


class StockPE(SymbolReferenceMixin, TimestampMixin, Base):
    """
    Price/earnings ratio against the industry ratio (pe_nganh).
    """

    __tablename__ = "stock_pe"

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    pe: Mapped[float | None] = mapped_column(Double, nullable=True)
    pe_nganh: Mapped[float | None] = mapped_column(Double, nullable=True)

    __table_args__ = (
        UniqueConstraint("symbol", "date", name="uq_stock_pe_symbol_date"),
        Index("ix_stock_pe_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<StockPE id={self.id} symbol={self.symbol!r} date={self.date}>"
