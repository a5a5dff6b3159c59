"""
db/models/stock_metrics.py

Return on assets / equity per symbol and date, with industry averages.
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, Double, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, SymbolReferenceMixin, TimestampMixin


class StockMetrics(SymbolReferenceMixin, TimestampMixin, Base):
    __tablename__ = "stock_metrics"

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    roa: Mapped[float | None] = mapped_column(Double, nullable=True)
    roe: Mapped[float | None] = mapped_column(Double, nullable=True)
    tb_roa_nganh: Mapped[float | None] = mapped_column(Double, nullable=True)
    tb_roe_nganh: Mapped[float | None] = mapped_column(Double, nullable=True)

    __table_args__ = (
        UniqueConstraint("symbol", "date", name="uq_stock_metrics_symbol_date"),
        Index("ix_stock_metrics_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<StockMetrics id={self.id} symbol={self.symbol!r} date={self.date}>"
