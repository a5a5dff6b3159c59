"""
db/models/stock_assets.py

Balance sheet size figures per symbol and reporting date.
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, Double, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, SymbolReferenceMixin, TimestampMixin


class StockAssets(SymbolReferenceMixin, TimestampMixin, Base):
    """
    tts = total assets, vcsh = owners' equity, tb_tts_nganh = industry
    average total assets.
    """

    __tablename__ = "stock_assets"

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    tts: Mapped[float | None] = mapped_column(Double, nullable=True)
    vcsh: Mapped[float | None] = mapped_column(Double, nullable=True)
    tb_tts_nganh: Mapped[float | None] = mapped_column(Double, nullable=True)

    __table_args__ = (
        UniqueConstraint("symbol", "date", name="uq_stock_assets_symbol_date"),
        Index("ix_stock_assets_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<StockAssets id={self.id} symbol={self.symbol!r} date={self.date}>"
