"""
db/models/stock_daily.py

Latest daily snapshot per symbol. The upload carries no date column, so the
symbol alone identifies a row.
"""

from __future__ import annotations

from sqlalchemy import Double, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, SymbolReferenceMixin, TimestampMixin


class StockDaily(SymbolReferenceMixin, TimestampMixin, Base):
    __tablename__ = "stock_daily"

    close_price: Mapped[float] = mapped_column(Double, nullable=False)
    return_value: Mapped[float | None] = mapped_column(Double, nullable=True)
    kldd: Mapped[float | None] = mapped_column(
        Double,
        nullable=True,
        comment="Matched trading volume",
    )
    von_hoa: Mapped[float | None] = mapped_column(
        Double,
        nullable=True,
        comment="Market capitalisation",
    )
    pe: Mapped[float | None] = mapped_column(Double, nullable=True)
    roa: Mapped[float | None] = mapped_column(Double, nullable=True)
    roe: Mapped[float | None] = mapped_column(Double, nullable=True)
    eps: Mapped[float | None] = mapped_column(Double, nullable=True)

    __table_args__ = (
        UniqueConstraint("symbol", name="uq_stock_daily_symbol"),
    )

    def __repr__(self) -> str:
        return f"<StockDaily id={self.id} symbol={self.symbol!r} close_price={self.close_price}>"
