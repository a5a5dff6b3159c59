"""
db/models/stock_info.py

Symbol registry. Every other stock data table references stock_info.symbol.
"""

from __future__ import annotations

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class StockInfo(Base, TimestampMixin):
    """
    One listed ticker. symbol is stored uppercase and is unique.
    """

    __tablename__ = "stock_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    symbol: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        comment="Canonical uppercase ticker symbol",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_stock_info_name", "name"),
    )

    def __repr__(self) -> str:
        return f"<StockInfo id={self.id} symbol={self.symbol!r} name={self.name!r}>"
