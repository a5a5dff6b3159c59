"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.stock import Stock
from db.models.stock_assets import StockAssets
from db.models.stock_daily import StockDaily
from db.models.stock_eps import StockEPS
from db.models.stock_info import StockInfo
from db.models.stock_metrics import StockMetrics
from db.models.stock_pe import StockPE

__all__ = [
    "Stock",
    "StockAssets",
    "StockDaily",
    "StockEPS",
    "StockInfo",
    "StockMetrics",
    "StockPE",
]
