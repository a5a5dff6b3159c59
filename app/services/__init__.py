"""
app/services package marker.
"""

from app.services.stock_import_service import StockImportService, get_stock_import_service

__all__ = [
    "StockImportService",
    "get_stock_import_service",
]
