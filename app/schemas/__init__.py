"""
app/schemas package marker.
"""

from app.schemas.stock_import import ImportSpecResponse, RejectedRowResponse, StockImportResponse

__all__ = [
    "ImportSpecResponse",
    "RejectedRowResponse",
    "StockImportResponse",
]
