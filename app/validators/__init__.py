"""
app/validators package marker.
"""

from app.validators.stock_row_validator import StockRowValidator, SymbolLookup

__all__ = [
    "StockRowValidator",
    "SymbolLookup",
]
