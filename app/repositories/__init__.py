"""
app/repositories package marker.
"""

from app.repositories.stock_data_repository import StockDataRepository, collapse_by_natural_key
from app.repositories.symbol_registry_repository import (
    SymbolRegistryRepository,
    SymbolRegistrySnapshot,
)

__all__ = [
    "StockDataRepository",
    "SymbolRegistryRepository",
    "SymbolRegistrySnapshot",
    "collapse_by_natural_key",
]
