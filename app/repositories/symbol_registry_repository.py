"""
app/repositories/symbol_registry_repository.py

Read-only lookups against the stock_info symbol registry.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from db.models.stock_info import StockInfo


def canonical_symbol(symbol: str | None) -> str:
    return (symbol or "").strip().upper()


class SymbolRegistryRepository:
    """
    Resolves whether ticker symbols are registered in stock_info.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def exists(self, symbol: str) -> bool:
        normalized = canonical_symbol(symbol)
        if not normalized:
            return False
        stmt = select(exists().where(StockInfo.symbol == normalized))
        return bool(self._session.scalar(stmt))

    def exists_many(self, symbols: Iterable[str]) -> dict[str, bool]:
        """
        Resolve many symbols in one round-trip.

        Every requested symbol (canonicalised) is a key of the result.
        """

        requested = {canonical_symbol(symbol) for symbol in symbols}
        requested.discard("")
        if not requested:
            return {}

        stmt = select(StockInfo.symbol).where(StockInfo.symbol.in_(sorted(requested)))
        found = set(self._session.scalars(stmt).all())
        return {symbol: symbol in found for symbol in requested}

    def is_empty(self) -> bool:
        stmt = select(exists().where(StockInfo.id.is_not(None)))
        return not self._session.scalar(stmt)


class SymbolRegistrySnapshot:
    """
    In-memory view over one exists_many() result.
    """

    def __init__(self, known: Mapping[str, bool]) -> None:
        self._known = dict(known)

    def exists(self, symbol: str) -> bool:
        return self._known.get(canonical_symbol(symbol), False)

    @property
    def resolved_count(self) -> int:
        return sum(1 for is_known in self._known.values() if is_known)
