"""
app/repositories/stock_data_repository.py

Bulk upsert persistence for the stock data tables.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any

from sqlalchemy import Table, func
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.orm import Session

import db.models  # noqa: F401  registers all stock tables on Base.metadata
from app.domain.stock_import import ColumnKind, ImportRowSpec, NormalizedRow
from db.base import Base

_DEFAULT_BATCH_SIZE = 1000


class StockDataRepository:
    """
    Writes normalized rows into the table named by an ImportRowSpec.

    Existing rows with the same natural key have every non-key column
    overwritten, None included. The caller owns the transaction: all chunks
    of one call are committed or rolled back together.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert(
        self,
        spec: ImportRowSpec,
        rows: Sequence[NormalizedRow],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert-or-overwrite rows keyed on spec.natural_key.

        Returns the number of table rows inserted or updated.
        """

        if not rows:
            return 0

        table = self._table_for(spec)
        payloads = [self._to_payload(spec, row) for row in collapse_by_natural_key(spec, rows)]
        size = max(1, batch_size)
        affected = 0

        for start in range(0, len(payloads), size):
            chunk = payloads[start : start + size]
            stmt = self.build_upsert_statement(spec, table, chunk)
            affected += len(self._session.execute(stmt).all())

        return affected

    @staticmethod
    def build_upsert_statement(
        spec: ImportRowSpec,
        table: Table,
        payloads: Sequence[dict[str, Any]],
    ) -> Insert:
        stmt = insert(table).values(list(payloads))
        update_set: dict[str, Any] = {
            column: stmt.excluded[column] for column in spec.update_columns
        }
        update_set["updated_at"] = func.now()
        return stmt.on_conflict_do_update(
            index_elements=list(spec.natural_key),
            set_=update_set,
        ).returning(table.c.id)

    @staticmethod
    def _table_for(spec: ImportRowSpec) -> Table:
        try:
            return Base.metadata.tables[spec.table_name]
        except KeyError:
            raise LookupError(f"No table registered for {spec.table_name!r}.") from None

    @staticmethod
    def _to_payload(spec: ImportRowSpec, row: NormalizedRow) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for column, kind in spec.columns:
            value = row.values.get(column)
            if kind == ColumnKind.DATE and isinstance(value, str):
                value = date.fromisoformat(value)
            payload[column] = value
        return payload



def collapse_by_natural_key(
    spec: ImportRowSpec,
    rows: Sequence[NormalizedRow],
) -> list[NormalizedRow]:
    """
    Keep one row per natural key; the last occurrence in file order wins.

    ON CONFLICT DO UPDATE cannot touch the same table row twice in one
    statement, so batches must be collapsed before they are written.
    """

    by_key: dict[tuple[Any, ...], NormalizedRow] = {}
    for row in rows:
        by_key[row.natural_key(spec)] = row
    return list(by_key.values())
