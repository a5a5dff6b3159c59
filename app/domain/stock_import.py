"""
app/domain/stock_import.py

Domain models used by the stock data CSV import flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

KB = 1024
MB = 1024 * KB

SYMBOL_MAX_LENGTH = 20


class ColumnKind:
    """How a raw CSV cell is coerced."""

    SYMBOL = "symbol"
    TEXT = "text"
    NUMERIC = "numeric"
    DATE = "date"


class NumericLocale:
    """
    Named numeric parsing strategies.

    PLAIN reads "1234.56". VIETNAMESE treats "." as the thousands separator
    and "," as the decimal point, so "1.234,56" reads as 1234.56.
    """

    PLAIN = "plain"
    VIETNAMESE = "vietnamese"


class ImportOutcome:
    IMPORTED = "imported"
    NO_VALID_ROWS = "no_valid_rows"


@dataclass(frozen=True)
class ImportRowSpec:
    """
    Column layout and integrity rules for one importable table.

    columns keeps file order; natural_key names the columns the table's
    unique constraint is built on.
    """

    domain: str
    slug: str
    table_name: str
    columns: tuple[tuple[str, str], ...]
    natural_key: tuple[str, ...]
    required_fields: tuple[str, ...] = ()
    numeric_locale: str = NumericLocale.PLAIN
    requires_registered_symbol: bool = True
    max_upload_bytes: int = 10 * MB
    max_lengths: tuple[tuple[str, int], ...] = (("symbol", SYMBOL_MAX_LENGTH),)

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.columns)

    @property
    def column_kinds(self) -> dict[str, str]:
        return dict(self.columns)

    @property
    def header_requirements(self) -> tuple[str, ...]:
        return self.natural_key + tuple(
            name for name in self.required_fields if name not in self.natural_key
        )

    @property
    def update_columns(self) -> tuple[str, ...]:
        return tuple(name for name in self.column_names if name not in self.natural_key)

    def columns_of_kind(self, kind: str) -> tuple[str, ...]:
        return tuple(name for name, column_kind in self.columns if column_kind == kind)


@dataclass(frozen=True)
class NormalizedRow:
    """
    One CSV row after type coercion.

    invalid_dates lists date columns whose raw value was present but did not
    match any accepted format; their entry in values is None.
    """

    values: dict[str, Any]
    invalid_dates: frozenset[str] = frozenset()
    raw: dict[str, str | None] = field(default_factory=dict)

    def natural_key(self, spec: ImportRowSpec) -> tuple[Any, ...]:
        return tuple(self.values.get(column) for column in spec.natural_key)


@dataclass(frozen=True)
class RejectedRow:
    """
    Why one data row (1-based, header excluded) was left out of the batch.
    """

    row_number: int
    reason: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class ImportResult:
    """
    End-of-run import summary.

    imported_count counts distinct natural keys written; duplicate_count
    counts accepted rows superseded by a later row with the same key.
    """

    domain: str
    total_rows: int
    imported_count: int
    duplicate_count: int = 0
    rejected_rows: list[RejectedRow] = field(default_factory=list)
    outcome: str = ImportOutcome.IMPORTED

    @property
    def rejected_count(self) -> int:
        return len(self.rejected_rows)
