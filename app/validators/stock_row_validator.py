"""
app/validators/stock_row_validator.py

Row-level integrity checks for stock data imports.
"""

from __future__ import annotations

from typing import Any, Protocol

from app.domain.stock_import import ImportRowSpec, NormalizedRow, RejectedRow
from app.mappers.row_normalizer import DATE_FORMAT_LABELS


class SymbolLookup(Protocol):
    def exists(self, symbol: str) -> bool:
        ...


class StockRowValidator:
    """
    Accepts or rejects one normalized row.

    Checks run in a fixed order and the first failure is reported:
    natural key present, symbol registered, key dates valid, required
    non-key fields present, text within its column length.
    """

    def validate(
        self,
        row_number: int,
        row: NormalizedRow,
        spec: ImportRowSpec,
        registry: SymbolLookup | None,
    ) -> tuple[NormalizedRow | None, RejectedRow | None]:
        for column in spec.natural_key:
            if row.values.get(column) is None and column not in row.invalid_dates:
                return None, self._missing_field(row_number, row, column)

        if spec.requires_registered_symbol:
            symbol = row.values.get("symbol")
            if registry is None or not registry.exists(symbol):
                return None, RejectedRow(
                    row_number=row_number,
                    reason=f"Symbol '{symbol}' not found in system",
                    column="symbol",
                    value=self._stringify_value(symbol),
                )

        for column in spec.natural_key:
            if column in row.invalid_dates:
                raw_value = row.raw.get(column)
                return None, RejectedRow(
                    row_number=row_number,
                    reason=f"Invalid date '{raw_value}'; expected one of {DATE_FORMAT_LABELS}",
                    column=column,
                    value=self._stringify_value(raw_value),
                )

        for column in spec.required_fields:
            if row.values.get(column) is None:
                return None, self._missing_field(row_number, row, column)

        for column, max_length in spec.max_lengths:
            value = row.values.get(column)
            if isinstance(value, str) and len(value) > max_length:
                return None, RejectedRow(
                    row_number=row_number,
                    reason=f"Value too long for {column}: max {max_length} characters",
                    column=column,
                    value=value,
                )

        return row, None

    def _missing_field(self, row_number: int, row: NormalizedRow, column: str) -> RejectedRow:
        return RejectedRow(
            row_number=row_number,
            reason=f"Missing required field: {column}",
            column=column,
            value=self._stringify_value(row.raw.get(column)),
        )

    @staticmethod
    def _stringify_value(value: Any) -> str | None:
        if value is None:
            return None
        return str(value)
