"""
app/mappers/row_normalizer.py

Streaming CSV row reader and per-column type coercion for stock imports.
"""

from __future__ import annotations

import csv
import math
from collections.abc import Iterator, Sequence
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import IO, Any, Mapping

from app.domain.stock_import import ColumnKind, ImportRowSpec, NormalizedRow, NumericLocale
from app.errors import CSVHeaderError

# First match wins, so an ambiguous "01/02/2023" reads as 1 February.
DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%d-%m-%Y",
)

DATE_FORMAT_LABELS = "YYYY-MM-DD, DD/MM/YYYY, MM/DD/YYYY, YYYY/MM/DD, DD-MM-YYYY"

RawRow = dict[str, str | None]


def normalize_header(header: str | None) -> str:
    """
    Lower-case and trim one header cell.
    """

    return (header or "").strip().lower()


def iter_raw_rows(
    text_stream: IO[str],
    *,
    delimiter: str = ",",
) -> tuple[list[str], Iterator[tuple[int, RawRow]]]:
    """
    Read the header and return it with a lazy iterator of data rows.

    Rows are numbered from 1 (header excluded). Blank lines are skipped by
    the csv module and never counted. Missing trailing cells become None;
    cells beyond the header are dropped.
    """

    reader = csv.reader(text_stream, delimiter=delimiter)
    try:
        header_cells = next(reader)
    except StopIteration:
        raise CSVHeaderError("CSV header row is missing.") from None

    headers = [normalize_header(cell) for cell in header_cells]
    if not any(headers):
        raise CSVHeaderError("CSV header row is missing.")

    def _rows() -> Iterator[tuple[int, RawRow]]:
        row_number = 0
        for cells in reader:
            if not cells:
                continue
            row_number += 1
            raw_row: RawRow = {}
            for index, header in enumerate(headers):
                if not header or header in raw_row:
                    continue
                raw_row[header] = cells[index].strip() if index < len(cells) else None
            yield row_number, raw_row

    return headers, _rows()


def missing_header_columns(headers: Sequence[str], spec: ImportRowSpec) -> tuple[str, ...]:
    """
    Return key and required columns absent from the header, in spec order.
    """

    present = set(headers)
    return tuple(column for column in spec.header_requirements if column not in present)


def parse_numeric(value: str | None, locale: str = NumericLocale.PLAIN) -> float | None:
    """
    Coerce one numeric cell; anything unparseable becomes None.
    """

    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None

    if locale == NumericLocale.VIETNAMESE:
        raw = raw.replace(".", "").replace(",", ".")
    elif locale != NumericLocale.PLAIN:
        raise ValueError(f"Unknown numeric locale: {locale!r}")

    try:
        parsed = Decimal(raw)
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    result = float(parsed)
    # Literals beyond double range overflow to inf.
    return result if math.isfinite(result) else None


def parse_date(value: str | None) -> str | None:
    """
    Parse a date cell in any accepted format and render it as YYYY-MM-DD.
    """

    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date().isoformat()
        except ValueError:
            continue
    return None


class RowNormalizer:
    """
    Maps a RawRow onto a spec's typed columns.

    Never rejects: failures surface as None values (numerics, text) or in
    NormalizedRow.invalid_dates, and the validator decides what they mean.
    """

    def normalize(self, raw_row: Mapping[str, str | None], spec: ImportRowSpec) -> NormalizedRow:
        values: dict[str, Any] = {}
        invalid_dates: set[str] = set()
        raw: dict[str, str | None] = {}

        for column, kind in spec.columns:
            cell = raw_row.get(column)
            raw[column] = cell

            if kind == ColumnKind.SYMBOL:
                values[column] = self._normalize_symbol(cell)
            elif kind == ColumnKind.NUMERIC:
                values[column] = parse_numeric(cell, spec.numeric_locale)
            elif kind == ColumnKind.DATE:
                parsed = parse_date(cell)
                if parsed is None and not self._is_blank(cell):
                    invalid_dates.add(column)
                values[column] = parsed
            else:
                values[column] = None if self._is_blank(cell) else str(cell).strip()

        return NormalizedRow(values=values, invalid_dates=frozenset(invalid_dates), raw=raw)

    @staticmethod
    def _normalize_symbol(value: str | None) -> str | None:
        if value is None:
            return None
        symbol = str(value).strip().upper()
        return symbol or None

    @staticmethod
    def _is_blank(value: Any) -> bool:
        return value is None or str(value).strip() == ""
