"""
app/mappers package marker.
"""

from app.mappers.row_normalizer import (
    DATE_FORMATS,
    RowNormalizer,
    iter_raw_rows,
    missing_header_columns,
    parse_date,
    parse_numeric,
)

__all__ = [
    "DATE_FORMATS",
    "RowNormalizer",
    "iter_raw_rows",
    "missing_header_columns",
    "parse_date",
    "parse_numeric",
]
