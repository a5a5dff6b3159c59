"""
app/domain package marker.
"""

from app.domain.import_specs import IMPORT_ROW_SPECS, get_import_row_spec
from app.domain.stock_import import (
    ColumnKind,
    ImportOutcome,
    ImportResult,
    ImportRowSpec,
    NormalizedRow,
    NumericLocale,
    RejectedRow,
)

__all__ = [
    "ColumnKind",
    "IMPORT_ROW_SPECS",
    "ImportOutcome",
    "ImportResult",
    "ImportRowSpec",
    "NormalizedRow",
    "NumericLocale",
    "RejectedRow",
    "get_import_row_spec",
]
