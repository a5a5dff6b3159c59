"""
app/schemas/stock_import.py

Response schemas for stock data import endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.domain.stock_import import ColumnKind, ImportResult, ImportRowSpec, RejectedRow


class RejectedRowResponse(BaseModel):
    """
    API response model for one rejected data row.
    """

    row_number: int = Field(..., ge=1, description="1-based data row, header excluded")
    reason: str
    column: str | None = None
    value: str | None = None

    @classmethod
    def from_domain(cls, row: RejectedRow) -> "RejectedRowResponse":
        return cls(
            row_number=row.row_number,
            reason=row.reason,
            column=row.column,
            value=row.value,
        )


class StockImportResponse(BaseModel):
    """
    API response model for a finished import.

    errors is omitted when no row was rejected.
    """

    message: str
    domain: str
    total_rows: int = Field(..., ge=0)
    imported_count: int = Field(..., ge=0)
    duplicate_count: int = Field(0, ge=0)
    rejected_count: int = Field(0, ge=0)
    errors: list[RejectedRowResponse] | None = None

    @classmethod
    def from_result(cls, result: ImportResult, *, message: str) -> "StockImportResponse":
        return cls(
            message=message,
            domain=result.domain,
            total_rows=result.total_rows,
            imported_count=result.imported_count,
            duplicate_count=result.duplicate_count,
            rejected_count=result.rejected_count,
            errors=[RejectedRowResponse.from_domain(row) for row in result.rejected_rows] or None,
        )


class ImportSpecResponse(BaseModel):
    """
    Expected CSV layout for one importable table.
    """

    domain: str
    slug: str
    columns: list[str]
    natural_key: list[str]
    required_columns: list[str]
    numeric_locale: str | None
    requires_registered_symbol: bool
    max_upload_bytes: int

    @classmethod
    def from_spec(cls, spec: ImportRowSpec) -> "ImportSpecResponse":
        has_numeric = bool(spec.columns_of_kind(ColumnKind.NUMERIC))
        return cls(
            domain=spec.domain,
            slug=spec.slug,
            columns=list(spec.column_names),
            natural_key=list(spec.natural_key),
            required_columns=list(spec.header_requirements),
            numeric_locale=spec.numeric_locale if has_numeric else None,
            requires_registered_symbol=spec.requires_registered_symbol,
            max_upload_bytes=spec.max_upload_bytes,
        )
