"""
app/api/routers/stock_import.py

Stock data CSV import endpoints, one per table.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload, require_admin
from app.domain.import_specs import IMPORT_ROW_SPECS, get_import_row_spec
from app.domain.stock_import import ImportOutcome
from app.errors import (
    CSVHeaderError,
    CSVImportFileError,
    StockImportPersistenceError,
    SymbolRegistryEmptyError,
)
from app.schemas.stock_import import (
    ImportSpecResponse,
    RejectedRowResponse,
    StockImportResponse,
)
from app.services.stock_import_service import StockImportService, get_stock_import_service
from db.session import get_db

router = APIRouter(tags=["stock-import"])


class StockDataDomain(str, Enum):
    STOCKS = "stocks"
    STOCK_INFO = "stock-info"
    STOCK_DAILY = "stock-daily"
    STOCK_ASSETS = "stock-assets"
    STOCK_EPS = "stock-eps"
    STOCK_METRICS = "stock-metrics"
    STOCK_PE = "stock-pe"


@router.get("/api/import-specs", response_model=list[ImportSpecResponse])
def list_import_specs() -> list[ImportSpecResponse]:
    """
    Describe the expected CSV layout of every importable table.
    """

    return [ImportSpecResponse.from_spec(spec) for spec in IMPORT_ROW_SPECS]


@router.post(
    "/api/{domain}/import",
    response_model=StockImportResponse,
    response_model_exclude_none=True,
)
def import_stock_csv(
    domain: StockDataDomain,
    admin_user: dict[str, Any] = Depends(require_admin),
    file: UploadFile = Depends(get_csv_upload),
    db: Session = Depends(get_db),
    import_service: StockImportService = Depends(get_stock_import_service),
) -> StockImportResponse:
    """
    Import one CSV file into the table behind `domain`.

    Rows whose natural key already exists are overwritten, blank cells
    included.
    """

    spec = get_import_row_spec(domain.value)
    try:
        result = import_service.import_upload(upload_file=file, spec=spec, db=db)
    except CSVHeaderError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(exc),
                "missing_columns": list(exc.missing_columns),
                "expected_columns": list(spec.column_names),
            },
        ) from exc
    except CSVImportFileError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except SymbolRegistryEmptyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except StockImportPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Unable to persist imported rows.", "error": str(exc)},
        ) from exc
    finally:
        file.file.close()

    if result.outcome == ImportOutcome.NO_VALID_ROWS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "No valid rows to import.",
                "total_rows": result.total_rows,
                "errors": [
                    RejectedRowResponse.from_domain(row).model_dump()
                    for row in result.rejected_rows
                ],
            },
        )

    return StockImportResponse.from_result(
        result,
        message=f"Imported {result.imported_count} {spec.domain} row(s).",
    )
