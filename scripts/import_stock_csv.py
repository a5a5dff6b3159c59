"""
Import one stock data CSV file from the command line.

The source file is copied into the upload directory first, so it is never
deleted. Usage:

    python -m scripts.import_stock_csv stock-pe path/to/stock_pe.csv
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from app.domain.import_specs import IMPORT_ROW_SPECS, get_import_row_spec
from app.domain.stock_import import ImportOutcome
from app.errors import StockImportError
from app.services.stock_import_service import get_stock_import_service
from db.session import SessionLocal

EXIT_IMPORTED = 0
EXIT_NO_VALID_ROWS = 1
EXIT_FAILED = 2


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import a stock data CSV file.")
    parser.add_argument(
        "domain",
        choices=sorted({spec.slug for spec in IMPORT_ROW_SPECS} | {spec.domain for spec in IMPORT_ROW_SPECS}),
        help="Target table, by slug (stock-pe) or name (stock_pe).",
    )
    parser.add_argument("path", type=Path, help="CSV file to import.")
    parser.add_argument(
        "--no-size-limit",
        action="store_true",
        help="Skip the per-table upload size ceiling.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").strip().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    spec = get_import_row_spec(args.domain)
    service = get_stock_import_service()

    # import_file deletes the staged copy; nothing may run between staging and that call.
    try:
        with SessionLocal() as db:
            with args.path.open("rb") as source:
                staged_path = service.stage_upload(
                    source,
                    file_name=args.path.name,
                    max_bytes=None if args.no_size_limit else spec.max_upload_bytes,
                )
            result = service.import_file(file_path=staged_path, spec=spec, db=db)
    except (OSError, RuntimeError, SQLAlchemyError, StockImportError) as exc:
        print(json.dumps({"domain": spec.domain, "error": str(exc)}, indent=2), file=sys.stderr)
        return EXIT_FAILED

    payload = {
        "domain": result.domain,
        "outcome": result.outcome,
        "total_rows": result.total_rows,
        "imported_count": result.imported_count,
        "duplicate_count": result.duplicate_count,
        "rejected_count": result.rejected_count,
        "errors": [
            {
                "row_number": row.row_number,
                "reason": row.reason,
                "column": row.column,
                "value": row.value,
            }
            for row in result.rejected_rows
        ],
    }
    print(json.dumps(payload, indent=2))
    if result.outcome == ImportOutcome.NO_VALID_ROWS:
        return EXIT_NO_VALID_ROWS
    return EXIT_IMPORTED


if __name__ == "__main__":
    raise SystemExit(main())
