"""
app/services/stock_import_service.py

Service layer for stock data CSV imports.

One call runs one sequential pipeline:

    RECEIVED -> PARSING -> VALIDATING -> UPSERTING -> CLEANUP -> DONE

with FAILED reachable from any stage. The whole file is parsed before any
row is validated so that every distinct symbol is resolved against the
registry in a single query. Valid rows are written with one upsert at the
end, inside one transaction, and the staged upload is deleted on every
exit path.
"""

from __future__ import annotations

import csv
import io
import logging
import os
import tempfile
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import IO, Protocol, Sequence

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_stock_import_settings
from app.domain.stock_import import (
    MB,
    ImportOutcome,
    ImportResult,
    ImportRowSpec,
    NormalizedRow,
    RejectedRow,
)
from app.errors import (
    CSVEmptyFileError,
    CSVFileTooLargeError,
    CSVHeaderError,
    CSVImportFileError,
    StockImportPersistenceError,
    SymbolRegistryEmptyError,
)
from app.logging_utils import log_event
from app.mappers.row_normalizer import RowNormalizer, iter_raw_rows, missing_header_columns
from app.repositories.stock_data_repository import StockDataRepository, collapse_by_natural_key
from app.repositories.symbol_registry_repository import (
    SymbolRegistryRepository,
    SymbolRegistrySnapshot,
)
from app.validators.stock_row_validator import StockRowValidator

logger = logging.getLogger(__name__)

_COPY_CHUNK_BYTES = 1 * MB


def _format_limit(max_bytes: int) -> str:
    if max_bytes >= MB and max_bytes % MB == 0:
        return f"{max_bytes // MB} MB"
    return f"{max_bytes} bytes"


class ImportState:
    RECEIVED = "received"
    PARSING = "parsing"
    VALIDATING = "validating"
    UPSERTING = "upserting"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"


class SymbolRegistry(Protocol):
    def exists_many(self, symbols: Sequence[str]) -> dict[str, bool]:
        ...

    def is_empty(self) -> bool:
        ...


class StockDataWriter(Protocol):
    def upsert(
        self,
        spec: ImportRowSpec,
        rows: Sequence[NormalizedRow],
        *,
        batch_size: int = ...,
    ) -> int:
        ...


class StockImportService:
    """
    Coordinates staging, parsing, validation, upsert and cleanup.
    """

    def __init__(
        self,
        *,
        batch_size: int,
        log_rejected_rows: bool,
        upload_dir: str | Path,
        delimiter: str = ",",
        normalizer: RowNormalizer | None = None,
        validator: StockRowValidator | None = None,
        registry_factory: Callable[[Session], SymbolRegistry] | None = None,
        writer_factory: Callable[[Session], StockDataWriter] | None = None,
    ) -> None:
        self._batch_size = max(1, batch_size)
        self._log_rejected_rows = log_rejected_rows
        self._upload_dir = Path(upload_dir)
        self._delimiter = delimiter
        self._normalizer = normalizer or RowNormalizer()
        self._validator = validator or StockRowValidator()
        self._registry_factory = registry_factory or SymbolRegistryRepository
        self._writer_factory = writer_factory or StockDataRepository

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def import_upload(
        self,
        *,
        upload_file: UploadFile,
        spec: ImportRowSpec,
        db: Session,
    ) -> ImportResult:
        """
        Stage an HTTP upload under the table's size ceiling, then import it.
        """

        temp_path = self.stage_upload(
            upload_file.file,
            file_name=upload_file.filename,
            max_bytes=spec.max_upload_bytes,
        )
        return self.import_file(file_path=temp_path, spec=spec, db=db)

    def stage_upload(
        self,
        stream: IO[bytes],
        *,
        file_name: str | None = None,
        max_bytes: int | None = None,
    ) -> str:
        """
        Copy a binary stream into a temp file in the upload directory.

        The partial file is removed if the copy fails or exceeds max_bytes.
        """

        suffix = Path(file_name or "upload.csv").suffix or ".csv"
        self._upload_dir.mkdir(parents=True, exist_ok=True)
        try:
            stream.seek(0)
        except (AttributeError, OSError):
            pass

        temp_path: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                delete=False,
                dir=self._upload_dir,
                prefix="stock_import_",
                suffix=suffix,
            ) as temp_file:
                temp_path = temp_file.name
                written = 0
                while True:
                    chunk = stream.read(_COPY_CHUNK_BYTES)
                    if not chunk:
                        break
                    written += len(chunk)
                    if max_bytes is not None and written > max_bytes:
                        raise CSVFileTooLargeError(
                            f"File exceeds the {_format_limit(max_bytes)} upload limit."
                        )
                    temp_file.write(chunk)

            if written == 0:
                raise CSVEmptyFileError("Uploaded file is empty.")
        except BaseException:
            if temp_path is not None:
                self._delete_file_quietly(temp_path)
            raise

        return temp_path

    def import_file(
        self,
        *,
        file_path: str | Path,
        spec: ImportRowSpec,
        db: Session,
    ) -> ImportResult:
        """
        Run the import pipeline over a staged file and delete the file.

        Raises CSVImportFileError for unusable files, SymbolRegistryEmptyError
        when no registry exists to validate against, and
        StockImportPersistenceError when storage fails. Row-level problems
        are returned in ImportResult.rejected_rows instead.
        """

        file_path = str(file_path)
        state = ImportState.RECEIVED
        log_event(logger, logging.INFO, "stock_import.received", domain=spec.domain, file=file_path)

        try:
            state = ImportState.PARSING
            candidates = self._parse_file(file_path, spec)

            state = ImportState.VALIDATING
            registry = self._resolve_registry(db, spec, candidates)
            accepted: list[NormalizedRow] = []
            rejected_rows: list[RejectedRow] = []
            for row_number, candidate in candidates:
                valid_row, rejection = self._validator.validate(row_number, candidate, spec, registry)
                if rejection is not None:
                    self._record_rejection(spec, rejected_rows, rejection)
                elif valid_row is not None:
                    accepted.append(valid_row)

            batch = collapse_by_natural_key(spec, accepted)
            duplicate_count = len(accepted) - len(batch)

            if not batch:
                state = ImportState.DONE
                log_event(
                    logger,
                    logging.WARNING,
                    "stock_import.no_valid_rows",
                    domain=spec.domain,
                    total_rows=len(candidates),
                    rejected=len(rejected_rows),
                )
                return ImportResult(
                    domain=spec.domain,
                    total_rows=len(candidates),
                    imported_count=0,
                    duplicate_count=0,
                    rejected_rows=rejected_rows,
                    outcome=ImportOutcome.NO_VALID_ROWS,
                )

            state = ImportState.UPSERTING
            affected = self._persist_batch(db, spec, batch)

            state = ImportState.DONE
            result = ImportResult(
                domain=spec.domain,
                total_rows=len(candidates),
                imported_count=len(batch),
                duplicate_count=duplicate_count,
                rejected_rows=rejected_rows,
            )
            log_event(
                logger,
                logging.INFO,
                "stock_import.completed",
                domain=spec.domain,
                total_rows=result.total_rows,
                imported=result.imported_count,
                duplicates=result.duplicate_count,
                rejected=result.rejected_count,
                affected=affected,
            )
            return result
        except BaseException as exc:
            log_event(
                logger,
                logging.ERROR,
                "stock_import.failed",
                domain=spec.domain,
                state=state,
                error=f"{type(exc).__name__}: {exc}",
            )
            state = ImportState.FAILED
            raise
        finally:
            self._delete_file_quietly(file_path)
            log_event(logger, logging.DEBUG, "stock_import.cleanup", domain=spec.domain, state=state)

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _parse_file(
        self,
        file_path: str,
        spec: ImportRowSpec,
    ) -> list[tuple[int, NormalizedRow]]:
        candidates: list[tuple[int, NormalizedRow]] = []
        try:
            with open(file_path, "rb") as raw_file:
                text_stream = io.TextIOWrapper(raw_file, encoding="utf-8-sig", newline="")
                headers, rows = iter_raw_rows(text_stream, delimiter=self._delimiter)

                missing = missing_header_columns(headers, spec)
                if missing:
                    raise CSVHeaderError(
                        f"CSV header is missing required column(s): {', '.join(missing)}. "
                        f"Expected columns: {','.join(spec.column_names)}.",
                        missing_columns=missing,
                    )

                for row_number, raw_row in rows:
                    candidates.append((row_number, self._normalizer.normalize(raw_row, spec)))
        except UnicodeDecodeError as exc:
            raise CSVImportFileError("CSV must be UTF-8 encoded.") from exc
        except csv.Error as exc:
            raise CSVImportFileError(f"Invalid CSV format: {exc}") from exc

        if not candidates:
            raise CSVEmptyFileError("CSV file contains no data rows.")
        return candidates

    def _resolve_registry(
        self,
        db: Session,
        spec: ImportRowSpec,
        candidates: Sequence[tuple[int, NormalizedRow]],
    ) -> SymbolRegistrySnapshot | None:
        if not spec.requires_registered_symbol:
            return None

        symbols = sorted(
            {row.values["symbol"] for _, row in candidates if row.values.get("symbol")}
        )
        registry = self._registry_factory(db)
        try:
            snapshot = SymbolRegistrySnapshot(registry.exists_many(symbols))
            if symbols and snapshot.resolved_count == 0 and registry.is_empty():
                raise SymbolRegistryEmptyError(
                    "The stock_info symbol registry is empty; import stock info first."
                )
        except SQLAlchemyError as exc:
            raise StockImportPersistenceError(f"Symbol registry lookup failed: {exc}") from exc
        return snapshot

    def _persist_batch(
        self,
        db: Session,
        spec: ImportRowSpec,
        batch: list[NormalizedRow],
    ) -> int:
        writer = self._writer_factory(db)
        try:
            affected = writer.upsert(spec, batch, batch_size=self._batch_size)
            db.commit()
            return affected
        except SQLAlchemyError as exc:
            db.rollback()
            raise StockImportPersistenceError(
                f"Failed to upsert {spec.table_name} rows: {exc}"
            ) from exc

    def _record_rejection(
        self,
        spec: ImportRowSpec,
        rejected_rows: list[RejectedRow],
        rejection: RejectedRow,
    ) -> None:
        if self._log_rejected_rows:
            logger.warning(
                "Stock import row rejected domain=%s row=%s column=%s reason=%s value=%r",
                spec.domain,
                rejection.row_number,
                rejection.column,
                rejection.reason,
                rejection.value,
            )
        rejected_rows.append(rejection)

    def _delete_file_quietly(self, file_path: str) -> None:
        try:
            os.remove(file_path)
        except FileNotFoundError:
            logger.debug("Staged upload already removed path=%s", file_path)
        except OSError as exc:
            logger.warning("Failed to remove staged upload path=%s error=%s", file_path, exc)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_stock_import_service() -> StockImportService:
    """
    Build and cache the import service with env-driven settings.
    """
    settings = get_stock_import_settings()
    return StockImportService(
        batch_size=settings.batch_size,
        log_rejected_rows=settings.log_rejected_rows,
        upload_dir=settings.upload_dir,
        delimiter=settings.delimiter,
    )
