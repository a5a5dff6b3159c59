"""
tests/test_stock_import_service.py

Unit tests for StockImportService.

No database: the symbol registry and the table writer are in-memory fakes
injected through the service factories, and the session is a MagicMock.

Coverage
--------
- Mixed valid/invalid files and the count conservation rule
- Duplicate natural keys inside one file (last row wins)
- Idempotent re-import against a persistent store
- Registry lookups batched into one call
- Empty registry and header failures
- Persistence failure rollback
- Staged upload cleanup on every exit path
- Upload size ceiling
"""

from __future__ import annotations

import io
import os
from pathlib import Path
from typing import Any, Sequence
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.domain.import_specs import STOCK_DAILY, STOCK_INFO, STOCK_PE
from app.domain.stock_import import ImportOutcome, ImportRowSpec, NormalizedRow
from app.errors import (
    CSVEmptyFileError,
    CSVFileTooLargeError,
    CSVHeaderError,
    StockImportPersistenceError,
    SymbolRegistryEmptyError,
)
from app.repositories.stock_data_repository import collapse_by_natural_key
from app.services.stock_import_service import StockImportService


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeRegistry:
    def __init__(self, symbols: set[str]) -> None:
        self.symbols = symbols
        self.calls: list[list[str]] = []

    def exists_many(self, symbols: Sequence[str]) -> dict[str, bool]:
        self.calls.append(list(symbols))
        return {symbol: symbol in self.symbols for symbol in symbols}

    def is_empty(self) -> bool:
        return not self.symbols


class FakeWriter:
    """Keeps table rows in a dict keyed by natural key."""

    def __init__(self) -> None:
        self.store: dict[tuple[Any, ...], dict[str, Any]] = {}
        self.calls = 0

    def upsert(
        self,
        spec: ImportRowSpec,
        rows: Sequence[NormalizedRow],
        *,
        batch_size: int = 1000,
    ) -> int:
        self.calls += 1
        collapsed = collapse_by_natural_key(spec, rows)
        for row in collapsed:
            self.store[row.natural_key(spec)] = dict(row.values)
        return len(collapsed)


class FailingWriter:
    def upsert(self, spec, rows, *, batch_size=1000) -> int:
        raise OperationalError("INSERT", {}, Exception("connection lost"))


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry({"FPT", "VNM"})


@pytest.fixture
def writer() -> FakeWriter:
    return FakeWriter()


@pytest.fixture
def service(upload_dir: Path, registry: FakeRegistry, writer: FakeWriter) -> StockImportService:
    return StockImportService(
        batch_size=2,
        log_rejected_rows=True,
        upload_dir=upload_dir,
        registry_factory=lambda db: registry,
        writer_factory=lambda db: writer,
    )


def _stage(service: StockImportService, content: str) -> str:
    return service.stage_upload(io.BytesIO(content.encode("utf-8")), file_name="data.csv")


def _staged_files(upload_dir: Path) -> list[str]:
    if not upload_dir.exists():
        return []
    return os.listdir(upload_dir)


# ---------------------------------------------------------------------------
# Happy path and counting
# ---------------------------------------------------------------------------


def test_mixed_file_reports_rejections_and_imports_rest(
    service: StockImportService, writer: FakeWriter, upload_dir: Path
) -> None:
    content = (
        "symbol,date,pe,pe_nganh\n"
        "FPT,2023-01-01,12.5,10\n"
        ",2023-01-02,11,10\n"
        "ZZZ,2023-01-03,9,10\n"
        "VNM,2023-01-04,abc,\n"
    )
    db = MagicMock()

    result = service.import_file(file_path=_stage(service, content), spec=STOCK_PE, db=db)

    assert result.outcome == ImportOutcome.IMPORTED
    assert result.total_rows == 4
    assert result.imported_count == 2
    assert result.rejected_count == 2
    assert [row.row_number for row in result.rejected_rows] == [2, 3]
    assert "Missing required field: symbol" in result.rejected_rows[0].reason
    assert "ZZZ" in result.rejected_rows[1].reason
    assert writer.store[("VNM", "2023-01-04")]["pe"] is None
    db.commit.assert_called_once()
    assert _staged_files(upload_dir) == []


def test_duplicate_keys_last_row_wins_and_counts_conserve(
    service: StockImportService, writer: FakeWriter
) -> None:
    content = (
        "symbol,date,pe,pe_nganh\n"
        "FPT,2023-01-01,10,1\n"
        "FPT,01/01/2023,20,2\n"
        "FPT,2023-01-02,30,3\n"
    )

    result = service.import_file(file_path=_stage(service, content), spec=STOCK_PE, db=MagicMock())

    assert result.imported_count == 2
    assert result.duplicate_count == 1
    assert result.imported_count + result.duplicate_count + result.rejected_count == result.total_rows
    assert writer.store[("FPT", "2023-01-01")]["pe"] == 20.0


def test_reimport_is_idempotent(service: StockImportService, writer: FakeWriter) -> None:
    content = "symbol,date,pe,pe_nganh\nFPT,2023-01-01,12,10\nVNM,15/03/2023,8,\n"

    first = service.import_file(file_path=_stage(service, content), spec=STOCK_PE, db=MagicMock())
    snapshot = dict(writer.store)
    second = service.import_file(file_path=_stage(service, content), spec=STOCK_PE, db=MagicMock())

    assert first.imported_count == second.imported_count == 2
    assert writer.store == snapshot
    assert set(writer.store) == {("FPT", "2023-01-01"), ("VNM", "2023-03-15")}


def test_registry_is_queried_once_with_distinct_symbols(
    service: StockImportService, registry: FakeRegistry
) -> None:
    content = (
        "symbol,date,pe\n"
        "fpt,2023-01-01,1\n"
        "FPT,2023-01-02,2\n"
        "vnm,2023-01-03,3\n"
        "ABC,2023-01-04,4\n"
    )

    service.import_file(file_path=_stage(service, content), spec=STOCK_PE, db=MagicMock())

    assert registry.calls == [["ABC", "FPT", "VNM"]]


def test_stock_info_import_skips_registry(upload_dir: Path, writer: FakeWriter) -> None:
    def _no_registry(db):
        raise AssertionError("stock_info must not consult the registry")

    service = StockImportService(
        batch_size=100,
        log_rejected_rows=False,
        upload_dir=upload_dir,
        registry_factory=_no_registry,
        writer_factory=lambda db: writer,
    )
    content = "symbol,name,description\nnew,New Co,\nOLD,,desc\n"

    result = service.import_file(file_path=_stage(service, content), spec=STOCK_INFO, db=MagicMock())

    assert result.imported_count == 1
    assert result.rejected_rows[0].reason == "Missing required field: name"
    assert writer.store[("NEW",)] == {"symbol": "NEW", "name": "New Co", "description": None}


# ---------------------------------------------------------------------------
# Whole-file outcomes
# ---------------------------------------------------------------------------


def test_no_valid_rows_skips_storage(
    service: StockImportService, writer: FakeWriter, upload_dir: Path
) -> None:
    content = "symbol,close_price\nFPT,\nZZZ,100\n"
    db = MagicMock()

    result = service.import_file(file_path=_stage(service, content), spec=STOCK_DAILY, db=db)

    assert result.outcome == ImportOutcome.NO_VALID_ROWS
    assert result.imported_count == 0
    assert result.rejected_count == 2
    assert writer.calls == 0
    db.commit.assert_not_called()
    assert _staged_files(upload_dir) == []


def test_missing_header_column_raises_and_cleans_up(
    service: StockImportService, upload_dir: Path
) -> None:
    path = _stage(service, "symbol,pe\nFPT,12\n")

    with pytest.raises(CSVHeaderError) as exc_info:
        service.import_file(file_path=path, spec=STOCK_PE, db=MagicMock())

    assert exc_info.value.missing_columns == ("date",)
    assert not os.path.exists(path)


def test_header_only_file_is_empty(service: StockImportService, upload_dir: Path) -> None:
    path = _stage(service, "symbol,date,pe\n")

    with pytest.raises(CSVEmptyFileError):
        service.import_file(file_path=path, spec=STOCK_PE, db=MagicMock())

    assert _staged_files(upload_dir) == []


def test_empty_registry_raises(upload_dir: Path, writer: FakeWriter) -> None:
    service = StockImportService(
        batch_size=10,
        log_rejected_rows=True,
        upload_dir=upload_dir,
        registry_factory=lambda db: FakeRegistry(set()),
        writer_factory=lambda db: writer,
    )
    path = _stage(service, "symbol,date,pe\nFPT,2023-01-01,1\n")

    with pytest.raises(SymbolRegistryEmptyError):
        service.import_file(file_path=path, spec=STOCK_PE, db=MagicMock())

    assert writer.calls == 0
    assert not os.path.exists(path)


def test_persistence_failure_rolls_back(upload_dir: Path, registry: FakeRegistry) -> None:
    service = StockImportService(
        batch_size=10,
        log_rejected_rows=True,
        upload_dir=upload_dir,
        registry_factory=lambda db: registry,
        writer_factory=lambda db: FailingWriter(),
    )
    path = _stage(service, "symbol,date,pe\nFPT,2023-01-01,1\n")
    db = MagicMock()

    with pytest.raises(StockImportPersistenceError):
        service.import_file(file_path=path, spec=STOCK_PE, db=db)

    db.rollback.assert_called_once()
    db.commit.assert_not_called()
    assert not os.path.exists(path)


# ---------------------------------------------------------------------------
# Staging
# ---------------------------------------------------------------------------


def test_stage_upload_enforces_size_limit(service: StockImportService, upload_dir: Path) -> None:
    with pytest.raises(CSVFileTooLargeError):
        service.stage_upload(io.BytesIO(b"x" * 64), file_name="big.csv", max_bytes=32)

    assert _staged_files(upload_dir) == []


def test_stage_upload_rejects_empty_stream(service: StockImportService, upload_dir: Path) -> None:
    with pytest.raises(CSVEmptyFileError):
        service.stage_upload(io.BytesIO(b""), file_name="empty.csv")

    assert _staged_files(upload_dir) == []


def test_import_upload_stages_and_imports(service: StockImportService, writer: FakeWriter) -> None:
    upload = MagicMock()
    upload.filename = "stock_pe.csv"
    upload.file = io.BytesIO("\ufeffsymbol,date,pe\nFPT,2023-01-01,1\n".encode("utf-8"))

    result = service.import_upload(upload_file=upload, spec=STOCK_PE, db=MagicMock())

    assert result.imported_count == 1
    assert ("FPT", "2023-01-01") in writer.store


def test_staged_file_lives_in_upload_dir(service: StockImportService, upload_dir: Path) -> None:
    path = _stage(service, "symbol,date\nFPT,2023-01-01\n")
    try:
        assert Path(path).parent == upload_dir
        assert Path(path).name.startswith("stock_import_")
    finally:
        os.remove(path)


# ---------------------------------------------------------------------------
# Documented scenarios
# ---------------------------------------------------------------------------


def test_vic_xyz_scenario(upload_dir: Path, writer: FakeWriter) -> None:
    service = StockImportService(
        batch_size=1000,
        log_rejected_rows=True,
        upload_dir=upload_dir,
        registry_factory=lambda db: FakeRegistry({"VIC"}),
        writer_factory=lambda db: writer,
    )
    content = (
        "symbol,date,pe,pe_nganh\n"
        "VIC,2023-01-01,10.5,12.0\n"
        "XYZ,2023-01-01,9.0,12.0\n"
        "VIC,01/01/2023,11.0,12.5\n"
    )

    result = service.import_file(file_path=_stage(service, content), spec=STOCK_PE, db=MagicMock())

    assert result.imported_count == 1
    assert [(row.row_number, row.value) for row in result.rejected_rows] == [(2, "XYZ")]
    assert list(writer.store) == [("VIC", "2023-01-01")]
    stored = writer.store[("VIC", "2023-01-01")]
    assert (stored["pe"], stored["pe_nganh"]) == (11.0, 12.5)


@pytest.mark.parametrize(
    "raw_date",
    ["15/03/2023", "2023/03/15", "15-03-2023", "2023-03-15"],
)
def test_each_date_format_is_stored_as_iso(
    service: StockImportService, writer: FakeWriter, raw_date: str
) -> None:
    content = f"symbol,date,pe\nFPT,{raw_date},1\n"

    result = service.import_file(file_path=_stage(service, content), spec=STOCK_PE, db=MagicMock())

    assert result.rejected_count == 0
    assert list(writer.store) == [("FPT", "2023-03-15")]
