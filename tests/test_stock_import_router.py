"""
tests/test_stock_import_router.py

HTTP contract tests for the stock import endpoints.

The router is mounted on a bare FastAPI app so no database or environment
validation is needed; the session and service dependencies are overridden
and tokens are signed with a test secret.
"""

from __future__ import annotations

import dataclasses
import os
from typing import Any
from unittest.mock import MagicMock

import jwt
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.routers.stock_import import router
from app.config import AuthSettings
from app.domain.import_specs import STOCK_PE
from app.domain.stock_import import ImportOutcome, ImportResult, RejectedRow
from app.errors import CSVHeaderError, StockImportPersistenceError, SymbolRegistryEmptyError
from app.services.stock_import_service import StockImportService, get_stock_import_service
from db.session import get_db

SECRET = "stock-import-test-secret-0123456789abcdef"
CSV_BODY = b"symbol,date,pe\nFPT,2023-01-01,12\n"


class StubImportService:
    def __init__(self, outcome: ImportResult | Exception) -> None:
        self.outcome = outcome
        self.calls: list[dict[str, Any]] = []

    def import_upload(self, *, upload_file, spec, db) -> ImportResult:
        self.calls.append({"file_name": upload_file.filename, "spec": spec})
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _token(role: str = "admin") -> str:
    return jwt.encode({"user": {"id": 1, "role": role}}, SECRET, algorithm="HS256")


def _upload(name: str = "stock_pe.csv", content_type: str = "text/csv") -> dict[str, Any]:
    return {"file": (name, CSV_BODY, content_type)}


@pytest.fixture(autouse=True)
def auth_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "app.api.dependencies.get_auth_settings",
        lambda: AuthSettings(jwt_secret=SECRET, jwt_algorithm="HS256"),
    )


def _client(service: StubImportService) -> TestClient:
    application = FastAPI()
    application.include_router(router)
    application.dependency_overrides[get_db] = lambda: object()
    application.dependency_overrides[get_stock_import_service] = lambda: service
    return TestClient(application)


def _imported(**overrides: Any) -> ImportResult:
    values: dict[str, Any] = {
        "domain": "stock_pe",
        "total_rows": 1,
        "imported_count": 1,
    }
    values.update(overrides)
    return ImportResult(**values)


def test_successful_import_omits_errors() -> None:
    service = StubImportService(_imported())
    client = _client(service)

    response = client.post(
        "/api/stock-pe/import",
        files=_upload(),
        headers={"x-auth-token": _token()},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Imported 1 stock_pe row(s)."
    assert body["imported_count"] == 1
    assert body["rejected_count"] == 0
    assert "errors" not in body
    assert service.calls[0]["spec"].table_name == "stock_pe"


def test_partial_import_lists_rejected_rows() -> None:
    result = _imported(
        total_rows=3,
        imported_count=2,
        rejected_rows=[RejectedRow(row_number=2, reason="Symbol 'ZZZ' not found in system")],
    )
    client = _client(StubImportService(result))

    response = client.post(
        "/api/stock-pe/import",
        files=_upload(),
        headers={"Authorization": f"Bearer {_token()}"},
    )

    assert response.status_code == 200
    errors = response.json()["errors"]
    assert errors == [{"row_number": 2, "reason": "Symbol 'ZZZ' not found in system"}]


def test_non_csv_upload_is_rejected() -> None:
    service = StubImportService(_imported())
    client = _client(service)

    response = client.post(
        "/api/stock-pe/import",
        files=_upload(name="report.xlsx", content_type="application/octet-stream"),
        headers={"x-auth-token": _token()},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Only CSV files are allowed."
    assert service.calls == []


def test_missing_token_is_unauthorized() -> None:
    response = _client(StubImportService(_imported())).post("/api/stock-pe/import", files=_upload())

    assert response.status_code == 401


def test_bad_signature_is_unauthorized() -> None:
    forged = jwt.encode({"user": {"role": "admin"}}, "another-signing-secret-0123456789abcdef", algorithm="HS256")

    response = _client(StubImportService(_imported())).post(
        "/api/stock-pe/import",
        files=_upload(),
        headers={"x-auth-token": forged},
    )

    assert response.status_code == 401


def test_non_admin_is_forbidden() -> None:
    response = _client(StubImportService(_imported())).post(
        "/api/stock-pe/import",
        files=_upload(),
        headers={"x-auth-token": _token(role="viewer")},
    )

    assert response.status_code == 403


def test_unconfigured_secret_is_unavailable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("app.api.dependencies.get_auth_settings", lambda: AuthSettings())

    response = _client(StubImportService(_imported())).post(
        "/api/stock-pe/import",
        files=_upload(),
        headers={"x-auth-token": _token()},
    )

    assert response.status_code == 503


def test_unknown_domain_is_rejected() -> None:
    response = _client(StubImportService(_imported())).post(
        "/api/stock-prices/import",
        files=_upload(),
        headers={"x-auth-token": _token()},
    )

    assert response.status_code == 422


def test_no_valid_rows_is_bad_request() -> None:
    result = _imported(
        total_rows=1,
        imported_count=0,
        rejected_rows=[RejectedRow(row_number=1, reason="Missing required field: date", column="date")],
        outcome=ImportOutcome.NO_VALID_ROWS,
    )

    response = _client(StubImportService(result)).post(
        "/api/stock-pe/import",
        files=_upload(),
        headers={"x-auth-token": _token()},
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "No valid rows to import."
    assert detail["errors"][0]["column"] == "date"


def test_header_error_lists_expected_columns() -> None:
    error = CSVHeaderError("missing date", missing_columns=("date",))

    response = _client(StubImportService(error)).post(
        "/api/stock-pe/import",
        files=_upload(),
        headers={"x-auth-token": _token()},
    )

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["missing_columns"] == ["date"]
    assert detail["expected_columns"] == ["symbol", "date", "pe", "pe_nganh"]


def test_empty_registry_is_not_found() -> None:
    response = _client(StubImportService(SymbolRegistryEmptyError("empty"))).post(
        "/api/stock-eps/import",
        files=_upload(),
        headers={"x-auth-token": _token()},
    )

    assert response.status_code == 404


def test_persistence_failure_is_server_error() -> None:
    response = _client(StubImportService(StockImportPersistenceError("db down"))).post(
        "/api/stock-pe/import",
        files=_upload(),
        headers={"x-auth-token": _token()},
    )

    assert response.status_code == 500
    assert response.json()["detail"]["message"] == "Unable to persist imported rows."


def test_import_specs_lists_every_table() -> None:
    response = _client(StubImportService(_imported())).get("/api/import-specs")

    assert response.status_code == 200
    by_slug = {item["slug"]: item for item in response.json()}
    assert set(by_slug) == {
        "stocks",
        "stock-info",
        "stock-daily",
        "stock-assets",
        "stock-eps",
        "stock-metrics",
        "stock-pe",
    }
    assert by_slug["stocks"]["numeric_locale"] == "vietnamese"
    assert by_slug["stock-info"]["requires_registered_symbol"] is False
    assert by_slug["stock-info"]["max_upload_bytes"] == 5 * 1024 * 1024
    assert by_slug["stock-daily"]["natural_key"] == ["symbol"]


def _real_service(upload_dir) -> StockImportService:
    registry = MagicMock()
    registry.exists_many.side_effect = lambda symbols: {symbol: True for symbol in symbols}
    return StockImportService(
        batch_size=10,
        log_rejected_rows=False,
        upload_dir=upload_dir,
        registry_factory=lambda db: registry,
        writer_factory=lambda db: MagicMock(upsert=MagicMock(return_value=1)),
    )


def test_oversized_upload_is_bad_request(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    upload_dir = tmp_path / "uploads"
    small_ceiling = dataclasses.replace(STOCK_PE, max_upload_bytes=16)
    monkeypatch.setattr(
        "app.api.routers.stock_import.get_import_row_spec",
        lambda name: small_ceiling,
    )
    client = _client(_real_service(upload_dir))

    response = client.post(
        "/api/stock-pe/import",
        files=_upload(),
        headers={"x-auth-token": _token()},
    )

    assert response.status_code == 400
    assert "upload limit" in response.json()["detail"]
    assert os.listdir(upload_dir) == []


def test_non_utf8_upload_is_bad_request(tmp_path) -> None:
    upload_dir = tmp_path / "uploads"
    client = _client(_real_service(upload_dir))

    response = client.post(
        "/api/stock-pe/import",
        files={"file": ("stock_pe.csv", "symbol,date,pe\nFPT,2023-01-01,\xe9\n".encode("latin-1"), "text/csv")},
        headers={"x-auth-token": _token()},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "CSV must be UTF-8 encoded."
    assert os.listdir(upload_dir) == []
