"""
Exceptions raised by the stock data import flow.

Row-level problems never raise; they become RejectedRow entries. Everything
here aborts the whole import.
"""

from __future__ import annotations


class StockImportError(Exception):
    """Base exception for import failures."""


class CSVImportFileError(StockImportError, ValueError):
    """Raised when the uploaded file itself is unusable."""


class CSVHeaderError(CSVImportFileError):
    """Raised when the header row is missing or lacks required columns."""

    def __init__(self, message: str, *, missing_columns: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing_columns = missing_columns


class CSVEmptyFileError(CSVImportFileError):
    """Raised when the file holds no data rows."""


class CSVFileTooLargeError(CSVImportFileError):
    """Raised when an upload exceeds the table's size ceiling."""


class SymbolRegistryEmptyError(StockImportError, LookupError):
    """Raised when rows need the symbol registry but it holds no symbols."""


class StockImportPersistenceError(StockImportError, RuntimeError):
    """Raised when the batch upsert fails; nothing was committed."""
