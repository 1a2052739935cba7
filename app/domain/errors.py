"""
app/domain/errors.py

Exception taxonomy for the limits loader.

ConfigurationError is fatal at initialization. ImportRunError subclasses are
fatal to one import run only. RowWidthError and ValueParseError are local to a
row or cell and never abort a run.
"""

from __future__ import annotations


class LimitsLoaderError(Exception):
    """Base exception for limits loader failures."""


class ConfigurationError(LimitsLoaderError, ValueError):
    """Raised when loader settings are malformed or inconsistent."""


class ImportRunError(LimitsLoaderError):
    """Base class for errors that abort the current import run."""


class SourceNotFoundError(ImportRunError, FileNotFoundError):
    """Raised when the configured CSV file does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f'CSV limits file "{path}" was not found')
        self.path = path


class LockTimeoutError(ImportRunError, TimeoutError):
    """Raised when a read lock on the CSV file cannot be acquired in time."""

    def __init__(self, path: str, timeout_seconds: float) -> None:
        super().__init__(
            f'Timed out after {timeout_seconds:.3f} seconds waiting for a read lock on "{path}"'
        )
        self.path = path
        self.timeout_seconds = timeout_seconds


class RowWidthError(LimitsLoaderError):
    """Raised when a CSV row has fewer columns than the configured mapping needs."""

    def __init__(self, *, row_number: int, column_count: int, required_columns: int) -> None:
        super().__init__(
            f"Not enough columns in CSV row {row_number:,} to map configured ID and data columns "
            f"(found {column_count}, need {required_columns})."
        )
        self.row_number = row_number
        self.column_count = column_count
        self.required_columns = required_columns


class ValueParseError(LimitsLoaderError):
    """Describes a data cell that is not a double-precision number."""

    def __init__(self, *, row_number: int, column_index: int, suffix: str, value: str) -> None:
        super().__init__(
            f"Failed to parse CSV row {row_number:,}, column {column_index:,} [{suffix}] "
            f'value of "{value}" as a double-precision floating-point number'
        )
        self.row_number = row_number
        self.column_index = column_index
        self.suffix = suffix
        self.value = value
