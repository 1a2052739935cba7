"""
app/domain/limits.py

Domain models used by the CSV limits import flow.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from app.domain.errors import ValueParseError


@dataclass(frozen=True)
class EngineConfig:
    """
    Column mapping and value policy resolved once at loader initialization.
    """

    id_columns: tuple[int, ...]
    data_columns: tuple[int, ...]
    data_suffixes: tuple[str, ...]
    header_rows: int = 1
    import_nan_values: bool = False
    delete_after_import: bool = False
    value_adder: float = 0.0
    value_multiplier: float = 1_000_000.0

    @property
    def min_row_width(self) -> int:
        """Number of columns a row needs so every configured index exists."""
        return max(self.id_columns + self.data_columns) + 1


@dataclass(frozen=True)
class DataSlot:
    """
    One configured data column of one row, before value parsing.
    """

    suffix: str
    raw_value: str
    column_index: int
    sequence_index: int


@dataclass(frozen=True)
class RowTranslation:
    base_tag: str
    slots: tuple[DataSlot, ...]

    def point_name(self, slot: DataSlot) -> str:
        return f"{self.base_tag}.{slot.suffix}"


@dataclass(frozen=True)
class CatalogIdentity:
    """
    Transient reference to a catalog point returned by the reconciler.
    """

    signal_id: uuid.UUID
    point_id: int
    point_tag: str
    signal_reference: str


@dataclass(frozen=True)
class ParsedSample:
    signal_id: uuid.UUID
    point_tag: str
    timestamp: datetime
    value: float


class SkipReason(str, Enum):
    EMPTY = "empty"
    NAN = "nan"
    PARSE_ERROR = "parse_error"


@dataclass(frozen=True)
class EmitResult:
    """
    Outcome of converting one data cell: a sample, or the reason there is none.
    """

    sample: ParsedSample | None = None
    skipped: SkipReason | None = None
    error: ValueParseError | None = None


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ImportRunResult:
    """
    End-of-run import summary.
    """

    state: RunState
    samples: tuple[ParsedSample, ...] = ()
    rows_processed: int = 0
    rows_skipped: int = 0
    cells_failed: int = 0
    new_records: int = 0
    error_message: str | None = None
    deleted: bool | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.SUCCEEDED


# ---------------------------------------------------------------------------
# Run bookkeeping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportRunSnapshot:
    """
    Point-in-time copy of the import counters, safe to hand to readers.
    """

    started_at: datetime
    total_successful_imports: int = 0
    total_failed_imports: int = 0
    last_successful_import: datetime | None = None
    last_failed_import: datetime | None = None
    total_successful_deletes: int = 0
    total_failed_deletes: int = 0
    last_successful_delete: datetime | None = None
    last_failed_delete: datetime | None = None
    total_nan_values: int = 0
    records_created: int = 0
    samples_imported: int = 0


@dataclass
class ImportRunStats:
    """
    Counters written by the active import run and read by status callers.

    Every mutation and every snapshot takes the same lock, so readers never
    observe a half-updated success/failure pair.
    """

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    total_successful_imports: int = 0
    total_failed_imports: int = 0
    last_successful_import: datetime | None = None
    last_failed_import: datetime | None = None
    total_successful_deletes: int = 0
    total_failed_deletes: int = 0
    last_successful_delete: datetime | None = None
    last_failed_delete: datetime | None = None
    total_nan_values: int = 0
    records_created: int = 0
    samples_imported: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def record_nan(self) -> None:
        with self._lock:
            self.total_nan_values += 1

    def record_new_records(self, count: int) -> None:
        if count <= 0:
            return
        with self._lock:
            self.records_created += count

    def record_import_success(self, *, samples: int, at: datetime | None = None) -> ImportRunSnapshot:
        with self._lock:
            self.total_successful_imports += 1
            self.samples_imported += samples
            self.last_successful_import = at or datetime.now(timezone.utc)
            return self._snapshot_locked()

    def record_import_failure(self, *, at: datetime | None = None) -> ImportRunSnapshot:
        with self._lock:
            self.total_failed_imports += 1
            self.last_failed_import = at or datetime.now(timezone.utc)
            return self._snapshot_locked()

    def record_delete_success(self, *, at: datetime | None = None) -> ImportRunSnapshot:
        with self._lock:
            self.total_successful_deletes += 1
            self.last_successful_delete = at or datetime.now(timezone.utc)
            return self._snapshot_locked()

    def record_delete_failure(self, *, at: datetime | None = None) -> ImportRunSnapshot:
        with self._lock:
            self.total_failed_deletes += 1
            self.last_failed_delete = at or datetime.now(timezone.utc)
            return self._snapshot_locked()

    def snapshot(self) -> ImportRunSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> ImportRunSnapshot:
        return ImportRunSnapshot(
            started_at=self.started_at,
            total_successful_imports=self.total_successful_imports,
            total_failed_imports=self.total_failed_imports,
            last_successful_import=self.last_successful_import,
            last_failed_import=self.last_failed_import,
            total_successful_deletes=self.total_successful_deletes,
            total_failed_deletes=self.total_failed_deletes,
            last_successful_delete=self.last_successful_delete,
            last_failed_delete=self.last_failed_delete,
            total_nan_values=self.total_nan_values,
            records_created=self.records_created,
            samples_imported=self.samples_imported,
        )


@dataclass(frozen=True)
class ParentGroupInfo:
    """
    Detached parent group details resolved once at loader initialization.
    """

    group_id: int
    acronym: str
    reference_name: str
