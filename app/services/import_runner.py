"""
app/services/import_runner.py

Single-flight execution of one CSV limits import.

A run reads the whole file, reconciles every non-empty data cell against the
catalog and delivers the resulting samples to the host in one batch. Rows that
are too narrow and cells that do not parse are reported and skipped; anything
else aborts the run. Triggers that arrive while a run is active are dropped.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy.orm import Session, sessionmaker

from app.domain.errors import RowWidthError, SourceNotFoundError
from app.domain.limits import (
    EngineConfig,
    ImportRunResult,
    ImportRunStats,
    ParentGroupInfo,
    ParsedSample,
    RunState,
)
from app.logging_utils import log_event
from app.mappers.row_translator import RowTranslator
from app.services.catalog_reconciler import CatalogReconciler
from app.services.file_access import delete_file, wait_for_read_lock
from app.services.import_log import ImportLog
from app.services.loader_host import LoaderHost
from app.services.value_emitter import ValueEmitter
from db.models.signal_type import SignalTypeInfo
from db.repositories.catalog_repository import CatalogRepository
from db.session import session_scope

logger = logging.getLogger(__name__)

IMPORT_CONTEXT = "CSV Import"
DELETE_CONTEXT = "Post Import CSV Delete"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _RunTally:
    rows_processed: int = 0
    rows_skipped: int = 0
    cells_failed: int = 0
    new_records: int = 0


class ImportRunner:
    def __init__(
        self,
        *,
        csv_file_path: str | Path,
        config: EngineConfig,
        group: ParentGroupInfo,
        signal_type: SignalTypeInfo,
        host: LoaderHost,
        session_factory: sessionmaker[Session] | None = None,
        stats: ImportRunStats | None = None,
        import_log: ImportLog | None = None,
        read_lock_timeout: float = 5.0,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.csv_file_path = Path(csv_file_path)
        self.config = config
        self.stats = stats or ImportRunStats()
        self._group = group
        self._signal_type = signal_type
        self._host = host
        self._session_factory = session_factory
        self._import_log = import_log
        self._read_lock_timeout = read_lock_timeout
        self._clock = clock

        self._translator = RowTranslator(config)
        self._emitter = ValueEmitter(
            import_nan_values=config.import_nan_values,
            stats=self.stats,
            clock=clock,
        )

        self._run_lock = threading.Lock()
        self._state = RunState.IDLE
        self._last_result: ImportRunResult | None = None
        self._disposed = False

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @property
    def last_result(self) -> ImportRunResult | None:
        return self._last_result

    def dispose(self) -> None:
        """Refuse further triggers; a run already in progress completes."""
        self._disposed = True

    def try_run(self) -> ImportRunResult | None:
        """
        Run one import unless another is in flight.

        Returns None when the trigger was dropped, otherwise the run summary.
        Never raises for import failures; they are counted and reported.
        """

        if self._disposed:
            return None

        if not self._run_lock.acquire(blocking=False):
            log_event(logger, logging.INFO, "limits_import_dropped", path=str(self.csv_file_path))
            return None

        try:
            self._state = RunState.RUNNING
            result = self._run()
            self._state = result.state
            self._last_result = result
            return result
        finally:
            self._state = RunState.IDLE
            self._run_lock.release()

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def _run(self) -> ImportRunResult:
        samples: list[ParsedSample] = []
        tally = _RunTally()
        state = RunState.FAILED
        error_message: str | None = None

        log_event(logger, logging.INFO, "limits_import_started", path=str(self.csv_file_path))

        try:
            self._import_file(samples, tally)

            snapshot = self.stats.record_import_success(samples=len(samples), at=self._clock())
            state = RunState.SUCCEEDED
            self._write_log(
                f"Successful CSV Import of {len(samples):,} Measurements. "
                f"Totals: {snapshot.total_successful_imports:,} successful, "
                f"{snapshot.total_failed_imports:,} failed."
            )
            self._notify(
                self._host.status_message,
                logging.INFO,
                f'Successfully imported {len(samples):,} measurements from "{self.csv_file_path}".',
            )
        except Exception as exc:  # noqa: BLE001
            snapshot = self.stats.record_import_failure(at=self._clock())
            error_message = str(exc)
            self._write_log(
                f"ERROR: Failed CSV Import. Totals: {snapshot.total_successful_imports:,} successful, "
                f"{snapshot.total_failed_imports:,} failed.\n    >> {exc}"
            )
            self._notify(self._host.process_exception, exc, IMPORT_CONTEXT)
        finally:
            if samples:
                self._notify(self._host.new_samples, tuple(samples))
            if tally.new_records > 0:
                self._notify(self._host.configuration_changed)

        log_event(
            logger,
            logging.INFO if state is RunState.SUCCEEDED else logging.WARNING,
            "limits_import_finished",
            state=state.value,
            samples=len(samples),
            rows_processed=tally.rows_processed,
            rows_skipped=tally.rows_skipped,
            cells_failed=tally.cells_failed,
            new_records=tally.new_records,
            error=error_message,
        )

        deleted = self._delete_source() if self.config.delete_after_import else None

        return ImportRunResult(
            state=state,
            samples=tuple(samples),
            rows_processed=tally.rows_processed,
            rows_skipped=tally.rows_skipped,
            cells_failed=tally.cells_failed,
            new_records=tally.new_records,
            error_message=error_message,
            deleted=deleted,
        )

    def _import_file(self, samples: list[ParsedSample], tally: _RunTally) -> None:
        if not self.csv_file_path.is_file():
            raise SourceNotFoundError(str(self.csv_file_path))

        wait_for_read_lock(self.csv_file_path, self._read_lock_timeout)

        with session_scope(self._session_factory) as session:
            reconciler = CatalogReconciler(
                CatalogRepository(session),
                group=self._group,
                signal_type=self._signal_type,
                adder=self.config.value_adder,
                multiplier=self.config.value_multiplier,
            )

            with self.csv_file_path.open("r", encoding="utf-8-sig", errors="replace") as reader:
                for _ in range(self.config.header_rows):
                    reader.readline()

                row_number = 1
                for raw_line in reader:
                    line = raw_line.rstrip("\r\n")
                    if not line:
                        break
                    self._import_row(session, reconciler, line, row_number, samples, tally)
                    row_number += 1

    def _import_row(
        self,
        session: Session,
        reconciler: CatalogReconciler,
        line: str,
        row_number: int,
        samples: list[ParsedSample],
        tally: _RunTally,
    ) -> None:
        try:
            translation = self._translator.translate(RowTranslator.split_line(line), row_number)
        except RowWidthError as exc:
            tally.rows_skipped += 1
            self._notify(self._host.status_message, logging.ERROR, str(exc))
            return

        created = 0
        row_samples: list[ParsedSample] = []
        for slot in translation.slots:
            if ValueEmitter.is_empty(slot.raw_value):
                continue

            identity, is_new = reconciler.resolve(translation.point_name(slot), slot.sequence_index)
            if is_new:
                created += 1

            result = self._emitter.emit(
                slot.raw_value,
                identity=identity,
                row_number=row_number,
                column_index=slot.column_index,
                suffix=slot.suffix,
            )
            if result.error is not None:
                tally.cells_failed += 1
                self._notify(self._host.status_message, logging.ERROR, str(result.error))
            elif result.sample is not None:
                row_samples.append(result.sample)

        session.commit()
        samples.extend(row_samples)
        tally.rows_processed += 1
        if created:
            tally.new_records += created
            self.stats.record_new_records(created)

    # ------------------------------------------------------------------
    # Post-import delete
    # ------------------------------------------------------------------

    def _delete_source(self) -> bool:
        try:
            delete_file(self.csv_file_path)
        except OSError as exc:
            snapshot = self.stats.record_delete_failure(at=self._clock())
            self._write_log(
                f"ERROR: Failed Post Import CSV Delete. Totals: {snapshot.total_successful_deletes:,} successful, "
                f"{snapshot.total_failed_deletes:,} failed.\n    >> {exc}"
            )
            self._notify(self._host.process_exception, exc, DELETE_CONTEXT)
            return False

        snapshot = self.stats.record_delete_success(at=self._clock())
        self._write_log(
            f"Successful Post Import CSV Delete. Totals: {snapshot.total_successful_deletes:,} successful, "
            f"{snapshot.total_failed_deletes:,} failed."
        )
        self._notify(self._host.status_message, logging.INFO, f'Successfully deleted "{self.csv_file_path}".')
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _write_log(self, message: str) -> None:
        if self._import_log is not None:
            self._import_log.write(message)

    def _notify(self, callback: Callable[..., None], *args: object) -> None:
        """Invoke a host callback; host failures never reach the scheduler thread."""
        try:
            callback(*args)
        except Exception:  # noqa: BLE001
            logger.exception("Loader host callback %s failed", getattr(callback, "__name__", callback))
