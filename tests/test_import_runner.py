"""
tests/test_import_runner.py

End-to-end import runs against an in-memory SQLite catalog.

Coverage
--------
- Mixed empty / numeric / NaN row
- NaN import policy
- Narrow rows and unparseable cells are non-fatal
- Header skipping, blank-line termination and undecodable bytes
- Re-import creates no new records
- Missing source, read-lock timeout, store failure and per-row commits
- Post-import delete counters
- Overlapping triggers are dropped
- Activity log lines
"""

from __future__ import annotations

import logging
import math
import threading
from pathlib import Path

import pytest
from sqlalchemy import func, select
from unittest import mock

from app.domain.errors import LockTimeoutError, SourceNotFoundError
from app.domain.limits import ImportRunStats, RunState
from app.mappers.column_mapper import build_engine_config
from app.services.import_log import ImportLog
from app.services.import_runner import DELETE_CONTEXT, IMPORT_CONTEXT, ImportRunner
from db.models.catalog_point import CatalogPoint
from db.models.signal_type import KNOWN_SIGNAL_TYPES
from db.repositories.catalog_repository import CatalogRepository
from db.repositories.errors import CatalogStoreError
from tests.support import RecordingHost, fixed_clock, write_csv

MIXED_ROW = "A,B,,,,,,,,,10,NaN,-20,"
FULL_ROW = "C,D,,,,,,,,,1,2,3,4"


@pytest.fixture()
def csv_path(tmp_path: Path) -> Path:
    return tmp_path / "limits.csv"


@pytest.fixture()
def make_runner(session_factory, parent_group, host, csv_path):
    def _make(**overrides) -> ImportRunner:
        import_log = overrides.pop("import_log", None)
        stats = overrides.pop("stats", None)
        config = build_engine_config(
            id_columns="0,1",
            data_columns="10,11,12,13",
            data_suffixes="HighAlert,HighWarning,LowWarning,LowAlert",
            **overrides,
        )
        return ImportRunner(
            csv_file_path=csv_path,
            config=config,
            group=parent_group,
            signal_type=KNOWN_SIGNAL_TYPES["ALOG"],
            host=host,
            session_factory=session_factory,
            stats=stats,
            import_log=import_log,
            read_lock_timeout=0.5,
            clock=fixed_clock,
        )

    return _make


def _points(session_factory) -> dict[str, CatalogPoint]:
    with session_factory() as session:
        return {point.point_tag: point for point in session.execute(select(CatalogPoint)).scalars()}


class TestSuccessfulImport:
    def test_mixed_row_creates_three_points_and_emits_two_samples(
        self, make_runner, csv_path, session_factory, host: RecordingHost
    ) -> None:
        write_csv(csv_path, MIXED_ROW)
        runner = make_runner()

        result = runner.try_run()

        assert result is not None
        assert result.state is RunState.SUCCEEDED
        assert [sample.value for sample in result.samples] == [10.0, -20.0]
        assert result.new_records == 3

        points = _points(session_factory)
        assert set(points) == {"A.B.HIGHALERT", "A.B.HIGHWARNING", "A.B.LOWWARNING"}
        assert points["A.B.LOWWARNING"].sequence_index == 3
        assert points["A.B.LOWWARNING"].signal_reference == "LIMITS!CSVLIMITS-AV3"

        snapshot = runner.stats.snapshot()
        assert snapshot.total_nan_values == 1
        assert snapshot.records_created == 3
        assert snapshot.total_successful_imports == 1
        assert snapshot.last_successful_import is not None

        assert len(host.batches) == 1
        assert [sample.point_tag for sample in host.batches[0]] == ["A.B.HIGHALERT", "A.B.LOWWARNING"]
        assert host.configuration_changes == 1
        assert 'Successfully imported 2 measurements from "' in host.message_texts()[-1]

    def test_nan_values_emitted_when_enabled(self, make_runner, csv_path) -> None:
        write_csv(csv_path, MIXED_ROW)

        result = make_runner(import_nan_values=True).try_run()

        assert result is not None
        assert len(result.samples) == 3
        assert math.isnan(result.samples[1].value)

    def test_samples_keep_row_order(self, make_runner, csv_path) -> None:
        write_csv(csv_path, FULL_ROW, "E,F,,,,,,,,,5,6,7,8")

        result = make_runner().try_run()

        assert result is not None
        assert [sample.value for sample in result.samples] == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0]

    def test_reimport_creates_no_new_records(self, make_runner, csv_path, session_factory, host) -> None:
        write_csv(csv_path, MIXED_ROW, FULL_ROW)
        runner = make_runner()

        first = runner.try_run()
        before = {tag: point.signal_id for tag, point in _points(session_factory).items()}
        second = runner.try_run()
        after = {tag: point.signal_id for tag, point in _points(session_factory).items()}

        assert first is not None and second is not None
        assert first.new_records == 7
        assert second.new_records == 0
        assert after == before
        assert host.configuration_changes == 1
        assert runner.stats.snapshot().total_successful_imports == 2

    def test_header_rows_skipped_and_blank_line_stops(self, make_runner, csv_path) -> None:
        csv_path.write_text(
            "title\nunits\n" + FULL_ROW + "\n\nX,Y,,,,,,,,,9,9,9,9\n",
            encoding="utf-8",
        )

        result = make_runner(header_rows=2).try_run()

        assert result is not None
        assert result.rows_processed == 1
        assert {sample.point_tag.split(".")[0] for sample in result.samples} == {"C"}

    def test_utf8_bom_is_ignored(self, make_runner, csv_path, session_factory) -> None:
        csv_path.write_text(FULL_ROW + "\n", encoding="utf-8-sig")

        result = make_runner(header_rows=0).try_run()

        assert result is not None
        assert result.succeeded
        assert "C.D.HIGHALERT" in _points(session_factory)

    def test_undecodable_bytes_do_not_fail_run(self, make_runner, csv_path, session_factory) -> None:
        csv_path.write_bytes(
            (FULL_ROW + "\n").encode("utf-8")
            + "SUB\u00e9,T,,,,,,,,,5,6,7,8\n".encode("latin-1")
            + "E,F,,,,,,,,,9,10,11,12\n".encode("utf-8")
        )

        result = make_runner(header_rows=0).try_run()

        assert result is not None
        assert result.state is RunState.SUCCEEDED
        assert result.rows_processed == 3
        assert len(result.samples) == 12
        points = _points(session_factory)
        assert {"C.D.HIGHALERT", "SUB.T.HIGHALERT", "E.F.LOWALERT"} <= set(points)


class TestNonFatalRowErrors:
    def test_narrow_row_is_reported_and_skipped(self, make_runner, csv_path, session_factory, host) -> None:
        write_csv(csv_path, "A,B,1", FULL_ROW)

        result = make_runner().try_run()

        assert result is not None
        assert result.state is RunState.SUCCEEDED
        assert result.rows_skipped == 1
        assert result.rows_processed == 1
        assert len(result.samples) == 4

        points = _points(session_factory)
        assert not any(tag.startswith("A.B") for tag in points)
        assert points["C.D.HIGHALERT"].sequence_index == 5

        errors = [message for level, message in host.messages if level == logging.ERROR]
        assert any("Not enough columns in CSV row 1" in message for message in errors)

    def test_unparseable_cell_still_creates_record(self, make_runner, csv_path, session_factory, host) -> None:
        write_csv(csv_path, "A,B,,,,,,,,,abc,1,2,3")

        result = make_runner().try_run()

        assert result is not None
        assert result.succeeded
        assert result.cells_failed == 1
        assert [sample.value for sample in result.samples] == [1.0, 2.0, 3.0]
        assert "A.B.HIGHALERT" in _points(session_factory)
        assert any('value of "abc"' in message for message in host.message_texts())


class TestFailedImport:
    def test_missing_source_fails_run(self, make_runner, host) -> None:
        runner = make_runner()

        result = runner.try_run()

        assert result is not None
        assert result.state is RunState.FAILED
        assert "was not found" in (result.error_message or "")
        assert runner.stats.snapshot().total_failed_imports == 1
        assert len(host.exceptions) == 1
        exc, context = host.exceptions[0]
        assert isinstance(exc, SourceNotFoundError)
        assert context == IMPORT_CONTEXT
        assert host.batches == []

    def test_store_failure_aborts_but_keeps_committed_rows(
        self, make_runner, csv_path, session_factory, host
    ) -> None:
        write_csv(csv_path, FULL_ROW, "E,F,,,,,,,,,5,6,7,8")
        original = CatalogRepository.save_point
        calls = {"count": 0}

        def _fail_on_second_row(self, **kwargs):
            calls["count"] += 1
            if calls["count"] > 4:
                raise CatalogStoreError("catalog offline")
            return original(self, **kwargs)

        with mock.patch.object(CatalogRepository, "save_point", autospec=True, side_effect=_fail_on_second_row):
            result = make_runner().try_run()

        assert result is not None
        assert result.state is RunState.FAILED
        assert result.error_message == "catalog offline"
        assert set(_points(session_factory)) == {
            "C.D.HIGHALERT",
            "C.D.HIGHWARNING",
            "C.D.LOWWARNING",
            "C.D.LOWALERT",
        }
        # Samples gathered before the failure are still delivered once.
        assert len(host.batches) == 1 and len(host.batches[0]) == 4
        assert host.configuration_changes == 1

    def test_store_failure_mid_row_delivers_none_of_that_row(
        self, make_runner, csv_path, session_factory, host
    ) -> None:
        write_csv(csv_path, FULL_ROW)
        original = CatalogRepository.save_point
        calls = {"count": 0}

        def _fail_on_third_cell(self, **kwargs):
            calls["count"] += 1
            if calls["count"] == 3:
                raise CatalogStoreError("catalog offline")
            return original(self, **kwargs)

        with mock.patch.object(CatalogRepository, "save_point", autospec=True, side_effect=_fail_on_third_cell):
            result = make_runner().try_run()

        assert result is not None
        assert result.state is RunState.FAILED
        assert result.samples == ()
        assert _points(session_factory) == {}
        assert host.batches == []
        assert host.configuration_changes == 0

    def test_read_lock_timeout_fails_run_and_still_deletes(
        self, make_runner, csv_path, host, tmp_path: Path
    ) -> None:
        write_csv(csv_path, FULL_ROW)
        import_log = ImportLog(file_path=tmp_path / "import.log", logger_name="tests.import_runner.lock")
        import_log.open()
        runner = make_runner(delete_after_import=True, import_log=import_log)
        real_open = Path.open

        def _locked(self, *args, **kwargs):
            if self == csv_path:
                raise PermissionError("locked by another process")
            return real_open(self, *args, **kwargs)

        with mock.patch.object(Path, "open", autospec=True, side_effect=_locked):
            result = runner.try_run()
        import_log.close()

        assert result is not None
        assert result.state is RunState.FAILED
        assert result.deleted is True
        assert not csv_path.exists()

        snapshot = runner.stats.snapshot()
        assert snapshot.total_failed_imports == 1
        assert snapshot.total_successful_imports == 0
        assert snapshot.total_successful_deletes == 1

        exc, context = host.exceptions[0]
        assert isinstance(exc, LockTimeoutError)
        assert context == IMPORT_CONTEXT

        lines = (tmp_path / "import.log").read_text(encoding="utf-8").splitlines()
        assert sum("Failed CSV Import" in line for line in lines) == 1


class TestPostImportDelete:
    def test_successful_delete_is_counted(self, make_runner, csv_path, host) -> None:
        write_csv(csv_path, FULL_ROW)
        runner = make_runner(delete_after_import=True)

        result = runner.try_run()

        assert result is not None
        assert result.deleted is True
        assert not csv_path.exists()
        snapshot = runner.stats.snapshot()
        assert snapshot.total_successful_deletes == 1
        assert snapshot.total_failed_deletes == 0
        assert snapshot.total_successful_imports == 1

    def test_delete_failure_is_isolated(self, make_runner, host) -> None:
        runner = make_runner(delete_after_import=True)

        result = runner.try_run()

        assert result is not None
        assert result.state is RunState.FAILED
        assert result.deleted is False
        snapshot = runner.stats.snapshot()
        assert snapshot.total_failed_imports == 1
        assert snapshot.total_failed_deletes == 1
        assert [context for _, context in host.exceptions] == [IMPORT_CONTEXT, DELETE_CONTEXT]

    def test_delete_not_attempted_when_disabled(self, make_runner, csv_path) -> None:
        write_csv(csv_path, FULL_ROW)

        result = make_runner().try_run()

        assert result is not None
        assert result.deleted is None
        assert csv_path.exists()


class BlockingHost(RecordingHost):
    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def new_samples(self, samples) -> None:
        self.entered.set()
        self.release.wait(timeout=5)
        super().new_samples(samples)


def test_overlapping_trigger_is_dropped(session_factory, parent_group, csv_path) -> None:
    write_csv(csv_path, FULL_ROW)
    host = BlockingHost()
    runner = ImportRunner(
        csv_file_path=csv_path,
        config=build_engine_config(
            id_columns="0,1",
            data_columns="10,11,12,13",
            data_suffixes="HighAlert,HighWarning,LowWarning,LowAlert",
        ),
        group=parent_group,
        signal_type=KNOWN_SIGNAL_TYPES["ALOG"],
        host=host,
        session_factory=session_factory,
        stats=ImportRunStats(),
    )

    results = []
    worker = threading.Thread(target=lambda: results.append(runner.try_run()))
    worker.start()
    try:
        assert host.entered.wait(timeout=5)
        assert runner.is_running
        assert runner.state is RunState.RUNNING
        assert runner.try_run() is None
    finally:
        host.release.set()
        worker.join(timeout=5)

    assert len(results) == 1 and results[0] is not None
    assert runner.stats.snapshot().total_successful_imports == 1
    assert runner.state is RunState.IDLE
    assert runner.try_run() is not None


def test_disposed_runner_ignores_triggers(make_runner, csv_path) -> None:
    write_csv(csv_path, FULL_ROW)
    runner = make_runner()
    runner.dispose()

    assert runner.try_run() is None
    assert runner.stats.snapshot().total_successful_imports == 0


def test_activity_log_records_totals(make_runner, csv_path, tmp_path: Path) -> None:
    write_csv(csv_path, MIXED_ROW)
    import_log = ImportLog(file_path=tmp_path / "import.log", logger_name="tests.import_runner.log")
    import_log.open()
    runner = make_runner(import_log=import_log)

    runner.try_run()
    csv_path.unlink()
    runner.try_run()
    import_log.close()

    lines = (tmp_path / "import.log").read_text(encoding="utf-8").splitlines()
    assert lines[0].endswith("Successful CSV Import of 2 Measurements. Totals: 1 successful, 0 failed.")
    assert lines[1].endswith("ERROR: Failed CSV Import. Totals: 1 successful, 1 failed.")
    assert lines[2].startswith("    >> CSV limits file")
