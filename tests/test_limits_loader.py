"""
tests/test_limits_loader.py

Loader lifecycle: initialization rules, status rendering and a full
initialize / import / dispose cycle with a mocked scheduler backend.
"""

from __future__ import annotations

import logging
from pathlib import Path
from unittest import mock

import pytest
from sqlalchemy import select

from app.config import LoaderSettings
from app.domain.errors import ConfigurationError
from app.domain.limits import RunState
from app.services.limits_loader import LimitsLoader, build_group_acronym, build_group_reference
from db.models.point_group import PointGroup
from tests.support import RecordingHost, fixed_clock, write_csv

FULL_ROW = "C,D,,,,,,,,,1,2,3,4"


def _backend() -> mock.MagicMock:
    backend = mock.MagicMock()
    backend.running = True
    backend.get_jobs.return_value = []
    backend.get_job.return_value = None
    return backend


@pytest.fixture()
def csv_path(tmp_path: Path) -> Path:
    return tmp_path / "incoming" / "limits.csv"


@pytest.fixture()
def make_loader(session_factory, host: RecordingHost, csv_path: Path):
    loaders: list[LimitsLoader] = []

    def _make(**overrides) -> LimitsLoader:
        values = {"csv_file_path": str(csv_path), "auto_create_csv_path": True}
        values.update(overrides)
        loader = LimitsLoader(
            LoaderSettings(**values),
            session_factory=session_factory,
            host=host,
            scheduler=_backend(),
            clock=fixed_clock,
        )
        loaders.append(loader)
        return loader

    yield _make
    for loader in loaders:
        loader.dispose()


def test_group_reference_and_acronym() -> None:
    assert build_group_reference("7") == "CSVLimitsLoader.FileReader!7"
    assert build_group_acronym("LIMITS!{name}", "site a") == "LIMITS!SITE_A"


def test_bad_group_template_raises() -> None:
    with pytest.raises(ConfigurationError):
        build_group_acronym("LIMITS!{device}", "X")


class TestInitialize:
    def test_resolves_group_and_signal_type(self, make_loader, session_factory) -> None:
        loader = make_loader()
        loader.initialize()

        assert loader.is_initialized
        assert loader.group is not None
        assert loader.group.acronym == "LIMITS!CSVLIMITS"
        assert loader.group.reference_name == "CSVLimitsLoader.FileReader!1"
        assert loader.signal_type is not None and loader.signal_type.suffix == "AV"

        with session_factory() as session:
            groups = session.execute(select(PointGroup)).scalars().all()
        assert [group.reference_name for group in groups] == ["CSVLimitsLoader.FileReader!1"]

    def test_rename_keeps_group_identity(self, make_loader, session_factory) -> None:
        first = make_loader()
        first.initialize()
        renamed = make_loader(name="PLANT2")
        renamed.initialize()

        assert renamed.group is not None and first.group is not None
        assert renamed.group.group_id == first.group.group_id
        assert renamed.group.acronym == "LIMITS!PLANT2"

    def test_auto_create_makes_csv_directory(self, make_loader, csv_path: Path) -> None:
        make_loader().initialize()
        assert csv_path.parent.is_dir()

    def test_missing_directory_only_warns(self, make_loader, host: RecordingHost, csv_path: Path) -> None:
        make_loader(auto_create_csv_path=False, enable_import_log=False).initialize()

        assert not csv_path.parent.exists()
        assert any(
            level == logging.WARNING and "does not exist" in message for level, message in host.messages
        )

    def test_import_delay_clamped_with_warning(self, make_loader, host: RecordingHost) -> None:
        loader = make_loader(import_delay=75)
        loader.initialize()

        assert loader.import_delay == 59.999
        assert any("59.999" in message for message in host.message_texts())

    def test_log_size_clamped_with_warning(self, make_loader, host: RecordingHost) -> None:
        loader = make_loader(import_log_file_size=25)
        loader.initialize()

        assert loader.import_log_file_size == 10
        assert any("less than or equal 10 MB" in message for message in host.message_texts())

    def test_unknown_signal_type_raises(self, make_loader, session_factory) -> None:
        with pytest.raises(ConfigurationError, match="XXXX"):
            make_loader(signal_type="XXXX").initialize()

        with session_factory() as session:
            assert session.execute(select(PointGroup)).scalars().first() is None

    def test_mismatched_columns_raise(self, make_loader) -> None:
        with pytest.raises(ConfigurationError):
            make_loader(data_columns="10,11").initialize()

    def test_writes_start_and_stop_log_lines(self, make_loader, csv_path: Path) -> None:
        loader = make_loader()
        loader.initialize()
        loader.dispose()

        log_path = csv_path.parent / "CSVLIMITS-ImportLog.txt"
        lines = log_path.read_text(encoding="utf-8").splitlines()
        assert lines[0].endswith(f'Starting import operations for CSVLIMITS: "{csv_path}"')
        assert lines[-1].endswith("Stopping import operations for CSVLIMITS")


class TestLifecycle:
    def test_requires_initialize(self, make_loader) -> None:
        with pytest.raises(RuntimeError):
            make_loader().start()
        with pytest.raises(RuntimeError, match="not been initialized"):
            make_loader().run_import()

    def test_run_import_end_to_end(self, make_loader, csv_path: Path, host: RecordingHost) -> None:
        loader = make_loader()
        loader.initialize()
        write_csv(csv_path, FULL_ROW)

        result = loader.run_import()

        assert result is not None
        assert result.state is RunState.SUCCEEDED
        assert len(host.batches[0]) == 4
        assert loader.stats.snapshot().samples_imported == 4

    def test_start_stop_toggle_schedule(self, make_loader) -> None:
        loader = make_loader()
        loader.initialize()

        loader.start()
        assert loader.is_running
        loader.stop()
        assert not loader.is_running

    def test_dispose_refuses_further_imports(self, make_loader, csv_path: Path) -> None:
        loader = make_loader()
        loader.initialize()
        write_csv(csv_path, FULL_ROW)
        loader.dispose()

        with pytest.raises(RuntimeError):
            loader.queue_import()
        assert loader.runner is not None and loader.runner.try_run() is None


class TestStatus:
    def test_status_block_lists_settings_and_counters(self, make_loader, csv_path: Path) -> None:
        loader = make_loader(delete_csv_after_import=True)
        loader.initialize()

        status = loader.status

        assert f"             CSV File Path: {csv_path}" in status
        assert "Top-of-Minute Import Delay: 30.000 seconds" in status
        assert "  Total Successful Imports: 0" in status
        assert "    Last Successful Import: Never" in status
        assert "  Total Successful Deletes: 0" in status
        assert "-- Active Schedule Status --" in status
        assert "Schedule not enabled" in status
        assert "-- Import Log Status --" in status

    def test_delete_counters_hidden_when_delete_disabled(self, make_loader) -> None:
        loader = make_loader()
        loader.initialize()
        assert "Successful Deletes" not in loader.status

    def test_short_status_is_centered(self, make_loader, csv_path: Path) -> None:
        loader = make_loader()
        loader.initialize()
        write_csv(csv_path, FULL_ROW)
        loader.run_import()

        text = loader.short_status(50)

        assert len(text) == 50
        assert text.strip() == "4 measurements imported so far..."
