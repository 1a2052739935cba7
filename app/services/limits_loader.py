"""
app/services/limits_loader.py

Host-facing lifecycle of one CSV limits loader instance.

``initialize()`` validates settings and resolves everything a run needs
(engine config, parent group, signal type, activity log), ``start()`` /
``stop()`` toggle the schedule and ``dispose()`` tears the instance down.
Each instance owns exactly one source file and one parent group.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from apscheduler.schedulers.base import BaseScheduler
from sqlalchemy.orm import Session, sessionmaker

from app.config import LoaderSettings
from app.domain.errors import ConfigurationError
from app.domain.limits import EngineConfig, ImportRunResult, ImportRunStats, ParentGroupInfo
from app.logging_utils import log_event
from app.mappers.column_mapper import engine_config_from_settings
from app.scheduler.jobs import ImportScheduler
from app.services.catalog_reconciler import normalize_point_tag
from app.services.file_access import ensure_directory
from app.services.import_log import ImportLog, clamp_file_size, resolve_log_path
from app.services.import_runner import ImportRunner
from app.services.loader_host import LoaderHost, LoggingLoaderHost
from db.models.signal_type import KNOWN_SIGNAL_TYPES, SignalTypeInfo
from db.repositories.catalog_repository import CatalogRepository
from db.session import session_scope

logger = logging.getLogger(__name__)

PARENT_GROUP_REFERENCE_TEMPLATE = "CSVLimitsLoader.FileReader!{instance_id}"
STATUS_LABEL_WIDTH = 26


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_timestamp(value: datetime | None) -> str:
    if value is None:
        return "Never"
    return value.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


def _format_elapsed(elapsed: timedelta) -> str:
    return str(timedelta(seconds=int(elapsed.total_seconds())))


def build_group_reference(instance_id: str) -> str:
    return PARENT_GROUP_REFERENCE_TEMPLATE.format(instance_id=instance_id)


def build_group_acronym(template: str, name: str) -> str:
    """
    Format the parent group template with the loader name and clean the result
    with the same rules used for point tags.
    """

    try:
        formatted = template.format(name=name)
    except (KeyError, IndexError, ValueError) as exc:
        raise ConfigurationError(f"Invalid parent group template {template!r}: {exc}") from exc
    return normalize_point_tag(formatted)


class LimitsLoader:
    def __init__(
        self,
        settings: LoaderSettings,
        *,
        session_factory: sessionmaker[Session] | None = None,
        host: LoaderHost | None = None,
        scheduler: BaseScheduler | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.settings = settings
        self.host: LoaderHost = host or LoggingLoaderHost()
        self.stats = ImportRunStats(started_at=clock())
        self._session_factory = session_factory
        self._scheduler_backend = scheduler
        self._clock = clock

        self.config: EngineConfig | None = None
        self.csv_file_path: Path | None = None
        self.import_delay: float = settings.import_delay
        self.import_log_file_path: Path | None = None
        self.import_log_file_size: int = settings.import_log_file_size
        self.group: ParentGroupInfo | None = None
        self.signal_type: SignalTypeInfo | None = None
        self.import_log: ImportLog | None = None
        self.runner: ImportRunner | None = None
        self.schedule: ImportScheduler | None = None

        self._initialized = False
        self._disposed = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_running(self) -> bool:
        return self.schedule is not None and self.schedule.is_active

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """
        Validate settings and resolve the catalog context for imports.

        Raises ConfigurationError for malformed settings and PointGroupResolutionError
        when the parent group cannot be resolved.
        """

        settings = self.settings
        config = engine_config_from_settings(settings)

        import_delay, delay_warning = ImportScheduler.clamp_import_delay(settings.import_delay)
        if delay_warning:
            self.host.status_message(logging.WARNING, delay_warning)

        csv_file_path = Path(settings.csv_file_path).expanduser().absolute()
        csv_directory = csv_file_path.parent
        if not ensure_directory(csv_directory, create=settings.auto_create_csv_path):
            self.host.status_message(
                logging.WARNING,
                f'Configured directory of the CSV file path "{csv_directory}" does not exist. '
                "Scheduled imports may fail.",
            )

        group, signal_type = self._resolve_catalog_context()

        self.import_log_file_path = resolve_log_path(
            settings.import_log_file_path,
            name=settings.name,
            default_directory=csv_directory,
        )
        self.import_log_file_size = self._clamp_log_file_size(settings.import_log_file_size)
        import_log = None
        if settings.enable_import_log:
            import_log = ImportLog(
                file_path=self.import_log_file_path,
                max_size_mb=self.import_log_file_size,
                full_operation=settings.import_log_full_operation,
                logger_name=f"limits_loader.import_log.{settings.name}",
            )

        runner = ImportRunner(
            csv_file_path=csv_file_path,
            config=config,
            group=group,
            signal_type=signal_type,
            host=self.host,
            session_factory=self._session_factory,
            stats=self.stats,
            import_log=import_log,
            read_lock_timeout=settings.read_lock_timeout,
            clock=self._clock,
        )
        schedule = ImportScheduler(
            schedule=settings.import_schedule,
            delay_seconds=import_delay,
            trigger=runner.try_run,
            scheduler=self._scheduler_backend,
        )

        self.config = config
        self.import_delay = import_delay
        self.csv_file_path = csv_file_path
        self.group = group
        self.signal_type = signal_type
        self.import_log = import_log
        self.runner = runner
        self.schedule = schedule
        self._initialized = True

        if import_log is not None:
            import_log.open()
            import_log.write(f'Starting import operations for {settings.name}: "{csv_file_path}"')

        log_event(
            logger,
            logging.INFO,
            "limits_loader_initialized",
            name=settings.name,
            path=str(csv_file_path),
            group=group.acronym,
            signal_type=signal_type.acronym,
        )

    def start(self) -> None:
        self._require_initialized().start()

    def stop(self) -> None:
        if self.schedule is not None:
            self.schedule.stop()

    def dispose(self) -> None:
        """Stop scheduling and close the activity log; a running import completes."""
        if self._disposed:
            return
        self._disposed = True

        if self.runner is not None:
            self.runner.dispose()
        if self.schedule is not None:
            self.schedule.shutdown(wait=False)
        if self.import_log is not None:
            self.import_log.write(f"Stopping import operations for {self.settings.name}")
            self.import_log.close()

        log_event(logger, logging.INFO, "limits_loader_disposed", name=self.settings.name)

    def queue_import(self) -> str:
        """Queue an immediate import on the scheduler; returns the job id."""
        return self._require_initialized().fire_now()

    def run_import(self) -> ImportRunResult | None:
        """Run an import on the calling thread; None when one is already running."""
        self._require_initialized()
        if self.runner is None:
            raise RuntimeError("Limits loader has no import runner")
        return self.runner.try_run()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def status(self) -> str:
        settings = self.settings
        snapshot = self.stats.snapshot()
        uptime = _format_elapsed(self._clock() - snapshot.started_at)
        signal_type = self.signal_type.acronym if self.signal_type else settings.signal_type

        rows: list[tuple[str, str]] = [
            ("CSV File Path", str(self.csv_file_path or settings.csv_file_path)),
            ("Auto-Create CSV Path", str(settings.auto_create_csv_path)),
            ("Import Logging", "Enabled" if settings.enable_import_log else "Disabled"),
            ("Import Log File Path", str(self.import_log_file_path or settings.import_log_file_path)),
            ("Max Import Log Size", f"{self.import_log_file_size:,} MB"),
            ("Import Log Full Operation", settings.import_log_full_operation.capitalize()),
            ("Configured CRON Schedule", settings.import_schedule),
            ("Top-of-Minute Import Delay", f"{self.import_delay:,.3f} seconds"),
            ("CSV ID Columns", settings.id_columns),
            ("CSV Data Columns", settings.data_columns),
            ("Point Tag Data Suffixes", settings.data_suffixes),
            ("Import NaN Values", str(settings.import_nan_values)),
            ("Total Read NaN Values", f"{snapshot.total_nan_values:,}"),
            ("Delete CSV After Import", str(settings.delete_csv_after_import)),
            ("Read Lock Timeout", f"{settings.read_lock_timeout:,.3f} seconds"),
            ("Header Rows to Skip", f"{settings.header_rows:,}"),
            ("Group Acronym Template", settings.parent_group_template),
            ("Measurement Adder", f"{settings.measurement_adder:,.3f}"),
            ("Measurement Multiplier", f"{settings.measurement_multiplier:,.3f}"),
            ("Measurement Signal Type", signal_type),
            ("New Measurement Records", f"{snapshot.records_created:,} added over {uptime}"),
            ("Total Successful Imports", f"{snapshot.total_successful_imports:,}"),
            ("Last Successful Import", _format_timestamp(snapshot.last_successful_import)),
            ("Total Failed Imports", f"{snapshot.total_failed_imports:,}"),
            ("Last Failed Import", _format_timestamp(snapshot.last_failed_import)),
        ]
        if settings.delete_csv_after_import:
            rows.extend(
                [
                    ("Total Successful Deletes", f"{snapshot.total_successful_deletes:,}"),
                    ("Last Successful Delete", _format_timestamp(snapshot.last_successful_delete)),
                    ("Total Failed Deletes", f"{snapshot.total_failed_deletes:,}"),
                    ("Last Failed Delete", _format_timestamp(snapshot.last_failed_delete)),
                ]
            )

        lines = [f"{label:>{STATUS_LABEL_WIDTH}}: {value}" for label, value in rows]
        lines.extend(["", "    -- Active Schedule Status --", ""])
        lines.append((self.schedule.status if self.schedule else "     >> Schedule not enabled\n").rstrip("\n"))

        if self.import_log is not None:
            lines.extend(["", "       -- Import Log Status --", ""])
            lines.append(self.import_log.status.rstrip("\n"))

        return "\n".join(lines) + "\n"

    def short_status(self, max_length: int) -> str:
        text = f"{self.stats.snapshot().samples_imported:,} measurements imported so far..."
        return text.center(max_length)[:max_length]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_initialized(self) -> ImportScheduler:
        if not self._initialized or self.schedule is None:
            raise RuntimeError("Limits loader has not been initialized")
        if self._disposed:
            raise RuntimeError("Limits loader has been disposed")
        return self.schedule

    def _resolve_catalog_context(self) -> tuple[ParentGroupInfo, SignalTypeInfo]:
        settings = self.settings
        reference_name = build_group_reference(settings.instance_id)
        acronym = build_group_acronym(settings.parent_group_template, settings.name)

        with session_scope(self._session_factory) as session:
            repository = CatalogRepository(session)
            signal_type = repository.get_signal_type(settings.signal_type) or KNOWN_SIGNAL_TYPES.get(
                settings.signal_type
            )
            if signal_type is None:
                raise ConfigurationError(f"Unknown measurement signal type {settings.signal_type!r}")

            group = repository.resolve_group(
                reference_name=reference_name,
                acronym=acronym,
                connection_note=(
                    f'Do not edit reference "{reference_name}". '
                    f'Value used to cross-reference limits loader "{settings.name}".'
                ),
            )
            session.commit()
            group_info = ParentGroupInfo(
                group_id=group.id,
                acronym=group.acronym,
                reference_name=group.reference_name,
            )

        return group_info, signal_type

    def _clamp_log_file_size(self, size_mb: int) -> int:
        clamped = clamp_file_size(size_mb)
        if clamped > size_mb:
            self.host.status_message(
                logging.WARNING,
                f"Import log file size adjusted to {clamped} MB. "
                f"Configured value must be greater than or equal {clamped} MB.",
            )
        elif clamped < size_mb:
            self.host.status_message(
                logging.WARNING,
                f"Import log file size adjusted to {clamped} MB. "
                f"Configured value must be less than or equal {clamped} MB.",
            )
        return clamped
