"""
app/scheduler/jobs.py

APScheduler-based trigger for periodic CSV limits imports.

Schedule
--------
A cron job (standard five-field crontab syntax, UTC) fires on every due tick.
Each tick does not import directly: it adds a one-shot ``date`` job at
``now + import delay`` so that files dropped at the top of a minute have time
to finish writing. Delayed jobs are independent of one another; overlap
protection lives in the import runner, which drops triggers while a run is in
flight.

Lifecycle
----------
``start()`` / ``stop()`` add and remove the cron job (``stop()`` also cancels
delayed jobs that have not fired yet). ``shutdown()`` stops the underlying
``BackgroundScheduler``; it is called once when the loader is disposed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.cron import CronTrigger

from app.domain.errors import ConfigurationError
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

CRON_JOB_ID = "limits_import_schedule"
DELAYED_JOB_PREFIX = "limits_import_delayed_"
MAX_IMPORT_DELAY_SECONDS = 59.999


class ImportScheduler:
    def __init__(
        self,
        *,
        schedule: str,
        delay_seconds: float,
        trigger: Callable[[], object],
        scheduler: BaseScheduler | None = None,
    ) -> None:
        try:
            self._cron_trigger = CronTrigger.from_crontab(schedule, timezone="UTC")
        except ValueError as exc:
            raise ConfigurationError(f"Invalid import schedule {schedule!r}: {exc}") from exc

        self.schedule = schedule
        self.delay_seconds, _ = self.clamp_import_delay(delay_seconds)
        self._trigger = trigger
        self._scheduler = scheduler if scheduler is not None else BackgroundScheduler(timezone="UTC")
        self._active = False

    @staticmethod
    def clamp_import_delay(delay_seconds: float) -> tuple[float, str | None]:
        """
        Clamp the settling delay into ``[0, 59.999]`` seconds.

        Returns the usable delay and a warning when the value was adjusted.
        """

        if delay_seconds >= 60:
            return (
                MAX_IMPORT_DELAY_SECONDS,
                "Import delay adjusted to 59.999 seconds. Configured value must be less than 60.",
            )
        if delay_seconds < 0:
            return 0.0, "Import delay adjusted to 0 seconds. Configured value must not be negative."
        return float(delay_seconds), None

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def next_run_time(self) -> datetime | None:
        job = self._scheduler.get_job(CRON_JOB_ID)
        return getattr(job, "next_run_time", None) if job is not None else None

    @property
    def pending_delayed_jobs(self) -> int:
        return sum(1 for job in self._scheduler.get_jobs() if job.id.startswith(DELAYED_JOB_PREFIX))

    def start(self) -> None:
        self._ensure_running()
        self._scheduler.add_job(
            self._on_schedule_due,
            trigger=self._cron_trigger,
            id=CRON_JOB_ID,
            name="CSV limits import schedule",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
            misfire_grace_time=30,
        )
        self._active = True
        log_event(logger, logging.INFO, "limits_schedule_started", schedule=self.schedule, delay=self.delay_seconds)

    def stop(self) -> None:
        """Remove the cron job and delayed jobs that have not fired yet."""
        if self._scheduler.get_job(CRON_JOB_ID) is not None:
            self._scheduler.remove_job(CRON_JOB_ID)
        for job in self._scheduler.get_jobs():
            if job.id.startswith(DELAYED_JOB_PREFIX):
                self._scheduler.remove_job(job.id)
        self._active = False
        log_event(logger, logging.INFO, "limits_schedule_stopped", schedule=self.schedule)

    def fire_now(self) -> str:
        """Queue an immediate one-shot import; returns the job id."""
        self._ensure_running()
        return self._add_one_shot(datetime.now(timezone.utc))

    def shutdown(self, *, wait: bool = False) -> None:
        self._active = False
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)

    @property
    def status(self) -> str:
        if not self._active:
            return "     >> Schedule not enabled\n"

        next_run = self.next_run_time
        rows = [
            ("CRON schedule", f"{self.schedule} (UTC)"),
            ("Import delay", f"{self.delay_seconds:,.3f} seconds"),
            ("Next cron tick", f"{next_run:%Y-%m-%d %H:%M:%S} UTC" if next_run else "Unknown"),
            ("Pending imports", f"{self.pending_delayed_jobs:,}"),
        ]
        lines = [f"{label:>20}: {value}" for label, value in rows]
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_running(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()

    def _on_schedule_due(self) -> None:
        if not self._active:
            return
        run_at = datetime.now(timezone.utc) + timedelta(seconds=self.delay_seconds)
        job_id = self._add_one_shot(run_at)
        logger.debug("Scheduled delayed import %s at %s", job_id, run_at.isoformat())

    def _add_one_shot(self, run_at: datetime) -> str:
        job_id = f"{DELAYED_JOB_PREFIX}{uuid4().hex}"
        self._scheduler.add_job(
            self._trigger,
            trigger="date",
            run_date=run_at,
            id=job_id,
            name="Delayed CSV limits import",
            misfire_grace_time=None,
        )
        return job_id
