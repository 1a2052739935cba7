"""
app/services/loader_host.py

Callback seam between the limits loader and whatever hosts it.

Levels passed to ``status_message`` and ``process_exception`` are standard
``logging`` levels.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol, Sequence

from app.domain.limits import ParsedSample

logger = logging.getLogger(__name__)


class LoaderHost(Protocol):
    def status_message(self, level: int, message: str) -> None: ...

    def process_exception(self, exc: BaseException, context: str) -> None: ...

    def configuration_changed(self) -> None: ...

    def new_samples(self, samples: Sequence[ParsedSample]) -> None: ...


class LoggingLoaderHost:
    """
    Default host: forwards callbacks to ``logging`` and keeps the most recent
    sample batch for inspection through the API.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger
        self._lock = threading.Lock()
        self._last_samples: tuple[ParsedSample, ...] = ()
        self._samples_delivered = 0
        self._configuration_changes = 0

    def status_message(self, level: int, message: str) -> None:
        self._logger.log(level, message)

    def process_exception(self, exc: BaseException, context: str) -> None:
        self._logger.error("%s failed: %s", context, exc, exc_info=exc)

    def configuration_changed(self) -> None:
        with self._lock:
            self._configuration_changes += 1
        self._logger.info("Catalog configuration changed; new points were created")

    def new_samples(self, samples: Sequence[ParsedSample]) -> None:
        batch = tuple(samples)
        with self._lock:
            self._last_samples = batch
            self._samples_delivered += len(batch)
        self._logger.debug("Received %d samples", len(batch))

    @property
    def last_samples(self) -> tuple[ParsedSample, ...]:
        with self._lock:
            return self._last_samples

    @property
    def samples_delivered(self) -> int:
        with self._lock:
            return self._samples_delivered

    @property
    def configuration_changes(self) -> int:
        with self._lock:
            return self._configuration_changes
