"""
app/services/import_log.py

Append-only, size-bounded activity log with one timestamped line per event.

The file is written through a dedicated, non-propagating logger so that
import activity never leaks into the application log and vice versa.
"""

from __future__ import annotations

import logging
import os
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path

MIN_FILE_SIZE_MB = 1
MAX_FILE_SIZE_MB = 10
ROLLOVER_BACKUP_COUNT = 5
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

FULL_OPERATION_TRUNCATE = "truncate"
FULL_OPERATION_ROLLOVER = "rollover"


class TruncatingFileHandler(RotatingFileHandler):
    """
    Rotating handler that empties the file instead of archiving it.
    """

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]
        with open(self.baseFilename, "w", encoding=self.encoding):
            pass
        if not self.delay:
            self.stream = self._open()


def clamp_file_size(size_mb: int) -> int:
    return max(MIN_FILE_SIZE_MB, min(MAX_FILE_SIZE_MB, size_mb))


def resolve_log_path(template: str, *, name: str, default_directory: str | Path) -> Path:
    """
    Substitute ``{name}`` in the template; bare file names are placed in
    ``default_directory`` (the CSV file's directory).
    """

    log_path = Path(template.replace("{name}", name))
    if log_path.parent == Path("."):
        log_path = Path(default_directory) / log_path
    return log_path.absolute()


class ImportLog:
    def __init__(
        self,
        *,
        file_path: str | Path,
        max_size_mb: int = 3,
        full_operation: str = FULL_OPERATION_TRUNCATE,
        logger_name: str = "limits_loader.import_log",
    ) -> None:
        self.file_path = Path(file_path)
        self.max_size_mb = clamp_file_size(max_size_mb)
        self.full_operation = full_operation
        self._logger = logging.getLogger(logger_name)
        self._logger.propagate = False
        self._logger.setLevel(logging.INFO)
        self._handler: RotatingFileHandler | None = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._handler is not None

    def open(self) -> None:
        with self._lock:
            if self._handler is not None:
                return

            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            max_bytes = self.max_size_mb * 1024 * 1024
            if self.full_operation == FULL_OPERATION_ROLLOVER:
                handler: RotatingFileHandler = RotatingFileHandler(
                    self.file_path,
                    maxBytes=max_bytes,
                    backupCount=ROLLOVER_BACKUP_COUNT,
                    encoding="utf-8",
                )
            else:
                handler = TruncatingFileHandler(self.file_path, maxBytes=max_bytes, encoding="utf-8")
            handler.setFormatter(logging.Formatter("%(asctime)s %(message)s", datefmt=TIMESTAMP_FORMAT))

            for existing in self._logger.handlers[:]:
                self._logger.removeHandler(existing)
                existing.close()
            self._logger.addHandler(handler)
            self._handler = handler

    def write(self, message: str) -> None:
        """Append one timestamped line; a no-op while the log is closed."""
        if self._handler is None:
            return
        self._logger.info(message)

    def flush(self) -> None:
        handler = self._handler
        if handler is not None:
            handler.flush()

    def close(self) -> None:
        with self._lock:
            handler = self._handler
            if handler is None:
                return
            self._handler = None
            self._logger.removeHandler(handler)
            handler.close()

    @property
    def status(self) -> str:
        size = self.file_path.stat().st_size if self.file_path.exists() else 0
        rows = [
            ("Log file name", os.fspath(self.file_path)),
            ("Log file open", str(self.is_open)),
            ("Current file size", f"{size / 1024:,.1f} KB"),
            ("Max file size", f"{self.max_size_mb:,} MB"),
            ("Full operation", self.full_operation.capitalize()),
        ]
        lines = [f"{label:>20}: {value}" for label, value in rows]
        return "\n".join(lines) + "\n"
