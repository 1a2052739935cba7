"""
app/services/file_access.py

File system helpers used by the import run: readable-wait, directory
preparation and post-import deletion.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from app.domain.errors import LockTimeoutError, SourceNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 0.1


def wait_for_read_lock(
    path: str | Path,
    timeout_seconds: float,
    *,
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
) -> None:
    """
    Block until ``path`` can be opened for reading or the timeout elapses.

    Raises SourceNotFoundError if the file disappears while waiting and
    LockTimeoutError when it stays unreadable past ``timeout_seconds``.
    """

    file_path = Path(path)
    deadline = time.monotonic() + max(0.0, timeout_seconds)

    while True:
        try:
            with file_path.open("rb") as handle:
                handle.read(0)
            return
        except FileNotFoundError as exc:
            raise SourceNotFoundError(str(file_path)) from exc
        except OSError as exc:
            if time.monotonic() >= deadline:
                raise LockTimeoutError(str(file_path), timeout_seconds) from exc
            logger.debug("Waiting for read lock on %s: %s", file_path, exc)
            time.sleep(poll_interval)


def ensure_directory(path: str | Path, *, create: bool) -> bool:
    """
    Return True when ``path`` exists (creating it first when ``create`` is set).
    """

    directory = Path(path)
    if directory.is_dir():
        return True
    if not create:
        return False
    directory.mkdir(parents=True, exist_ok=True)
    return True


def delete_file(path: str | Path) -> None:
    """Delete ``path``; missing files and permission problems raise OSError."""
    Path(path).unlink()
