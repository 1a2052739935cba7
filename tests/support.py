"""
tests/support.py

Test doubles and helpers shared across test modules.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

HEADER = "Substation,Device,c2,c3,c4,c5,c6,c7,c8,c9,HighAlert,HighWarning,LowWarning,LowAlert"


class RecordingHost:
    """Loader host double that records every callback."""

    def __init__(self) -> None:
        self.messages: list[tuple[int, str]] = []
        self.exceptions: list[tuple[BaseException, str]] = []
        self.configuration_changes = 0
        self.batches: list[tuple] = []

    def status_message(self, level: int, message: str) -> None:
        self.messages.append((level, message))

    def process_exception(self, exc: BaseException, context: str) -> None:
        self.exceptions.append((exc, context))

    def configuration_changed(self) -> None:
        self.configuration_changes += 1

    def new_samples(self, samples) -> None:
        self.batches.append(tuple(samples))

    def message_texts(self) -> list[str]:
        return [message for _, message in self.messages]


def fixed_clock() -> datetime:
    return FIXED_NOW


def write_csv(path: Path, *rows: str, header: str | None = HEADER) -> Path:
    lines = ([header] if header is not None else []) + list(rows)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
