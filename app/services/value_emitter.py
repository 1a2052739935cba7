"""
app/services/value_emitter.py

Converts one data cell into a timestamped sample under the NaN policy.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import datetime, timezone

from app.domain.errors import ValueParseError
from app.domain.limits import CatalogIdentity, EmitResult, ImportRunStats, ParsedSample, SkipReason


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_limit_value(text: str) -> float | None:
    """
    Parse a double-precision value, returning None when the text is not numeric.

    Accepts the usual float spellings including ``NaN`` and ``Infinity``;
    digit group underscores are rejected.
    """

    if "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


class ValueEmitter:
    """
    Applies the empty / NaN / parse-failure rules for a single cell.

    Adder and multiplier are catalog point attributes and are applied by the
    sample consumer, never here.
    """

    def __init__(
        self,
        *,
        import_nan_values: bool,
        stats: ImportRunStats,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._import_nan_values = import_nan_values
        self._stats = stats
        self._clock = clock

    @staticmethod
    def is_empty(raw_value: str) -> bool:
        return len(raw_value.strip()) == 0

    def emit(
        self,
        raw_value: str,
        *,
        identity: CatalogIdentity,
        row_number: int,
        column_index: int,
        suffix: str,
    ) -> EmitResult:
        value_text = raw_value.strip()
        if not value_text:
            return EmitResult(skipped=SkipReason.EMPTY)

        value = parse_limit_value(value_text)
        if value is None:
            return EmitResult(
                skipped=SkipReason.PARSE_ERROR,
                error=ValueParseError(
                    row_number=row_number,
                    column_index=column_index,
                    suffix=suffix,
                    value=value_text,
                ),
            )

        if math.isnan(value):
            self._stats.record_nan()
            if not self._import_nan_values:
                return EmitResult(skipped=SkipReason.NAN)

        return EmitResult(
            sample=ParsedSample(
                signal_id=identity.signal_id,
                point_tag=identity.point_tag,
                timestamp=self._clock(),
                value=value,
            )
        )
