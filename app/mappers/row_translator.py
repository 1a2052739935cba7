"""
app/mappers/row_translator.py

Turns one raw CSV row into a base point tag plus one slot per data column.
"""

from __future__ import annotations

from collections.abc import Sequence

from app.domain.errors import RowWidthError
from app.domain.limits import DataSlot, EngineConfig, RowTranslation


class RowTranslator:
    """
    Maps raw row columns onto the configured ID and data column indexes.

    Sequence indexes are positional: data column ``i`` of row ``r`` (both
    counted from the first data row) always gets ``(r - 1) * n + i + 1`` where
    ``n`` is the number of data columns. Reordering rows in the file therefore
    reassigns sequence indexes.
    """

    def __init__(self, config: EngineConfig) -> None:
        self._config = config

    def translate(self, columns: Sequence[str], row_number: int) -> RowTranslation:
        config = self._config
        if len(columns) < config.min_row_width:
            raise RowWidthError(
                row_number=row_number,
                column_count=len(columns),
                required_columns=config.min_row_width,
            )

        # Raw text on purpose; normalization happens in the reconciler.
        base_tag = ".".join(columns[index] for index in config.id_columns)
        row_offset = (row_number - 1) * len(config.data_columns)

        slots = tuple(
            DataSlot(
                suffix=suffix,
                raw_value=columns[column_index],
                column_index=column_index,
                sequence_index=row_offset + position + 1,
            )
            for position, (column_index, suffix) in enumerate(
                zip(config.data_columns, config.data_suffixes)
            )
        )
        return RowTranslation(base_tag=base_tag, slots=slots)

    @staticmethod
    def split_line(line: str) -> list[str]:
        """Comma split only; quoting and escaping are not interpreted."""
        return line.split(",")
