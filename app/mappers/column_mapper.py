"""
app/mappers/column_mapper.py

Translates the comma separated column settings into an EngineConfig.

Index tokens are parsed tolerantly: blanks and tokens that are not
non-negative 16-bit integers are dropped rather than rejected, so a stray
comma or label in the setting never changes which columns are imported.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from app.domain.errors import ConfigurationError
from app.domain.limits import EngineConfig

if TYPE_CHECKING:
    from app.config import LoaderSettings

MAX_COLUMN_INDEX = 65535

_INDEX_TOKEN = re.compile(r"^\+?\d+$")


def _split_tokens(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


def parse_column_indexes(raw: str | None) -> tuple[int, ...]:
    """
    Parse ``"0, 1,,x,3"`` into ``(0, 1, 3)``.
    """

    indexes: list[int] = []
    for token in _split_tokens(raw):
        if not _INDEX_TOKEN.match(token):
            continue
        index = int(token)
        if index > MAX_COLUMN_INDEX:
            continue
        indexes.append(index)
    return tuple(indexes)


def parse_suffixes(raw: str | None) -> tuple[str, ...]:
    return tuple(_split_tokens(raw))


def build_engine_config(
    *,
    id_columns: str,
    data_columns: str,
    data_suffixes: str,
    header_rows: int = 1,
    import_nan_values: bool = False,
    delete_after_import: bool = False,
    value_adder: float = 0.0,
    value_multiplier: float = 1_000_000.0,
) -> EngineConfig:
    """
    Validate the parsed column lists and freeze them into an EngineConfig.

    Raises ConfigurationError when any list is empty after parsing or when
    the data columns and suffixes differ in length.
    """

    parsed_ids = parse_column_indexes(id_columns)
    parsed_data = parse_column_indexes(data_columns)
    parsed_suffixes = parse_suffixes(data_suffixes)

    if not parsed_ids:
        raise ConfigurationError("No ID columns were configured")
    if not parsed_data:
        raise ConfigurationError("No data columns were configured")
    if not parsed_suffixes:
        raise ConfigurationError("No data suffixes were configured")
    if len(parsed_data) != len(parsed_suffixes):
        raise ConfigurationError(
            "Configured data columns and data suffixes must be the same length "
            f"({len(parsed_data)} columns, {len(parsed_suffixes)} suffixes)"
        )

    return EngineConfig(
        id_columns=parsed_ids,
        data_columns=parsed_data,
        data_suffixes=parsed_suffixes,
        header_rows=max(0, header_rows),
        import_nan_values=import_nan_values,
        delete_after_import=delete_after_import,
        value_adder=value_adder,
        value_multiplier=value_multiplier,
    )


def engine_config_from_settings(settings: LoaderSettings) -> EngineConfig:
    return build_engine_config(
        id_columns=settings.id_columns,
        data_columns=settings.data_columns,
        data_suffixes=settings.data_suffixes,
        header_rows=settings.header_rows,
        import_nan_values=settings.import_nan_values,
        delete_after_import=settings.delete_csv_after_import,
        value_adder=settings.measurement_adder,
        value_multiplier=settings.measurement_multiplier,
    )
