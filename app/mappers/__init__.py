"""
app/mappers package marker.
"""

from app.mappers.column_mapper import (
    MAX_COLUMN_INDEX,
    build_engine_config,
    engine_config_from_settings,
    parse_column_indexes,
    parse_suffixes,
)
from app.mappers.row_translator import RowTranslator

__all__ = [
    "MAX_COLUMN_INDEX",
    "RowTranslator",
    "build_engine_config",
    "engine_config_from_settings",
    "parse_column_indexes",
    "parse_suffixes",
]
