"""
app/config.py

Application-level configuration helpers.

Every loader setting is read from a ``LIMITS_LOADER_*`` environment variable
(optionally provided through `.env` / `.env.local`). Malformed numeric or
boolean values fall back to their defaults; only the CSV file path is
mandatory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.domain.errors import ConfigurationError
from db.config import load_env_files

ENV_PREFIX = "LIMITS_LOADER_"

DEFAULT_LOADER_NAME = "CSVLIMITS"
DEFAULT_INSTANCE_ID = "1"
DEFAULT_AUTO_CREATE_CSV_PATH = False
DEFAULT_IMPORT_SCHEDULE = "*/5 * * * *"
DEFAULT_IMPORT_DELAY = 30.0
DEFAULT_ID_COLUMNS = "0,1"
DEFAULT_DATA_COLUMNS = "10,11,12,13"
DEFAULT_DATA_SUFFIXES = "HighAlert,HighWarning,LowWarning,LowAlert"
DEFAULT_IMPORT_NAN_VALUES = False
DEFAULT_DELETE_CSV_AFTER_IMPORT = False
DEFAULT_READ_LOCK_TIMEOUT = 5.0
DEFAULT_HEADER_ROWS = 1
DEFAULT_PARENT_GROUP_TEMPLATE = "LIMITS!{name}"
DEFAULT_MEASUREMENT_ADDER = 0.0
DEFAULT_MEASUREMENT_MULTIPLIER = 1_000_000.0
DEFAULT_SIGNAL_TYPE = "ALOG"
DEFAULT_ENABLE_IMPORT_LOG = True
DEFAULT_IMPORT_LOG_FILE_PATH = "{name}-ImportLog.txt"
DEFAULT_IMPORT_LOG_FILE_SIZE = 3
DEFAULT_IMPORT_LOG_FULL_OPERATION = "truncate"

IMPORT_LOG_FULL_OPERATIONS = frozenset({"truncate", "rollover"})


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class LoaderSettings:
    """
    Raw loader settings, as configured.

    Column lists stay in their comma separated form here; they are parsed
    into an EngineConfig by the column mapper when the loader initializes.
    """

    csv_file_path: str
    name: str = DEFAULT_LOADER_NAME
    instance_id: str = DEFAULT_INSTANCE_ID
    auto_create_csv_path: bool = DEFAULT_AUTO_CREATE_CSV_PATH
    import_schedule: str = DEFAULT_IMPORT_SCHEDULE
    import_delay: float = DEFAULT_IMPORT_DELAY
    id_columns: str = DEFAULT_ID_COLUMNS
    data_columns: str = DEFAULT_DATA_COLUMNS
    data_suffixes: str = DEFAULT_DATA_SUFFIXES
    import_nan_values: bool = DEFAULT_IMPORT_NAN_VALUES
    delete_csv_after_import: bool = DEFAULT_DELETE_CSV_AFTER_IMPORT
    read_lock_timeout: float = DEFAULT_READ_LOCK_TIMEOUT
    header_rows: int = DEFAULT_HEADER_ROWS
    parent_group_template: str = DEFAULT_PARENT_GROUP_TEMPLATE
    measurement_adder: float = DEFAULT_MEASUREMENT_ADDER
    measurement_multiplier: float = DEFAULT_MEASUREMENT_MULTIPLIER
    signal_type: str = DEFAULT_SIGNAL_TYPE
    enable_import_log: bool = DEFAULT_ENABLE_IMPORT_LOG
    import_log_file_path: str = DEFAULT_IMPORT_LOG_FILE_PATH
    import_log_file_size: int = DEFAULT_IMPORT_LOG_FILE_SIZE
    import_log_full_operation: str = DEFAULT_IMPORT_LOG_FULL_OPERATION


def load_loader_settings(*, csv_file_path: str | None = None) -> LoaderSettings:
    """
    Build loader settings from environment variables (uncached).

    ``csv_file_path`` overrides LIMITS_LOADER_CSV_FILE_PATH when given.

    Raises ConfigurationError when the CSV file path is missing or the
    import log full operation is unknown.
    """

    csv_file_path = csv_file_path or _get_optional_str_env(f"{ENV_PREFIX}CSV_FILE_PATH")
    if csv_file_path is None:
        raise ConfigurationError(f"{ENV_PREFIX}CSV_FILE_PATH must be set to the CSV limits file path.")

    full_operation = _get_str_env(
        f"{ENV_PREFIX}IMPORT_LOG_FULL_OPERATION",
        DEFAULT_IMPORT_LOG_FULL_OPERATION,
    ).lower()
    if full_operation not in IMPORT_LOG_FULL_OPERATIONS:
        raise ConfigurationError(
            f"{ENV_PREFIX}IMPORT_LOG_FULL_OPERATION '{full_operation}' is not valid. "
            f"Allowed values: {sorted(IMPORT_LOG_FULL_OPERATIONS)}."
        )

    return LoaderSettings(
        csv_file_path=csv_file_path,
        name=_get_str_env(f"{ENV_PREFIX}NAME", DEFAULT_LOADER_NAME),
        instance_id=_get_str_env(f"{ENV_PREFIX}INSTANCE_ID", DEFAULT_INSTANCE_ID),
        auto_create_csv_path=_get_bool_env(f"{ENV_PREFIX}AUTO_CREATE_CSV_PATH", DEFAULT_AUTO_CREATE_CSV_PATH),
        import_schedule=_get_str_env(f"{ENV_PREFIX}IMPORT_SCHEDULE", DEFAULT_IMPORT_SCHEDULE),
        import_delay=_get_float_env(f"{ENV_PREFIX}IMPORT_DELAY", DEFAULT_IMPORT_DELAY),
        id_columns=_get_str_env(f"{ENV_PREFIX}ID_COLUMNS", DEFAULT_ID_COLUMNS),
        data_columns=_get_str_env(f"{ENV_PREFIX}DATA_COLUMNS", DEFAULT_DATA_COLUMNS),
        data_suffixes=_get_str_env(f"{ENV_PREFIX}DATA_SUFFIXES", DEFAULT_DATA_SUFFIXES),
        import_nan_values=_get_bool_env(f"{ENV_PREFIX}IMPORT_NAN_VALUES", DEFAULT_IMPORT_NAN_VALUES),
        delete_csv_after_import=_get_bool_env(
            f"{ENV_PREFIX}DELETE_CSV_AFTER_IMPORT",
            DEFAULT_DELETE_CSV_AFTER_IMPORT,
        ),
        read_lock_timeout=max(0.0, _get_float_env(f"{ENV_PREFIX}READ_LOCK_TIMEOUT", DEFAULT_READ_LOCK_TIMEOUT)),
        header_rows=max(0, _get_int_env(f"{ENV_PREFIX}HEADER_ROWS", DEFAULT_HEADER_ROWS)),
        parent_group_template=_get_str_env(
            f"{ENV_PREFIX}PARENT_GROUP_TEMPLATE",
            DEFAULT_PARENT_GROUP_TEMPLATE,
        ),
        measurement_adder=_get_float_env(f"{ENV_PREFIX}MEASUREMENT_ADDER", DEFAULT_MEASUREMENT_ADDER),
        measurement_multiplier=_get_float_env(
            f"{ENV_PREFIX}MEASUREMENT_MULTIPLIER",
            DEFAULT_MEASUREMENT_MULTIPLIER,
        ),
        signal_type=_get_str_env(f"{ENV_PREFIX}SIGNAL_TYPE", DEFAULT_SIGNAL_TYPE).upper(),
        enable_import_log=_get_bool_env(f"{ENV_PREFIX}ENABLE_IMPORT_LOG", DEFAULT_ENABLE_IMPORT_LOG),
        import_log_file_path=_get_str_env(f"{ENV_PREFIX}IMPORT_LOG_FILE_PATH", DEFAULT_IMPORT_LOG_FILE_PATH),
        import_log_file_size=_get_int_env(f"{ENV_PREFIX}IMPORT_LOG_FILE_SIZE", DEFAULT_IMPORT_LOG_FILE_SIZE),
        import_log_full_operation=full_operation,
    )


@lru_cache(maxsize=1)
def get_loader_settings() -> LoaderSettings:
    """
    Return cached loader settings from environment variables.
    """

    return load_loader_settings()
