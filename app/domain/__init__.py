"""
app/domain package marker.
"""

from app.domain.errors import (
    ConfigurationError,
    ImportRunError,
    LimitsLoaderError,
    LockTimeoutError,
    RowWidthError,
    SourceNotFoundError,
    ValueParseError,
)
from app.domain.limits import (
    CatalogIdentity,
    DataSlot,
    EmitResult,
    EngineConfig,
    ImportRunResult,
    ImportRunSnapshot,
    ImportRunStats,
    ParentGroupInfo,
    ParsedSample,
    RowTranslation,
    RunState,
    SkipReason,
)

__all__ = [
    "CatalogIdentity",
    "ConfigurationError",
    "DataSlot",
    "EmitResult",
    "EngineConfig",
    "ImportRunError",
    "ImportRunResult",
    "ImportRunSnapshot",
    "ImportRunStats",
    "LimitsLoaderError",
    "LockTimeoutError",
    "ParentGroupInfo",
    "ParsedSample",
    "RowTranslation",
    "RowWidthError",
    "RunState",
    "SkipReason",
    "SourceNotFoundError",
    "ValueParseError",
]
