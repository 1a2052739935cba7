"""
app/schemas package marker.
"""

from app.schemas.limits_loader import (
    ImportCountersResponse,
    ImportQueuedResponse,
    LimitsLoaderStatusResponse,
    SampleBatchResponse,
    SampleResponse,
)

__all__ = [
    "ImportCountersResponse",
    "ImportQueuedResponse",
    "LimitsLoaderStatusResponse",
    "SampleBatchResponse",
    "SampleResponse",
]
