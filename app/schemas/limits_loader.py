"""
app/schemas/limits_loader.py

Response schemas for the limits loader endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ImportCountersResponse(BaseModel):
    """
    API response model for the import run counters.
    """

    started_at: datetime
    total_successful_imports: int = Field(..., ge=0)
    total_failed_imports: int = Field(..., ge=0)
    last_successful_import: datetime | None = None
    last_failed_import: datetime | None = None
    total_successful_deletes: int = Field(..., ge=0)
    total_failed_deletes: int = Field(..., ge=0)
    last_successful_delete: datetime | None = None
    last_failed_delete: datetime | None = None
    total_nan_values: int = Field(..., ge=0)
    records_created: int = Field(..., ge=0)
    samples_imported: int = Field(..., ge=0)


class LimitsLoaderStatusResponse(BaseModel):
    name: str
    csv_file_path: str
    schedule_enabled: bool
    run_state: str
    next_run_time: datetime | None = None
    counters: ImportCountersResponse
    status: str
    short_status: str


class SampleResponse(BaseModel):
    signal_id: UUID
    point_tag: str
    timestamp: datetime
    value: float


class SampleBatchResponse(BaseModel):
    count: int = Field(..., ge=0)
    samples: list[SampleResponse] = Field(default_factory=list)


class ImportQueuedResponse(BaseModel):
    job_id: str
    queued_at: datetime
