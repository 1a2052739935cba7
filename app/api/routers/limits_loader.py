"""
app/api/routers/limits_loader.py

Operational endpoints for the CSV limits loader.

GET  /limits-loader/status   counters, schedule state and the status block
GET  /limits-loader/samples  most recently delivered sample batch
POST /limits-loader/import   queue an immediate import (202)
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_limits_loader
from app.schemas.limits_loader import (
    ImportCountersResponse,
    ImportQueuedResponse,
    LimitsLoaderStatusResponse,
    SampleBatchResponse,
    SampleResponse,
)
from app.services.limits_loader import LimitsLoader
from app.services.loader_host import LoggingLoaderHost

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/limits-loader", tags=["limits-loader"])


@router.get("/status", response_model=LimitsLoaderStatusResponse)
def get_status(
    max_length: int = Query(default=80, ge=10, le=500, description="Width of the short status line"),
    loader: LimitsLoader = Depends(get_limits_loader),
) -> LimitsLoaderStatusResponse:
    runner = loader.runner
    schedule = loader.schedule
    return LimitsLoaderStatusResponse(
        name=loader.settings.name,
        csv_file_path=str(loader.csv_file_path),
        schedule_enabled=loader.is_running,
        run_state=runner.state.value if runner is not None else "idle",
        next_run_time=schedule.next_run_time if schedule is not None else None,
        counters=ImportCountersResponse(**asdict(loader.stats.snapshot())),
        status=loader.status,
        short_status=loader.short_status(max_length),
    )


@router.get("/samples", response_model=SampleBatchResponse)
def get_last_samples(loader: LimitsLoader = Depends(get_limits_loader)) -> SampleBatchResponse:
    host = loader.host
    if not isinstance(host, LoggingLoaderHost):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="The configured loader host does not retain samples.",
        )

    samples = [
        SampleResponse(
            signal_id=sample.signal_id,
            point_tag=sample.point_tag,
            timestamp=sample.timestamp,
            value=sample.value,
        )
        for sample in host.last_samples
    ]
    return SampleBatchResponse(count=len(samples), samples=samples)


@router.post(
    "/import",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ImportQueuedResponse,
)
def queue_import(loader: LimitsLoader = Depends(get_limits_loader)) -> ImportQueuedResponse:
    try:
        job_id = loader.queue_import()
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    logger.info("Queued CSV limits import job %s", job_id)
    return ImportQueuedResponse(job_id=job_id, queued_at=datetime.now(timezone.utc))
