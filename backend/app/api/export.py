"""OMOP research export API endpoints.

Operators trigger runs, poll their status and manage the high-water
marks. The export itself runs in the worker process.
"""

import logging
from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID, uuid4

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit import log_watermark_reset
from app.core.database import get_db
from app.core.queue import JobBroker, RQJobBroker
from app.jobs.omop_export import submit_export_job
from app.schemas.base import ExportStatus, ExportTrigger
from app.schemas.export import (
    OmopExportHwm,
    OmopExportHwmResetResponse,
    OmopExportRequest,
    OmopExportRun,
    OmopExportRunList,
    OmopExportTriggerResponse,
)
from app.services.export.hwm_store import HwmStore
from app.services.export.run_store import RunStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/export/omop", tags=["Export"])


def get_job_broker() -> JobBroker:
    """Dependency returning the export queue broker."""
    return RQJobBroker()


# Type aliases for dependencies
DbSession = Annotated[AsyncSession, Depends(get_db)]
Broker = Annotated[JobBroker, Depends(get_job_broker)]


@router.post(
    "",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=OmopExportTriggerResponse,
    summary="Trigger OMOP export",
    description="Create a manual export run and queue it for the export worker.",
)
async def trigger_export(
    db: DbSession,
    broker: Broker,
    request: Annotated[OmopExportRequest | None, Body()] = None,
) -> OmopExportTriggerResponse:
    """Create a PENDING run and queue it.

    Raises:
        HTTPException: 503 if the queue rejects the job.
    """
    full_refresh = request.full_refresh if request else False
    run_id = str(uuid4())

    run = await db.run_sync(
        lambda s: RunStore(s).create(ExportTrigger.MANUAL, full_refresh, run_id=run_id)
    )
    await db.commit()

    try:
        submit_export_job(broker, run)
    except Exception as e:
        logger.error(f"Failed to queue export run {run_id}: {e}")
        await db.run_sync(
            lambda s: RunStore(s).mark_failed(run_id, f"Queue unavailable: {e}", datetime.now(UTC))
        )
        await db.commit()
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Export queue unavailable",
        ) from e

    return OmopExportTriggerResponse(
        id=run_id,
        status=ExportStatus.PENDING,
        message="OMOP export queued" + (" (full refresh)" if full_refresh else ""),
    )


@router.get(
    "/runs",
    response_model=OmopExportRunList,
    summary="List export runs",
)
async def list_export_runs(
    db: DbSession,
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Runs per page")] = 20,
) -> OmopExportRunList:
    """List export runs, newest first."""
    runs, total = await db.run_sync(lambda s: RunStore(s).list_recent(page, limit))
    return OmopExportRunList(
        items=[OmopExportRun.model_validate(run) for run in runs],
        total=total,
        page=page,
        limit=limit,
        has_next=page * limit < total,
    )


@router.get(
    "/runs/{run_id}",
    response_model=OmopExportRun,
    summary="Get export run status",
)
async def get_export_run(run_id: UUID, db: DbSession) -> OmopExportRun:
    """Status, record counts and signed file URLs of one run.

    Raises:
        HTTPException: 404 if the run does not exist.
    """
    run = await db.run_sync(lambda s: RunStore(s).get(str(run_id)))
    if run is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Export run {run_id} not found",
        )
    return OmopExportRun.model_validate(run)


@router.get(
    "/hwm",
    response_model=OmopExportHwm,
    summary="Get high-water marks",
)
async def get_high_water_marks(db: DbSession) -> OmopExportHwm:
    row = await db.run_sync(lambda s: HwmStore(s).get_row())
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="High-water marks not initialized",
        )
    return OmopExportHwm.model_validate(row)


@router.post(
    "/hwm/reset",
    response_model=OmopExportHwmResetResponse,
    summary="Reset high-water marks",
    description=(
        "Move every mark back to the epoch so the next run re-extracts all data. "
        "Refused while a run is processing."
    ),
)
async def reset_high_water_marks(db: DbSession) -> OmopExportHwmResetResponse:
    if await db.run_sync(lambda s: RunStore(s).has_processing_run()):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An export run is processing; retry the reset after it finishes",
        )
    now = datetime.now(UTC)
    row = await db.run_sync(lambda s: HwmStore(s).reset(now))
    await db.commit()
    log_watermark_reset()
    logger.info("High-water marks reset to epoch")
    return OmopExportHwmResetResponse(
        message="High-water marks reset; the next run extracts all data",
        hwm=OmopExportHwm.model_validate(row),
    )
