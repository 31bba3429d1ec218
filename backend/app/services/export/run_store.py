"""Export run records and their state transitions.

    PENDING -> PROCESSING -> COMPLETED | FAILED

A FAILED run may enter PROCESSING again when the queue retries its job.
COMPLETED is never left. A run already PROCESSING is not started twice.
Methods stage changes on the session; callers own the commit.
"""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import OmopExportRun
from app.schemas.base import ExportStatus, ExportTrigger, OutputMode
from app.services.export.errors import ExportRunNotFoundError, InvalidRunStateError

logger = logging.getLogger(__name__)

STARTABLE_STATUSES = frozenset({ExportStatus.PENDING, ExportStatus.FAILED})


class RunStore:
    """Persistence for ``omop_export_runs`` through a sync Session."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        triggered_by: ExportTrigger,
        full_refresh: bool = False,
        run_id: str | None = None,
    ) -> OmopExportRun:
        """Add a new PENDING run and flush it so its id is assigned."""
        run = OmopExportRun(
            status=ExportStatus.PENDING,
            triggered_by=triggered_by,
            output_mode=OutputMode.TSV_UPLOAD.value,
            full_refresh=full_refresh,
        )
        if run_id is not None:
            run.id = run_id
        self.session.add(run)
        self.session.flush()
        return run

    def get(self, run_id: str) -> OmopExportRun | None:
        return self.session.get(OmopExportRun, run_id)

    def require(self, run_id: str) -> OmopExportRun:
        run = self.get(run_id)
        if run is None:
            raise ExportRunNotFoundError(run_id)
        return run

    def mark_processing(self, run: OmopExportRun, started_at: datetime) -> None:
        if run.status not in STARTABLE_STATUSES:
            raise InvalidRunStateError(run.id, run.status.value, "start")
        if run.status == ExportStatus.FAILED:
            logger.info(f"Restarting failed export run {run.id}")
        run.status = ExportStatus.PROCESSING
        run.started_at = started_at
        run.completed_at = None
        run.error_message = None

    def stage_completed(
        self,
        run: OmopExportRun,
        record_counts: dict[str, int],
        file_urls: dict[str, str],
        completed_at: datetime,
    ) -> None:
        if run.status != ExportStatus.PROCESSING:
            raise InvalidRunStateError(run.id, run.status.value, "complete")
        run.status = ExportStatus.COMPLETED
        run.record_counts = record_counts
        run.file_urls = file_urls
        run.completed_at = completed_at

    def mark_failed(
        self, run_id: str, error_message: str, failed_at: datetime
    ) -> OmopExportRun | None:
        """Record a failure. Call after rolling back the failed transaction."""
        run = self.get(run_id)
        if run is None:
            logger.error(f"Cannot mark missing export run {run_id} as failed")
            return None
        run.status = ExportStatus.FAILED
        run.error_message = error_message
        run.completed_at = failed_at
        return run

    def list_recent(self, page: int = 1, limit: int = 20) -> tuple[list[OmopExportRun], int]:
        """One page of runs, newest first, and the total run count."""
        total = self.session.scalar(select(func.count()).select_from(OmopExportRun)) or 0
        stmt = (
            select(OmopExportRun)
            .order_by(OmopExportRun.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(self.session.scalars(stmt)), total

    def has_processing_run(self) -> bool:
        stmt = (
            select(func.count())
            .select_from(OmopExportRun)
            .where(OmopExportRun.status == ExportStatus.PROCESSING)
        )
        return (self.session.scalar(stmt) or 0) > 0
