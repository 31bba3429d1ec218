"""OMOP export job functions.

``process_omop_export`` is what the export worker executes. Nightly and
manual triggers both go through ``trigger_omop_export`` (or, from the
async API, ``submit_export_job``) so the queued payload has one shape.
"""

import logging

from sqlalchemy.orm import Session

from app.core.audit import log_export_trigger
from app.core.database import get_sync_session
from app.core.queue import JobBroker, RQJobBroker
from app.models import OmopExportRun
from app.schemas.base import ExportTrigger
from app.schemas.export import OmopExportJobData
from app.services.export.orchestrator import ExportOrchestrator, ExportResult
from app.services.export.publisher import ArtifactPublisher, MinioArtifactPublisher
from app.services.export.run_store import RunStore

logger = logging.getLogger(__name__)


def export_job_id(export_run_id: str) -> str:
    """Queue job id for an export run. One job per run."""
    return f"omop-export-{export_run_id}"


def build_job_payload(run: OmopExportRun) -> OmopExportJobData:
    return OmopExportJobData(
        export_run_id=str(run.id),
        triggered_by=run.triggered_by,
        full_refresh=run.full_refresh,
    )


def submit_export_job(broker: JobBroker, run: OmopExportRun) -> str:
    """Queue a committed PENDING run for the export worker."""
    payload = build_job_payload(run)
    job_id = broker.submit(
        process_omop_export,
        payload.model_dump(mode="json", by_alias=True),
        export_job_id(payload.export_run_id),
    )
    log_export_trigger(payload.export_run_id, payload.triggered_by.value, payload.full_refresh)
    logger.info(f"Queued export run {payload.export_run_id} as job {job_id}")
    return job_id


def trigger_omop_export(
    session: Session,
    broker: JobBroker,
    triggered_by: ExportTrigger,
    full_refresh: bool = False,
) -> OmopExportRun:
    """Create a PENDING run, commit it and queue it.

    The run is committed before submission so the worker can load it.
    """
    run = RunStore(session).create(triggered_by, full_refresh)
    session.commit()
    submit_export_job(broker, run)
    return run


def process_omop_export(
    job_data: dict,
    publisher: ArtifactPublisher | None = None,
    broker: JobBroker | None = None,
) -> dict:
    """Run one export end to end inside the worker.

    Failures propagate so the queue marks the job failed and applies its
    retry policy.

    Args:
        job_data: Queued payload with ``exportRunId``, ``triggeredBy`` and
            ``fullRefresh`` keys.
        publisher: Artifact publisher, MinIO by default.
        broker: Broker the outcome is reported to, RQ by default.

    Returns:
        The run outcome as a dictionary.
    """
    data = OmopExportJobData.model_validate(job_data)
    logger.info(
        f"Starting OMOP export {data.export_run_id} (triggered_by={data.triggered_by.value})"
    )
    with get_sync_session() as session:
        orchestrator = ExportOrchestrator(
            session,
            publisher=publisher or MinioArtifactPublisher(),
        )
        result: ExportResult = orchestrator.run(data.export_run_id, full_refresh=data.full_refresh)

    outcome = result.to_dict()
    (broker or RQJobBroker()).complete(export_job_id(data.export_run_id), outcome)
    return outcome
