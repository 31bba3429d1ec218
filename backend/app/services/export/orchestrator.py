"""OMOP export run orchestration.

One run, start to finish, as a strict sequence. Any failure aborts the
remaining steps:

1. Assign person surrogates to active patients that lack one.
2. Resolve the starting marks (stored, or the epoch for a full refresh).
3. Select the consented cohort. An empty cohort completes the run with
   empty counts and leaves the marks where they are.
4. For each source entity, read rows changed since its mark, map them and
   buffer the output in the run's accumulator.
5. Publish every non-empty table.
6. Commit the advanced marks (all stamped with the run's start instant)
   and the COMPLETED run record in one transaction.

On failure the transaction is rolled back, the run is marked FAILED with
the error message and the error is re-raised for the queue to record.
The marks are untouched, so the next run re-reads the same window.

Exactly one export worker runs at a time; nothing here locks the marks.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import partial
from typing import Any

from sqlalchemy.orm import Session

from app.core.audit import AuditAction, log_audit, log_export
from app.core.privacy import sanitize_for_logging
from app.etl import (
    map_assessment_measurement,
    map_condition_occurrence,
    map_daily_entry_measurements,
    map_daily_entry_observations,
    map_device_exposure,
    map_drug_exposure,
    map_journal_note,
    map_observation_period,
    map_passive_health_measurements,
    map_person,
    map_visit_occurrence,
)
from app.schemas.base import ExportStatus, OmopTable, SourceEntity
from app.schemas.omop import OmopRow
from app.services.export.cohort import CohortMember, CohortSelector
from app.services.export.hwm_store import HwmStore, Marks
from app.services.export.publisher import ArtifactPublisher
from app.services.export.run_store import RunStore
from app.services.export.source_queries import SourceExtractor
from app.services.export.tsv import TableAccumulator

logger = logging.getLogger(__name__)

RowMapper = Callable[[Any, int, int], Sequence[OmopRow]]


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class ExportResult:
    """Outcome of one orchestrated run."""

    run_id: str
    status: ExportStatus
    record_counts: dict[str, int] = field(default_factory=dict)
    file_urls: dict[str, str] = field(default_factory=dict)
    cohort_size: int = 0
    error_message: str | None = None

    @property
    def total_rows(self) -> int:
        return sum(self.record_counts.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "record_counts": self.record_counts,
            "file_urls": self.file_urls,
            "cohort_size": self.cohort_size,
            "error_message": self.error_message,
        }


class ExportOrchestrator:
    """Drives an export run through PENDING -> PROCESSING -> COMPLETED | FAILED.

    Collaborators default to the database-backed implementations bound to
    ``session``; tests pass in-memory replacements.
    """

    def __init__(
        self,
        session: Session,
        publisher: ArtifactPublisher,
        cohort_selector: CohortSelector | None = None,
        hwm_store: HwmStore | None = None,
        run_store: RunStore | None = None,
        extractor: SourceExtractor | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.session = session
        self.publisher = publisher
        self.cohort_selector = cohort_selector or CohortSelector(session)
        self.hwm_store = hwm_store or HwmStore(session)
        self.run_store = run_store or RunStore(session)
        self.extractor = extractor or SourceExtractor(session)
        self.clock = clock

    def run(self, run_id: str, full_refresh: bool = False) -> ExportResult:
        """Execute one export run.

        Raises:
            ExportRunNotFoundError: If no run has this id.
            InvalidRunStateError: If the run is COMPLETED or already PROCESSING.
            Exception: Whatever failed the run, after it was marked FAILED.
        """
        run = self.run_store.require(run_id)
        started_at = self.clock()
        self.run_store.mark_processing(run, started_at)
        self.session.commit()
        logger.info(f"Export {run_id} processing (full_refresh={full_refresh})")

        try:
            result = self._process(run, run_id, full_refresh, started_at)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.exception(f"Export {run_id} failed: {sanitize_for_logging(message)}")
            self.session.rollback()
            self.run_store.mark_failed(
                run_id, sanitize_for_logging(message, max_length=1000), self.clock()
            )
            self.session.commit()
            log_audit(
                action=AuditAction.ERROR,
                resource_type="omop_export_run",
                resource_id=run_id,
                details={"error": sanitize_for_logging(message)},
                success=False,
            )
            raise

        logger.info(
            f"Export {run_id} completed: {result.total_rows} rows across "
            f"{len(result.record_counts)} tables"
        )
        return result

    def _process(self, run, run_id: str, full_refresh: bool, started_at: datetime) -> ExportResult:
        assigned = self.cohort_selector.ensure_person_ids()
        if assigned:
            self.session.commit()

        marks = self.hwm_store.epoch_floor() if full_refresh else self.hwm_store.load()
        members = self.cohort_selector.select()

        if not members:
            self.run_store.stage_completed(run, {}, {}, self.clock())
            self.session.commit()
            logger.info(f"Export {run_id}: no consented patients")
            return ExportResult(run_id=run_id, status=ExportStatus.COMPLETED)

        accumulator = TableAccumulator()
        self.extract(accumulator, members, marks, started_at)
        file_urls = self.publish(run_id, accumulator)
        record_counts = accumulator.record_counts()

        self.hwm_store.stage_advance(started_at)
        self.run_store.stage_completed(run, record_counts, file_urls, self.clock())
        self.session.commit()

        return ExportResult(
            run_id=run_id,
            status=ExportStatus.COMPLETED,
            record_counts=record_counts,
            file_urls=file_urls,
            cohort_size=len(members),
        )

    def extract(
        self,
        accumulator: TableAccumulator,
        members: list[CohortMember],
        marks: Marks,
        started_at: datetime,
    ) -> None:
        """Read, map and buffer every source entity for the cohort.

        Queries run one after another. Daily entries, assessments and
        wearable snapshots all write MEASUREMENT rows and share the
        accumulator's counter for it.
        """
        person_ids = {m.patient_id: m.person_id for m in members}
        patient_ids = list(person_ids)

        for patient in self.extractor.patients(patient_ids, marks[SourceEntity.PATIENTS]):
            accumulator.append(OmopTable.PERSON, map_person(patient, person_ids[str(patient.id)]))

        entries = self.extractor.daily_entries(patient_ids, marks[SourceEntity.DAILY_ENTRIES])
        self._map_rows(
            accumulator,
            person_ids,
            entries,
            [
                (OmopTable.MEASUREMENT, map_daily_entry_measurements),
                (OmopTable.OBSERVATION, map_daily_entry_observations),
            ],
        )
        self._map_observation_periods(accumulator, person_ids, entries)

        as_of = started_at.date()
        plan: list[tuple[SourceEntity, Callable, list[tuple[OmopTable, RowMapper]]]] = [
            (
                SourceEntity.VALIDATED_ASSESSMENTS,
                self.extractor.assessments,
                [(OmopTable.MEASUREMENT, map_assessment_measurement)],
            ),
            (
                SourceEntity.PATIENT_MEDICATIONS,
                self.extractor.medications,
                [(OmopTable.DRUG_EXPOSURE, partial(map_drug_exposure, as_of=as_of))],
            ),
            (
                SourceEntity.PATIENT_DIAGNOSES,
                self.extractor.diagnoses,
                [(OmopTable.CONDITION_OCCURRENCE, map_condition_occurrence)],
            ),
            (
                SourceEntity.APPOINTMENTS,
                self.extractor.appointments,
                [(OmopTable.VISIT_OCCURRENCE, map_visit_occurrence)],
            ),
            (
                SourceEntity.PASSIVE_HEALTH,
                self.extractor.passive_health,
                [
                    (OmopTable.MEASUREMENT, map_passive_health_measurements),
                    (OmopTable.DEVICE_EXPOSURE, map_device_exposure),
                ],
            ),
            (
                SourceEntity.JOURNAL_ENTRIES,
                self.extractor.journal_entries,
                [(OmopTable.NOTE, map_journal_note)],
            ),
        ]
        for entity, query, targets in plan:
            rows = query(patient_ids, marks[entity])
            self._map_rows(accumulator, person_ids, rows, targets)

    @staticmethod
    def _map_rows(
        accumulator: TableAccumulator,
        person_ids: dict[str, int],
        rows: list,
        targets: list[tuple[OmopTable, RowMapper]],
    ) -> None:
        for row in rows:
            person_id = person_ids.get(str(row.patient_id))
            if person_id is None:
                continue
            for table, mapper in targets:
                accumulator.extend_mapped(table, person_id, mapper, row)

    def _map_observation_periods(
        self,
        accumulator: TableAccumulator,
        person_ids: dict[str, int],
        entries: list,
    ) -> None:
        """One period per person whose check-ins changed in this window."""
        changed = list(dict.fromkeys(str(e.patient_id) for e in entries))
        if not changed:
            return
        ranges = self.extractor.observation_period_ranges(changed)
        for patient_id in changed:
            date_range = ranges.get(patient_id)
            if date_range is None:
                continue
            accumulator.extend_mapped(
                OmopTable.OBSERVATION_PERIOD,
                person_ids[patient_id],
                map_observation_period,
                date_range,
            )

    def publish(self, run_id: str, accumulator: TableAccumulator) -> dict[str, str]:
        """Publish every non-empty table in order and collect the signed URLs.

        Stops at the first failure; tables published before it stay stored.
        """
        file_urls: dict[str, str] = {}
        for table in accumulator.non_empty_tables():
            data = accumulator.to_buffer(table)
            file_urls[table.value] = self.publisher.publish(run_id, table, data)
            log_export(run_id, table.value, accumulator.row_count(table))
        return file_urls
