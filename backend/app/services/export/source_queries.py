"""High-water-mark bounded reads of the clinical source tables.

Each query returns rows of cohort patients whose ``updated_at`` is after
the entity's mark, ordered by patient then event time so sequence numbers
follow event order within a person.
"""

from collections.abc import Collection
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import (
    Appointment,
    DailyEntry,
    JournalEntry,
    PassiveHealthSnapshot,
    Patient,
    PatientDiagnosis,
    PatientMedication,
    ValidatedAssessment,
)


class SourceExtractor:
    """Incremental source queries through a sync Session."""

    def __init__(self, session: Session):
        self.session = session

    def _changed(
        self, model, patient_ids: Collection[str], since: datetime, *order_by, extra=()
    ) -> list:
        if not patient_ids:
            return []
        stmt = (
            select(model)
            .where(
                model.patient_id.in_(list(patient_ids)),
                model.updated_at > since,
                *extra,
            )
            .order_by(model.patient_id, *order_by)
        )
        return list(self.session.scalars(stmt))

    def patients(self, patient_ids: Collection[str], since: datetime) -> list[Patient]:
        if not patient_ids:
            return []
        stmt = (
            select(Patient)
            .where(Patient.id.in_(list(patient_ids)), Patient.updated_at > since)
            .order_by(Patient.omop_person_id)
        )
        return list(self.session.scalars(stmt))

    def daily_entries(self, patient_ids: Collection[str], since: datetime) -> list[DailyEntry]:
        """Submitted check-ins only; drafts are never exported."""
        return self._changed(
            DailyEntry,
            patient_ids,
            since,
            DailyEntry.entry_date,
            extra=(DailyEntry.submitted_at.is_not(None),),
        )

    def assessments(
        self, patient_ids: Collection[str], since: datetime
    ) -> list[ValidatedAssessment]:
        return self._changed(
            ValidatedAssessment, patient_ids, since, ValidatedAssessment.completed_at
        )

    def medications(self, patient_ids: Collection[str], since: datetime) -> list[PatientMedication]:
        return self._changed(PatientMedication, patient_ids, since, PatientMedication.prescribed_at)

    def diagnoses(self, patient_ids: Collection[str], since: datetime) -> list[PatientDiagnosis]:
        return self._changed(PatientDiagnosis, patient_ids, since, PatientDiagnosis.diagnosed_at)

    def appointments(self, patient_ids: Collection[str], since: datetime) -> list[Appointment]:
        return self._changed(Appointment, patient_ids, since, Appointment.scheduled_at)

    def passive_health(
        self, patient_ids: Collection[str], since: datetime
    ) -> list[PassiveHealthSnapshot]:
        return self._changed(
            PassiveHealthSnapshot, patient_ids, since, PassiveHealthSnapshot.snapshot_date
        )

    def journal_entries(self, patient_ids: Collection[str], since: datetime) -> list[JournalEntry]:
        """Entries the patient shared with their care team."""
        return self._changed(
            JournalEntry,
            patient_ids,
            since,
            JournalEntry.created_at,
            extra=(JournalEntry.shared_with_care_team.is_(True),),
        )

    def observation_period_ranges(
        self, patient_ids: Collection[str]
    ) -> dict[str, tuple[date, date]]:
        """First and last submitted check-in date per patient, over all time."""
        if not patient_ids:
            return {}
        stmt = (
            select(
                DailyEntry.patient_id,
                func.min(DailyEntry.entry_date),
                func.max(DailyEntry.entry_date),
            )
            .where(
                DailyEntry.patient_id.in_(list(patient_ids)),
                DailyEntry.submitted_at.is_not(None),
            )
            .group_by(DailyEntry.patient_id)
        )
        return {str(pid): (first, last) for pid, first, last in self.session.execute(stmt)}
