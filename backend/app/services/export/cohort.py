"""Research cohort selection.

A patient is eligible when they are active, have a person surrogate and
their most recent ``data_research`` consent record is a grant. A later
revocation removes the patient from every subsequent run; rows already
published are not retracted.
"""

import logging
from typing import NamedTuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import ConsentRecord, Patient

logger = logging.getLogger(__name__)

RESEARCH_CONSENT_TYPE = "data_research"


class CohortMember(NamedTuple):
    patient_id: str
    person_id: int


class CohortSelector:
    """Resolves the consented, surrogate-assigned patient set for a run."""

    def __init__(self, session: Session):
        self.session = session

    def ensure_person_ids(self) -> int:
        """Give every active patient without a surrogate the next free integer.

        Patients are numbered in creation order after the current maximum.

        Returns:
            Number of surrogates assigned.
        """
        current_max = self.session.scalar(select(func.max(Patient.omop_person_id))) or 0
        stmt = (
            select(Patient)
            .where(Patient.is_active.is_(True), Patient.omop_person_id.is_(None))
            .order_by(Patient.created_at, Patient.id)
        )
        patients = list(self.session.scalars(stmt))
        for offset, patient in enumerate(patients, start=1):
            patient.omop_person_id = current_max + offset
        if patients:
            self.session.flush()
            logger.info(f"Assigned {len(patients)} OMOP person ids")
        return len(patients)

    def select(self) -> list[CohortMember]:
        """Eligible patients ordered by person surrogate."""
        latest = (
            select(
                ConsentRecord.patient_id,
                ConsentRecord.granted,
                func.row_number()
                .over(
                    partition_by=ConsentRecord.patient_id,
                    order_by=(ConsentRecord.granted_at.desc(), ConsentRecord.created_at.desc()),
                )
                .label("rank"),
            )
            .where(ConsentRecord.consent_type == RESEARCH_CONSENT_TYPE)
            .subquery()
        )
        stmt = (
            select(Patient.id, Patient.omop_person_id)
            .join(latest, latest.c.patient_id == Patient.id)
            .where(
                latest.c.rank == 1,
                latest.c.granted.is_(True),
                Patient.is_active.is_(True),
                Patient.omop_person_id.is_not(None),
            )
            .order_by(Patient.omop_person_id)
        )
        members = [
            CohortMember(str(pid), person_id) for pid, person_id in self.session.execute(stmt)
        ]
        logger.info(f"Research cohort: {len(members)} consented patients")
        return members
