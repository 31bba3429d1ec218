"""Person and Observation Period mappers.

PERSON rows carry the integer surrogate and the pseudonymized patient id.
Names, contact details and the raw UUID never reach the output.

OBSERVATION_PERIOD spans a person's first to last submitted daily
check-in.
"""

from datetime import date

from app.core.privacy import pseudonymize
from app.etl.base import to_date, to_datetime
from app.etl.concepts import resolve_gender, resolve_type_concept, table_offset
from app.models import Patient
from app.schemas.base import OmopTable
from app.schemas.omop import ObservationPeriodRow, PersonRow
from app.services.export.identifiers import make_omop_id


def map_person(patient: Patient, person_id: int) -> PersonRow:
    """Map a patient to its PERSON row."""
    dob = patient.date_of_birth
    return PersonRow(
        person_id=person_id,
        gender_concept_id=resolve_gender(patient.gender),
        year_of_birth=dob.year if dob else None,
        month_of_birth=dob.month if dob else None,
        day_of_birth=dob.day if dob else None,
        birth_datetime=to_datetime(dob) if dob else None,
        person_source_value=pseudonymize(patient.id),
        gender_source_value=patient.gender,
    )


def map_observation_period(
    date_range: tuple[date, date],
    person_id: int,
    start_sequence: int,
) -> list[ObservationPeriodRow]:
    """Map a ``(first, last)`` check-in date range to one period."""
    first, last = date_range
    return [
        ObservationPeriodRow(
            observation_period_id=make_omop_id(
                person_id, table_offset(OmopTable.OBSERVATION_PERIOD), start_sequence
            ),
            person_id=person_id,
            observation_period_start_date=to_date(first),
            observation_period_end_date=to_date(last),
            period_type_concept_id=resolve_type_concept("period_from_ehr"),
        )
    ]
