"""Condition Occurrence mapper for ICD-10 diagnoses."""

from app.etl.base import to_date, to_datetime
from app.etl.concepts import resolve_condition, resolve_type_concept, table_offset
from app.models import PatientDiagnosis
from app.schemas.base import OmopTable
from app.schemas.omop import ConditionOccurrenceRow
from app.services.export.identifiers import make_omop_id


def map_condition_occurrence(
    diagnosis: PatientDiagnosis,
    person_id: int,
    start_sequence: int,
) -> list[ConditionOccurrenceRow]:
    """Map one diagnosis to one CONDITION_OCCURRENCE row.

    Unmapped ICD-10 codes get concept 0 and keep the code as source value.
    Resolved diagnoses carry an end date and status ``resolved``.
    """
    resolved = diagnosis.resolved_at
    return [
        ConditionOccurrenceRow(
            condition_occurrence_id=make_omop_id(
                person_id, table_offset(OmopTable.CONDITION_OCCURRENCE), start_sequence
            ),
            person_id=person_id,
            condition_concept_id=resolve_condition(diagnosis.icd10_code),
            condition_start_date=to_date(diagnosis.diagnosed_at),
            condition_start_datetime=to_datetime(diagnosis.diagnosed_at),
            condition_end_date=to_date(resolved) if resolved is not None else None,
            condition_end_datetime=to_datetime(resolved) if resolved is not None else None,
            condition_type_concept_id=resolve_type_concept("condition_from_ehr"),
            condition_source_value=diagnosis.icd10_code,
            condition_status_source_value="resolved" if resolved is not None else "active",
        )
    ]
