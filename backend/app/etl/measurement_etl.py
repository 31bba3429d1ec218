"""Measurement mappers.

Three sources write MEASUREMENT rows for the same person: daily check-in
numeric fields, validated assessments and wearable snapshots. They share
one sequence counter per person, owned by the caller.

One row is emitted per non-null field. Null fields are skipped rather
than written as zero. Fields without a standard concept are written with
concept 0 and their LOINC code or field name as source value.

Units:
    {score} - dimensionless questionnaire score
    h       - hours (8505)
    min     - minutes (8550)
    steps   - step count (8510)
    bpm     - beats per minute (8541)
    ms      - milliseconds (8529)
"""

from datetime import date, datetime

from app.etl.base import format_value, to_date, to_datetime
from app.etl.concepts import (
    MEASUREMENT_CONCEPTS,
    PASSIVE_HEALTH_CONCEPTS,
    ConceptDef,
    resolve_assessment,
    resolve_measurement,
    resolve_passive_health,
    resolve_type_concept,
    table_offset,
)
from app.models import DailyEntry, PassiveHealthSnapshot, ValidatedAssessment
from app.schemas.base import OmopTable
from app.schemas.omop import MeasurementRow
from app.services.export.identifiers import make_omop_id

DAILY_NUMERIC_FIELDS = tuple(MEASUREMENT_CONCEPTS)
PASSIVE_FIELDS = tuple(PASSIVE_HEALTH_CONCEPTS)


def _measurement(
    person_id: int,
    sequence: int,
    concept: ConceptDef,
    source_key: str,
    value: int | float,
    when: date | datetime,
) -> MeasurementRow:
    return MeasurementRow(
        measurement_id=make_omop_id(person_id, table_offset(OmopTable.MEASUREMENT), sequence),
        person_id=person_id,
        measurement_concept_id=concept.concept_id,
        measurement_date=to_date(when),
        measurement_datetime=to_datetime(when),
        measurement_type_concept_id=resolve_type_concept("patient_self_report"),
        value_as_number=value,
        unit_concept_id=concept.unit_concept_id,
        measurement_source_value=concept.code or source_key,
        unit_source_value=concept.unit_source_value,
        value_source_value=format_value(value),
    )


def map_daily_entry_measurements(
    entry: DailyEntry,
    person_id: int,
    start_sequence: int,
) -> list[MeasurementRow]:
    """One MEASUREMENT row per non-null numeric check-in field."""
    rows: list[MeasurementRow] = []
    for field_name in DAILY_NUMERIC_FIELDS:
        value = getattr(entry, field_name)
        if value is None:
            continue
        rows.append(
            _measurement(
                person_id,
                start_sequence + len(rows),
                resolve_measurement(field_name),
                field_name,
                value,
                entry.entry_date,
            )
        )
    return rows


def map_assessment_measurement(
    assessment: ValidatedAssessment,
    person_id: int,
    start_sequence: int,
) -> list[MeasurementRow]:
    """One MEASUREMENT row for an assessment's total score."""
    return [
        _measurement(
            person_id,
            start_sequence,
            resolve_assessment(assessment.scale),
            assessment.scale,
            assessment.score,
            assessment.completed_at,
        )
    ]


def map_passive_health_measurements(
    snapshot: PassiveHealthSnapshot,
    person_id: int,
    start_sequence: int,
) -> list[MeasurementRow]:
    """One MEASUREMENT row per non-null wearable metric."""
    rows: list[MeasurementRow] = []
    for metric in PASSIVE_FIELDS:
        value = getattr(snapshot, metric)
        if value is None:
            continue
        rows.append(
            _measurement(
                person_id,
                start_sequence + len(rows),
                resolve_passive_health(metric),
                metric,
                value,
                snapshot.snapshot_date,
            )
        )
    return rows
