"""Observation mapper for daily check-in flags.

A flag produces a row only when it is explicitly set: ``True`` for the
boolean flags, non-zero for ``suicidal_ideation``. False, zero and null
produce nothing.
"""

from app.etl.base import format_value, to_date, to_datetime
from app.etl.concepts import (
    OBSERVATION_CONCEPTS,
    resolve_observation,
    resolve_type_concept,
    table_offset,
)
from app.models import DailyEntry
from app.schemas.base import OmopTable
from app.schemas.omop import ObservationRow
from app.services.export.identifiers import make_omop_id

OBSERVATION_FIELDS = tuple(OBSERVATION_CONCEPTS)


def map_daily_entry_observations(
    entry: DailyEntry,
    person_id: int,
    start_sequence: int,
) -> list[ObservationRow]:
    """One OBSERVATION row per flag that is set."""
    rows: list[ObservationRow] = []
    for field_name in OBSERVATION_FIELDS:
        value = getattr(entry, field_name)
        if value is None:
            continue
        numeric_value = int(value)
        if numeric_value == 0:
            continue
        concept = resolve_observation(field_name)
        rows.append(
            ObservationRow(
                observation_id=make_omop_id(
                    person_id, table_offset(OmopTable.OBSERVATION), start_sequence + len(rows)
                ),
                person_id=person_id,
                observation_concept_id=concept.concept_id,
                observation_date=to_date(entry.entry_date),
                observation_datetime=to_datetime(entry.entry_date),
                observation_type_concept_id=resolve_type_concept("patient_self_report"),
                value_as_number=numeric_value,
                observation_source_value=concept.code or field_name,
                value_source_value=format_value(numeric_value),
            )
        )
    return rows
