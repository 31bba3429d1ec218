"""Visit Occurrence mapper for appointments."""

from app.etl.base import to_date, to_datetime
from app.etl.concepts import resolve_type_concept, resolve_visit, table_offset
from app.models import Appointment
from app.schemas.base import OmopTable
from app.schemas.omop import VisitOccurrenceRow
from app.services.export.identifiers import make_omop_id

DEFAULT_VISIT_TYPE = "other"


def map_visit_occurrence(
    appointment: Appointment,
    person_id: int,
    start_sequence: int,
) -> list[VisitOccurrenceRow]:
    """Map one appointment to one VISIT_OCCURRENCE row.

    A visit without an end time ends when it was scheduled to start.
    """
    visit_type = appointment.appointment_type or DEFAULT_VISIT_TYPE
    end = appointment.ended_at or appointment.scheduled_at
    return [
        VisitOccurrenceRow(
            visit_occurrence_id=make_omop_id(
                person_id, table_offset(OmopTable.VISIT_OCCURRENCE), start_sequence
            ),
            person_id=person_id,
            visit_concept_id=resolve_visit(visit_type),
            visit_start_date=to_date(appointment.scheduled_at),
            visit_start_datetime=to_datetime(appointment.scheduled_at),
            visit_end_date=to_date(end),
            visit_end_datetime=to_datetime(end),
            visit_type_concept_id=resolve_type_concept("visit_from_ehr"),
            visit_source_value=visit_type,
        )
    ]
