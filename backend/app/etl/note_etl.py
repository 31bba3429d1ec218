"""Note mapper for journal entries shared with the care team."""

from app.etl.base import to_date, to_datetime
from app.etl.concepts import resolve_type_concept, table_offset
from app.models import JournalEntry
from app.schemas.base import OmopTable
from app.schemas.omop import NoteRow
from app.services.export.identifiers import make_omop_id

NOTE_SOURCE_VALUE = "patient_journal"


def map_journal_note(
    journal: JournalEntry,
    person_id: int,
    start_sequence: int,
) -> list[NoteRow]:
    """Map one journal entry to one NOTE row."""
    return [
        NoteRow(
            note_id=make_omop_id(person_id, table_offset(OmopTable.NOTE), start_sequence),
            person_id=person_id,
            note_date=to_date(journal.created_at),
            note_datetime=to_datetime(journal.created_at),
            note_type_concept_id=resolve_type_concept("note_from_ehr"),
            note_title=journal.title,
            note_text=journal.content,
            note_source_value=NOTE_SOURCE_VALUE,
        )
    ]
