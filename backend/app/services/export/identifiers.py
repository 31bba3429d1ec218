"""Deterministic OMOP row identifiers.

Every non-person row id is derived from the person surrogate, a fixed
per-table offset and a sequence number::

    id = person_id * 1_000_000 + table_offset * 100_000 + sequence

The sequence is scoped to ``(person, table)`` for one run. Sources that
write into the same target table for the same person must draw from the
same counter, so the counter is held by the run's accumulator rather than
by the individual mappers.
"""

import logging
from collections import defaultdict

from app.schemas.base import OmopTable

logger = logging.getLogger(__name__)

PERSON_MULTIPLIER = 1_000_000
TABLE_MULTIPLIER = 100_000
SEQUENCE_CEILING = TABLE_MULTIPLIER


def make_omop_id(person_id: int, table_offset: int, sequence: int) -> int:
    """Build a row id from its person, table offset and sequence number."""
    return person_id * PERSON_MULTIPLIER + table_offset * TABLE_MULTIPLIER + sequence


class SequenceCounter:
    """Per-run sequence numbers keyed by ``(person_id, table)``.

    Not thread safe. One instance belongs to one run.
    """

    def __init__(self) -> None:
        self._next: dict[tuple[int, OmopTable], int] = defaultdict(int)

    def peek(self, person_id: int, table: OmopTable) -> int:
        """Next unused sequence number for a person and table."""
        return self._next[(person_id, table)]

    def advance(self, person_id: int, table: OmopTable, count: int = 1) -> int:
        """Reserve ``count`` sequence numbers and return the new next value.

        Passing the ceiling is logged but not prevented; ids past it spill
        into the next table's range.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        key = (person_id, table)
        before = self._next[key]
        after = before + count
        self._next[key] = after
        if before <= SEQUENCE_CEILING < after:
            logger.warning(
                f"Sequence for person {person_id} table {table.value} passed "
                f"{SEQUENCE_CEILING} rows; ids now overlap the next table range"
            )
        return after

    def __len__(self) -> int:
        return len(self._next)
