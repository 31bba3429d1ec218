"""Per-table row buffers and TSV serialization for one export run.

Format:
    - UTF-8, tab separated, ``\\n`` after every line
    - header row of column names in declared order
    - tab, CR and LF stripped from values, no quoting
    - null and empty string both render as an empty field
    - dates as ``YYYY-MM-DD``, datetimes as ``YYYY-MM-DDTHH:MM:SS``
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime
from typing import Any

from app.schemas.base import OmopTable
from app.schemas.omop import OmopRow
from app.services.export.errors import TableShapeError
from app.services.export.identifiers import SequenceCounter

logger = logging.getLogger(__name__)

_STRIP = str.maketrans("", "", "\t\r\n")


def format_field(value: Any) -> str:
    """Render one value as a TSV field."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).translate(_STRIP)


def format_line(values: Iterable[Any]) -> str:
    """Render a row of values as one TSV line."""
    return "\t".join(format_field(v) for v in values) + "\n"


def parse_tsv(data: bytes) -> list[dict[str, str]]:
    """Parse a TSV buffer back into header-keyed string fields."""
    lines = data.decode("utf-8").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    if not lines:
        return []
    header = lines[0].split("\t")
    return [dict(zip(header, line.split("\t"), strict=True)) for line in lines[1:]]


class TableAccumulator:
    """Buffers mapped rows per OMOP table for one run.

    The first row appended to a table fixes its struct and header. The
    accumulator also owns the run's ``SequenceCounter`` so that every
    source writing to a shared table draws ids from the same counter.
    """

    def __init__(self, counter: SequenceCounter | None = None) -> None:
        self.counter = counter or SequenceCounter()
        self._rows: dict[OmopTable, list[OmopRow]] = {}
        self._shapes: dict[OmopTable, type[OmopRow]] = {}

    def append(self, table: OmopTable, row: OmopRow) -> None:
        """Append one row, keeping insertion order."""
        shape = self._shapes.setdefault(table, type(row))
        if type(row) is not shape:
            raise TableShapeError(
                f"Table {table.value} holds {shape.__name__} rows, got {type(row).__name__}"
            )
        self._rows.setdefault(table, []).append(row)

    def extend(self, table: OmopTable, rows: Iterable[OmopRow]) -> None:
        """Append several rows."""
        for row in rows:
            self.append(table, row)

    def extend_mapped(
        self,
        table: OmopTable,
        person_id: int,
        mapper: Callable[[Any, int, int], Sequence[OmopRow]],
        source_row: Any,
    ) -> int:
        """Map a source row with the person's next sequence and buffer the output.

        Returns:
            Number of rows produced.
        """
        rows = mapper(source_row, person_id, self.counter.peek(person_id, table))
        self.counter.advance(person_id, table, len(rows))
        self.extend(table, rows)
        return len(rows)

    def row_count(self, table: OmopTable) -> int:
        return len(self._rows.get(table, ()))

    def rows(self, table: OmopTable) -> list[OmopRow]:
        return list(self._rows.get(table, ()))

    def header(self, table: OmopTable) -> list[str] | None:
        shape = self._shapes.get(table)
        return shape.columns() if shape else None

    def to_buffer(self, table: OmopTable) -> bytes | None:
        """Serialize a table to TSV bytes, or None if it has no rows."""
        rows = self._rows.get(table)
        if not rows:
            return None
        lines = [format_line(self._shapes[table].columns())]
        lines.extend(format_line(row.values()) for row in rows)
        return "".join(lines).encode("utf-8")

    def record_counts(self) -> dict[str, int]:
        """Row count per non-empty table, in publication order."""
        return {
            table.value: len(self._rows[table])
            for table in OmopTable
            if self._rows.get(table)
        }

    def non_empty_tables(self) -> list[OmopTable]:
        return [table for table in OmopTable if self._rows.get(table)]
