"""Shared helpers for the OMOP entity mappers.

Every mapper is a pure function with the signature::

    mapper(source_row, person_id, start_sequence) -> list[OmopRow]

The caller advances its sequence counter by ``len(result)``. Mappers never
touch the database and never keep state between calls.
"""

from collections.abc import Callable, Sequence
from datetime import UTC, date, datetime, time
from typing import Any

from app.schemas.omop import OmopRow

Mapper = Callable[[Any, int, int], Sequence[OmopRow]]


def to_date(value: date | datetime) -> date:
    """Calendar date of a source value, in UTC for aware datetimes."""
    if isinstance(value, datetime):
        return to_datetime(value).date()
    return value


def to_datetime(value: date | datetime) -> datetime:
    """Normalize a source value to a naive UTC datetime at second precision.

    Date-only values become midnight of that date.
    """
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.replace(microsecond=0)


def format_value(value: int | float | bool) -> str:
    """Verbatim source rendering of a numeric value."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
