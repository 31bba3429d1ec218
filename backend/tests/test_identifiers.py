"""Tests for deterministic OMOP row identifiers."""

import logging

import pytest

from app.schemas.base import OmopTable
from app.services.export.identifiers import (
    SEQUENCE_CEILING,
    SequenceCounter,
    make_omop_id,
)


class TestMakeOmopId:
    """Tests for the id formula."""

    def test_formula(self) -> None:
        assert make_omop_id(1, 1, 0) == 1_100_000
        assert make_omop_id(42, 3, 7) == 42_300_007

    def test_tables_do_not_collide_for_one_person(self) -> None:
        ids = {make_omop_id(5, offset, 0) for offset in range(8)}
        assert len(ids) == 8

    def test_people_do_not_collide(self) -> None:
        assert make_omop_id(1, 7, 99_999) < make_omop_id(2, 0, 0)


class TestSequenceCounter:
    """Tests for the per-run sequence counter."""

    def test_starts_at_zero(self) -> None:
        counter = SequenceCounter()
        assert counter.peek(1, OmopTable.MEASUREMENT) == 0

    def test_advance_is_scoped_by_person_and_table(self) -> None:
        counter = SequenceCounter()
        counter.advance(1, OmopTable.MEASUREMENT, 3)

        assert counter.peek(1, OmopTable.MEASUREMENT) == 3
        assert counter.peek(1, OmopTable.OBSERVATION) == 0
        assert counter.peek(2, OmopTable.MEASUREMENT) == 0
        assert len(counter) == 3

    def test_advance_returns_next_value(self) -> None:
        counter = SequenceCounter()
        assert counter.advance(1, OmopTable.NOTE) == 1
        assert counter.advance(1, OmopTable.NOTE, 4) == 5

    def test_advance_by_zero(self) -> None:
        counter = SequenceCounter()
        assert counter.advance(1, OmopTable.NOTE, 0) == 0

    def test_negative_count_rejected(self) -> None:
        with pytest.raises(ValueError):
            SequenceCounter().advance(1, OmopTable.NOTE, -1)

    def test_crossing_ceiling_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Overflow is logged once, when the ceiling is crossed."""
        counter = SequenceCounter()
        counter.advance(1, OmopTable.MEASUREMENT, SEQUENCE_CEILING)

        with caplog.at_level(logging.WARNING, logger="app.services.export.identifiers"):
            counter.advance(1, OmopTable.MEASUREMENT, 1)
            counter.advance(1, OmopTable.MEASUREMENT, 1)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
