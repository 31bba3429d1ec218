"""Tests for research cohort selection."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

from app.models import Patient
from app.services.export.cohort import CohortMember, CohortSelector


class TestEnsurePersonIds:
    """Tests for surrogate assignment."""

    def test_assigns_after_current_max(self, mock_sync_session: MagicMock) -> None:
        first = Patient(id="a", is_active=True, created_at=datetime(2025, 1, 1, tzinfo=UTC))
        second = Patient(id="b", is_active=True, created_at=datetime(2025, 1, 2, tzinfo=UTC))
        mock_sync_session.scalar.return_value = 12
        mock_sync_session.scalars.return_value = iter([first, second])

        assigned = CohortSelector(mock_sync_session).ensure_person_ids()

        assert assigned == 2
        assert (first.omop_person_id, second.omop_person_id) == (13, 14)
        mock_sync_session.flush.assert_called_once()

    def test_first_patient_gets_one(self, mock_sync_session: MagicMock) -> None:
        patient = Patient(id="a", is_active=True)
        mock_sync_session.scalar.return_value = None
        mock_sync_session.scalars.return_value = iter([patient])

        CohortSelector(mock_sync_session).ensure_person_ids()

        assert patient.omop_person_id == 1

    def test_nothing_to_assign(self, mock_sync_session: MagicMock) -> None:
        mock_sync_session.scalar.return_value = 5
        mock_sync_session.scalars.return_value = iter([])

        assert CohortSelector(mock_sync_session).ensure_person_ids() == 0
        mock_sync_session.flush.assert_not_called()


class TestSelect:
    """Tests for the consented cohort query."""

    def test_members_from_query_rows(self, mock_sync_session: MagicMock) -> None:
        mock_sync_session.execute.return_value = iter([("p-1", 1), ("p-2", 4)])

        members = CohortSelector(mock_sync_session).select()

        assert members == [CohortMember("p-1", 1), CohortMember("p-2", 4)]

    def test_query_uses_latest_research_consent(self, mock_sync_session: MagicMock) -> None:
        mock_sync_session.execute.return_value = iter([])

        CohortSelector(mock_sync_session).select()

        sql = str(mock_sync_session.execute.call_args[0][0])
        assert "row_number() OVER" in sql
        assert "consent_records.consent_type" in sql
        assert "ORDER BY patients.omop_person_id" in sql
