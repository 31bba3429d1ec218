"""Tests for the OMOP export API endpoints.

These tests verify the export API functionality:
- POST /export/omop queues a manual run
- GET /export/omop/runs and /export/omop/runs/{run_id} status surface
- GET /export/omop/hwm and POST /export/omop/hwm/reset
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.api.export import router
from app.jobs.omop_export import process_omop_export
from app.models import EPOCH, OmopExportHwm, OmopExportRun
from app.schemas.base import ExportStatus, ExportTrigger


def make_run(**overrides) -> OmopExportRun:
    values = {
        "id": str(uuid4()),
        "status": ExportStatus.COMPLETED,
        "triggered_by": ExportTrigger.NIGHTLY,
        "output_mode": "tsv_upload",
        "full_refresh": False,
        "record_counts": {"person": 2, "measurement": 5},
        "file_urls": {"person": "https://storage/person.tsv", "measurement": "https://storage/m.tsv"},
        "started_at": datetime(2026, 3, 1, 2, 0, tzinfo=UTC),
        "completed_at": datetime(2026, 3, 1, 2, 5, tzinfo=UTC),
        "created_at": datetime(2026, 3, 1, 1, 59, tzinfo=UTC),
    }
    values.update(overrides)
    return OmopExportRun(**values)


class TestExportRouterConfiguration:
    """Tests for export API router configuration."""

    def test_router_prefix(self) -> None:
        """Test router has correct prefix."""
        assert router.prefix == "/export/omop"

    def test_router_tags(self) -> None:
        """Test router has correct tags."""
        assert "Export" in router.tags

    def test_routes_registered(self) -> None:
        """All operator routes should be registered."""
        paths = {route.path for route in router.routes}
        assert "/export/omop" in paths
        assert "/export/omop/runs" in paths
        assert "/export/omop/runs/{run_id}" in paths
        assert "/export/omop/hwm" in paths
        assert "/export/omop/hwm/reset" in paths


class TestTriggerExport:
    """Tests for POST /export/omop."""

    @pytest.mark.asyncio
    async def test_trigger_returns_202_pending(
        self, client_with_mock_db: AsyncClient, mock_broker: MagicMock
    ) -> None:
        """Triggering returns 202 with the new run id and pending status."""
        response = await client_with_mock_db.post("/export/omop")

        assert response.status_code == 202
        data = response.json()
        assert data["status"] == "pending"
        assert data["id"]
        assert "queued" in data["message"]

    @pytest.mark.asyncio
    async def test_trigger_commits_before_submitting(
        self,
        client_with_mock_db: AsyncClient,
        mock_db_session: MagicMock,
        mock_sync_session: MagicMock,
        mock_broker: MagicMock,
    ) -> None:
        """The run is added and committed before the broker sees it."""
        order: list[str] = []
        mock_db_session.commit.side_effect = lambda: order.append("commit")
        mock_broker.submit.side_effect = lambda func, payload, job_id: order.append("submit") or job_id

        response = await client_with_mock_db.post("/export/omop")

        assert response.status_code == 202
        added = mock_sync_session.add.call_args[0][0]
        assert isinstance(added, OmopExportRun)
        assert added.status == ExportStatus.PENDING
        assert added.triggered_by == ExportTrigger.MANUAL
        assert order[:2] == ["commit", "submit"]

    @pytest.mark.asyncio
    async def test_trigger_submits_job_payload(
        self, client_with_mock_db: AsyncClient, mock_broker: MagicMock
    ) -> None:
        """The queued payload names the run, the trigger and the refresh flag."""
        response = await client_with_mock_db.post("/export/omop", json={"full_refresh": True})

        run_id = response.json()["id"]
        func, payload, job_id = mock_broker.submit.call_args[0]
        assert func is process_omop_export
        assert payload == {"exportRunId": run_id, "triggeredBy": "manual", "fullRefresh": True}
        assert job_id == f"omop-export-{run_id}"
        assert "full refresh" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_trigger_marks_run_failed_when_queue_down(
        self,
        client_with_mock_db: AsyncClient,
        mock_sync_session: MagicMock,
        mock_broker: MagicMock,
    ) -> None:
        """A broker failure returns 503 and leaves the run FAILED, not PENDING."""
        mock_broker.submit.side_effect = ConnectionError("redis down")
        mock_sync_session.get.side_effect = lambda model, run_id: mock_sync_session.add.call_args[0][0]

        response = await client_with_mock_db.post("/export/omop")

        assert response.status_code == 503
        run = mock_sync_session.add.call_args[0][0]
        assert run.status == ExportStatus.FAILED
        assert "redis down" in run.error_message


class TestGetExportRun:
    """Tests for GET /export/omop/runs/{run_id}."""

    @pytest.mark.asyncio
    async def test_get_run_returns_status_surface(
        self, client_with_mock_db: AsyncClient, mock_sync_session: MagicMock
    ) -> None:
        """A known run returns its status, counts and URLs."""
        run = make_run()
        mock_sync_session.get.return_value = run

        response = await client_with_mock_db.get(f"/export/omop/runs/{run.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == run.id
        assert data["status"] == "completed"
        assert data["triggered_by"] == "nightly"
        assert data["record_counts"] == {"person": 2, "measurement": 5}
        assert data["file_urls"]["person"] == "https://storage/person.tsv"
        assert data["error_message"] is None

    @pytest.mark.asyncio
    async def test_get_failed_run_includes_error(
        self, client_with_mock_db: AsyncClient, mock_sync_session: MagicMock
    ) -> None:
        """A failed run exposes its error message."""
        run = make_run(
            status=ExportStatus.FAILED,
            record_counts=None,
            file_urls=None,
            error_message="Storage upload failed for condition_occurrence.tsv (500)",
        )
        mock_sync_session.get.return_value = run

        response = await client_with_mock_db.get(f"/export/omop/runs/{run.id}")

        data = response.json()
        assert data["status"] == "failed"
        assert data["error_message"].startswith("Storage upload failed")

    @pytest.mark.asyncio
    async def test_get_unknown_run_returns_404(self, client_with_mock_db: AsyncClient) -> None:
        """An unknown run id returns 404."""
        response = await client_with_mock_db.get(f"/export/omop/runs/{uuid4()}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_invalid_run_id_returns_422(self, client_with_mock_db: AsyncClient) -> None:
        """A malformed run id is rejected."""
        response = await client_with_mock_db.get("/export/omop/runs/not-a-uuid")
        assert response.status_code == 422


class TestListExportRuns:
    """Tests for GET /export/omop/runs."""

    @pytest.mark.asyncio
    async def test_list_runs_paginates(
        self, client_with_mock_db: AsyncClient, mock_sync_session: MagicMock
    ) -> None:
        """The list reports totals and whether another page exists."""
        runs = [make_run(), make_run(status=ExportStatus.PENDING, record_counts=None, file_urls=None)]
        mock_sync_session.scalar.return_value = 5
        mock_sync_session.scalars.return_value = iter(runs)

        response = await client_with_mock_db.get("/export/omop/runs?page=1&limit=2")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 5
        assert data["page"] == 1
        assert data["limit"] == 2
        assert data["has_next"] is True
        assert [item["status"] for item in data["items"]] == ["completed", "pending"]

    @pytest.mark.asyncio
    async def test_list_runs_last_page(
        self, client_with_mock_db: AsyncClient, mock_sync_session: MagicMock
    ) -> None:
        """The last page has no next page."""
        mock_sync_session.scalar.return_value = 1
        mock_sync_session.scalars.return_value = iter([make_run()])

        response = await client_with_mock_db.get("/export/omop/runs")

        assert response.json()["has_next"] is False

    @pytest.mark.asyncio
    async def test_list_runs_rejects_zero_limit(self, client_with_mock_db: AsyncClient) -> None:
        """Limit must be positive."""
        response = await client_with_mock_db.get("/export/omop/runs?limit=0")
        assert response.status_code == 422


class TestHighWaterMarks:
    """Tests for the high-water mark endpoints."""

    @pytest.mark.asyncio
    async def test_get_hwm_missing_returns_404(self, client_with_mock_db: AsyncClient) -> None:
        """Missing singleton row returns 404."""
        response = await client_with_mock_db.get("/export/omop/hwm")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_hwm_returns_marks(
        self, client_with_mock_db: AsyncClient, mock_sync_session: MagicMock
    ) -> None:
        """Stored marks are returned per source entity."""
        mark = datetime(2026, 3, 1, 2, 0, tzinfo=UTC)
        mock_sync_session.get.return_value = OmopExportHwm(
            id=1,
            patients_hwm=mark,
            daily_entries_hwm=mark,
            validated_assessments_hwm=mark,
            patient_medications_hwm=mark,
            patient_diagnoses_hwm=mark,
            appointments_hwm=mark,
            passive_health_hwm=mark,
            journal_entries_hwm=mark,
            updated_at=mark,
        )

        response = await client_with_mock_db.get("/export/omop/hwm")

        assert response.status_code == 200
        data = response.json()
        assert data["daily_entries_hwm"].startswith("2026-03-01T02:00:00")
        assert len([k for k in data if k.endswith("_hwm")]) == 8

    @pytest.mark.asyncio
    async def test_reset_hwm_moves_marks_to_epoch(
        self,
        client_with_mock_db: AsyncClient,
        mock_db_session: MagicMock,
        mock_sync_session: MagicMock,
    ) -> None:
        """Reset sets every mark to the epoch and commits."""
        mark = datetime(2026, 3, 1, 2, 0, tzinfo=UTC)
        row = OmopExportHwm(
            id=1,
            patients_hwm=mark,
            daily_entries_hwm=mark,
            validated_assessments_hwm=mark,
            patient_medications_hwm=mark,
            patient_diagnoses_hwm=mark,
            appointments_hwm=mark,
            passive_health_hwm=mark,
            journal_entries_hwm=mark,
            updated_at=mark,
        )
        mock_sync_session.get.return_value = row

        response = await client_with_mock_db.post("/export/omop/hwm/reset")

        assert response.status_code == 200
        assert row.patients_hwm == EPOCH
        assert row.journal_entries_hwm == EPOCH
        assert response.json()["hwm"]["patients_hwm"].startswith("1970-01-01T00:00:00")
        mock_db_session.commit.assert_awaited()

    @pytest.mark.asyncio
    async def test_reset_hwm_refused_while_run_processing(
        self,
        client_with_mock_db: AsyncClient,
        mock_db_session: MagicMock,
        mock_sync_session: MagicMock,
    ) -> None:
        """A processing run would re-stamp the marks, so the reset is refused."""
        mark = datetime(2026, 3, 1, 2, 0, tzinfo=UTC)
        row = OmopExportHwm(id=1, patients_hwm=mark, journal_entries_hwm=mark, updated_at=mark)
        mock_sync_session.get.return_value = row
        mock_sync_session.scalar.return_value = 1

        response = await client_with_mock_db.post("/export/omop/hwm/reset")

        assert response.status_code == 409
        assert "processing" in response.json()["detail"]
        assert row.patients_hwm == mark
        mock_db_session.commit.assert_not_awaited()
