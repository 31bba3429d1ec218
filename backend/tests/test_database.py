"""Tests for database configuration and the export bookkeeping models."""

from unittest.mock import MagicMock, patch

from sqlalchemy.orm import Session

from app.core import database as database_module
from app.core.config import settings
from app.core.database import Base, get_sync_session
from app.models import OmopExportHwm, OmopExportRun, Patient
from app.models.export import EPOCH
from app.schemas.base import SourceEntity


class TestSettings:
    """Test application settings."""

    def test_database_url_configured(self) -> None:
        assert "postgresql" in settings.database_url

    def test_sync_database_url(self) -> None:
        """Sync URL drops the asyncpg driver."""
        assert "+asyncpg" not in settings.sync_database_url
        assert settings.sync_database_url.startswith("postgresql")

    def test_signed_url_expiry_default(self) -> None:
        assert settings.signed_url_expiry_hours == 48


class TestSyncSession:
    """Test the worker session factory."""

    def teardown_method(self) -> None:
        database_module._sync_engine = None

    @patch("app.core.database.create_engine")
    def test_sync_engine_created_once(self, mock_create_engine: MagicMock) -> None:
        database_module._sync_engine = None

        first = database_module.get_sync_engine()
        second = database_module.get_sync_engine()

        assert first is second
        mock_create_engine.assert_called_once()
        assert mock_create_engine.call_args[0][0] == settings.sync_database_url

    @patch("app.core.database.create_engine")
    def test_sync_session_keeps_objects_after_commit(
        self, mock_create_engine: MagicMock
    ) -> None:
        database_module._sync_engine = None

        session = get_sync_session()

        assert isinstance(session, Session)
        assert session.expire_on_commit is False


class TestExportModels:
    """Test export bookkeeping table definitions."""

    def test_run_inherits_base_columns(self) -> None:
        assert issubclass(OmopExportRun, Base)
        assert "id" in OmopExportRun.__table__.c
        assert "created_at" in OmopExportRun.__table__.c

    def test_run_status_is_indexed(self) -> None:
        assert OmopExportRun.__table__.c.status.index is True

    def test_hwm_has_integer_singleton_key(self) -> None:
        id_col = OmopExportHwm.__table__.c.id
        assert "INTEGER" in str(id_col.type).upper()
        assert id_col.default.arg == 1

    def test_hwm_has_column_per_source_entity(self) -> None:
        for entity in SourceEntity:
            column = OmopExportHwm.__table__.c[entity.value]
            assert column.nullable is False
            assert column.default.arg == EPOCH

    def test_patient_person_id_is_unique(self) -> None:
        assert Patient.__table__.c.omop_person_id.unique is True
