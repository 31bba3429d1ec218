"""SQLAlchemy models for export bookkeeping: runs and high-water marks."""

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.schemas.base import ExportStatus, ExportTrigger, OutputMode

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class OmopExportRun(Base):
    """One OMOP export job.

    Transitions PENDING -> PROCESSING -> COMPLETED | FAILED. The status
    surface polled by operators is read straight from this row.
    """

    __tablename__ = "omop_export_runs"
    __table_args__ = (
        Index("idx_omop_export_runs_created_at", "created_at"),
    )

    status: Mapped[ExportStatus] = mapped_column(
        Enum(ExportStatus, name="export_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ExportStatus.PENDING,
        index=True,
    )
    triggered_by: Mapped[ExportTrigger] = mapped_column(
        Enum(ExportTrigger, name="export_trigger", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ExportTrigger.MANUAL,
    )
    output_mode: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=OutputMode.TSV_UPLOAD.value,
    )
    full_refresh: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    record_counts: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    file_urls: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<OmopExportRun(id={self.id}, status={self.status}, "
            f"triggered_by={self.triggered_by})>"
        )


class OmopExportHwm(Base):
    """Singleton row of per-source-entity high-water marks.

    Each column means "extracted through this instant" for one source
    entity type. The row is mutated once per successful run.
    """

    __tablename__ = "omop_export_hwm"
    __table_args__ = (
        CheckConstraint("id = 1", name="ck_omop_export_hwm_singleton"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)

    patients_hwm: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=EPOCH
    )
    daily_entries_hwm: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=EPOCH
    )
    validated_assessments_hwm: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=EPOCH
    )
    patient_medications_hwm: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=EPOCH
    )
    patient_diagnoses_hwm: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=EPOCH
    )
    appointments_hwm: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=EPOCH
    )
    passive_health_hwm: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=EPOCH
    )
    journal_entries_hwm: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=EPOCH
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<OmopExportHwm(id={self.id}, updated_at={self.updated_at})>"
