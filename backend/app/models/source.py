"""SQLAlchemy models for the clinical source tables read by the export.

These tables belong to the monitoring platform. The export only reads
them, except for ``patients.omop_person_id`` which it assigns. Every
entity carries a ``patient_id`` and an ``updated_at`` timestamp used for
incremental selection against the high-water marks.
"""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class SourceRecordMixin:
    """Columns shared by every patient-owned source table."""

    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class Patient(Base):
    """Platform patient.

    ``omop_person_id`` is the integer person surrogate substituted for the
    UUID in every exported row.
    """

    __tablename__ = "patients"

    omop_person_id: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        unique=True,
    )
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(50), nullable=True)
    state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Patient(id={self.id}, omop_person_id={self.omop_person_id}, "
            f"is_active={self.is_active})>"
        )


class ConsentRecord(Base):
    """One consent decision. The latest record per type wins."""

    __tablename__ = "consent_records"
    __table_args__ = (
        Index("idx_consent_records_patient_type", "patient_id", "consent_type", "granted_at"),
    )

    patient_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
    )
    consent_type: Mapped[str] = mapped_column(String(50), nullable=False)
    granted: Mapped[bool] = mapped_column(Boolean, nullable=False)
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class DailyEntry(SourceRecordMixin, Base):
    """Daily check-in. Exported only once submitted."""

    __tablename__ = "daily_entries"

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    mood: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sleep_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    exercise_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sleep_quality: Mapped[int | None] = mapped_column(Integer, nullable=True)
    anxiety_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mania_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    coping: Mapped[int | None] = mapped_column(Integer, nullable=True)
    anhedonia_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    stress_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cognitive_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    appetite_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    social_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    suicidal_ideation: Mapped[int | None] = mapped_column(Integer, nullable=True)
    substance_use: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    racing_thoughts: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    decreased_sleep_need: Mapped[bool | None] = mapped_column(Boolean, nullable=True)


class ValidatedAssessment(SourceRecordMixin, Base):
    """Completed validated questionnaire (PHQ-9, GAD-7, ...)."""

    __tablename__ = "validated_assessments"

    scale: Mapped[str] = mapped_column(String(50), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class PatientMedication(SourceRecordMixin, Base):
    """Prescribed medication."""

    __tablename__ = "patient_medications"

    medication_name: Mapped[str] = mapped_column(String(255), nullable=False)
    rxnorm_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    dosage: Mapped[str | None] = mapped_column(String(255), nullable=True)
    prescribed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    discontinued_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PatientDiagnosis(SourceRecordMixin, Base):
    """ICD-10 coded diagnosis."""

    __tablename__ = "patient_diagnoses"

    icd10_code: Mapped[str] = mapped_column(String(20), nullable=False)
    diagnosis_name: Mapped[str] = mapped_column(String(255), nullable=False)
    diagnosed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Appointment(SourceRecordMixin, Base):
    """Scheduled or completed appointment."""

    __tablename__ = "appointments"

    appointment_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PassiveHealthSnapshot(SourceRecordMixin, Base):
    """Daily wearable summary."""

    __tablename__ = "passive_health_snapshots"

    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)
    step_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    heart_rate_avg: Mapped[float | None] = mapped_column(Float, nullable=True)
    hrv_sdnn: Mapped[float | None] = mapped_column(Float, nullable=True)
    data_source: Mapped[str | None] = mapped_column(String(100), nullable=True)


class JournalEntry(SourceRecordMixin, Base):
    """Free-text journal entry. Exported only when shared with the care team."""

    __tablename__ = "journal_entries"

    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    shared_with_care_team: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
