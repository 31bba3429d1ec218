"""SQLAlchemy ORM models for the OMOP research export.

All models inherit from Base which provides:
- id: UUID primary key (the HWM singleton overrides it with ``id = 1``)
- created_at: Timestamp

Models:
- Patient, ConsentRecord and the seven clinical source tables (read-only)
- OmopExportRun, OmopExportHwm (export bookkeeping)
"""

from app.core.database import Base
from app.models.export import EPOCH, OmopExportHwm, OmopExportRun
from app.models.source import (
    Appointment,
    ConsentRecord,
    DailyEntry,
    JournalEntry,
    PassiveHealthSnapshot,
    Patient,
    PatientDiagnosis,
    PatientMedication,
    ValidatedAssessment,
)

__all__ = [
    "Base",
    "EPOCH",
    "Patient",
    "ConsentRecord",
    "DailyEntry",
    "ValidatedAssessment",
    "PatientMedication",
    "PatientDiagnosis",
    "Appointment",
    "PassiveHealthSnapshot",
    "JournalEntry",
    "OmopExportRun",
    "OmopExportHwm",
]
