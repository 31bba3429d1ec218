"""Base schemas and enums for the OMOP research export."""

from enum import Enum


class ExportStatus(str, Enum):
    """Lifecycle of an export run.

    PENDING -> PROCESSING -> COMPLETED | FAILED
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ExportTrigger(str, Enum):
    """What submitted an export run."""

    NIGHTLY = "nightly"
    MANUAL = "manual"


class OutputMode(str, Enum):
    """How export artifacts are delivered."""

    TSV_UPLOAD = "tsv_upload"


class SourceEntity(str, Enum):
    """Source entity types read incrementally by the export.

    The value is the name of the entity's column on the high-water mark row.
    """

    PATIENTS = "patients_hwm"
    DAILY_ENTRIES = "daily_entries_hwm"
    VALIDATED_ASSESSMENTS = "validated_assessments_hwm"
    PATIENT_MEDICATIONS = "patient_medications_hwm"
    PATIENT_DIAGNOSES = "patient_diagnoses_hwm"
    APPOINTMENTS = "appointments_hwm"
    PASSIVE_HEALTH = "passive_health_hwm"
    JOURNAL_ENTRIES = "journal_entries_hwm"


class OmopTable(str, Enum):
    """OMOP CDM v5.4 tables produced by the export, in publication order."""

    PERSON = "person"
    OBSERVATION_PERIOD = "observation_period"
    MEASUREMENT = "measurement"
    OBSERVATION = "observation"
    DRUG_EXPOSURE = "drug_exposure"
    CONDITION_OCCURRENCE = "condition_occurrence"
    VISIT_OCCURRENCE = "visit_occurrence"
    DEVICE_EXPOSURE = "device_exposure"
    NOTE = "note"
