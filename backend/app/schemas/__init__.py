"""Pydantic schemas for the OMOP research export."""

from app.schemas.base import (
    ExportStatus,
    ExportTrigger,
    OmopTable,
    OutputMode,
    SourceEntity,
)
from app.schemas.export import (
    OmopExportHwm,
    OmopExportHwmResetResponse,
    OmopExportJobData,
    OmopExportRequest,
    OmopExportRun,
    OmopExportRunList,
    OmopExportTriggerResponse,
)
from app.schemas.omop import (
    ROW_MODELS,
    ConditionOccurrenceRow,
    DeviceExposureRow,
    DrugExposureRow,
    MeasurementRow,
    NoteRow,
    ObservationPeriodRow,
    ObservationRow,
    OmopRow,
    PersonRow,
    VisitOccurrenceRow,
)

__all__ = [
    # Enums
    "ExportStatus",
    "ExportTrigger",
    "OmopTable",
    "OutputMode",
    "SourceEntity",
    # Export API
    "OmopExportHwm",
    "OmopExportHwmResetResponse",
    "OmopExportJobData",
    "OmopExportRequest",
    "OmopExportRun",
    "OmopExportRunList",
    "OmopExportTriggerResponse",
    # OMOP rows
    "ROW_MODELS",
    "ConditionOccurrenceRow",
    "DeviceExposureRow",
    "DrugExposureRow",
    "MeasurementRow",
    "NoteRow",
    "ObservationPeriodRow",
    "ObservationRow",
    "OmopRow",
    "PersonRow",
    "VisitOccurrenceRow",
]
