"""Export run and high-water mark API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.base import ExportStatus, ExportTrigger


class OmopExportRequest(BaseModel):
    """Request body for triggering an OMOP export."""

    full_refresh: bool = Field(
        default=False,
        description="Reset all high-water marks before extracting",
    )


class OmopExportJobData(BaseModel):
    """Payload carried by an export job on the queue.

    The nightly scheduler and the manual trigger submit the same shape.
    """

    model_config = ConfigDict(populate_by_name=True)

    export_run_id: str = Field(..., alias="exportRunId", description="Export run identifier")
    triggered_by: ExportTrigger = Field(
        ..., alias="triggeredBy", description="What submitted the run"
    )
    full_refresh: bool = Field(
        default=False, alias="fullRefresh", description="Extract from the epoch"
    )


class OmopExportTriggerResponse(BaseModel):
    """Response from triggering an export."""

    id: str = Field(..., description="Export run identifier")
    status: ExportStatus = Field(..., description="Initial run status")
    message: str = Field(..., description="Human readable summary")


class OmopExportRun(BaseModel):
    """Status surface of one export run."""

    id: str = Field(..., description="Export run identifier")
    status: ExportStatus = Field(..., description="Current run status")
    triggered_by: ExportTrigger = Field(..., description="What submitted the run")
    output_mode: str = Field(..., description="Artifact delivery mode")
    full_refresh: bool = Field(default=False, description="Whether marks were ignored")
    record_counts: dict[str, int] | None = Field(None, description="Rows written per OMOP table")
    file_urls: dict[str, str] | None = Field(None, description="Signed download URL per OMOP table")
    error_message: str | None = Field(None, description="Failure reason for failed runs")
    started_at: datetime | None = Field(None, description="When processing started")
    completed_at: datetime | None = Field(None, description="When the run completed")
    created_at: datetime = Field(..., description="When the run was created")

    model_config = ConfigDict(from_attributes=True)


class OmopExportRunList(BaseModel):
    """Paginated list of export runs, newest first."""

    items: list[OmopExportRun]
    total: int
    page: int
    limit: int
    has_next: bool


class OmopExportHwm(BaseModel):
    """Current high-water marks, one per source entity."""

    patients_hwm: datetime
    daily_entries_hwm: datetime
    validated_assessments_hwm: datetime
    patient_medications_hwm: datetime
    patient_diagnoses_hwm: datetime
    appointments_hwm: datetime
    passive_health_hwm: datetime
    journal_entries_hwm: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class OmopExportHwmResetResponse(BaseModel):
    """Response from resetting the high-water marks."""

    message: str
    hwm: OmopExportHwm
