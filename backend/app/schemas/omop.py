"""OMOP CDM v5.4 row structs for the research export.

One fixed pydantic model per target table. Field declaration order is the
column order of the published TSV file, so every row of a table shares one
header by construction.

Reference: https://ohdsi.github.io/CommonDataModel/cdm54.html
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.base import OmopTable

ENGLISH_LANGUAGE_CONCEPT_ID = 4180186


class OmopRow(BaseModel):
    """Base class for all exported OMOP rows."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def columns(cls) -> list[str]:
        """Column names in declared order."""
        return list(cls.model_fields)

    def values(self) -> list[object]:
        """Field values in declared column order."""
        return [getattr(self, name) for name in self.columns()]


class PersonRow(OmopRow):
    """PERSON table row. ``person_source_value`` holds the pseudonym."""

    person_id: int = Field(..., description="Person surrogate id")
    gender_concept_id: int = 0
    year_of_birth: int | None = None
    month_of_birth: int | None = None
    day_of_birth: int | None = None
    birth_datetime: datetime | None = None
    race_concept_id: int = 0
    ethnicity_concept_id: int = 0
    location_id: int | None = None
    provider_id: int | None = None
    care_site_id: int | None = None
    person_source_value: str = Field(..., description="Pseudonymized patient identifier")
    gender_source_value: str | None = None
    gender_source_concept_id: int = 0
    race_source_value: str | None = None
    race_source_concept_id: int = 0
    ethnicity_source_value: str | None = None
    ethnicity_source_concept_id: int = 0


class ObservationPeriodRow(OmopRow):
    """OBSERVATION_PERIOD table row."""

    observation_period_id: int
    person_id: int
    observation_period_start_date: date
    observation_period_end_date: date
    period_type_concept_id: int


class MeasurementRow(OmopRow):
    """MEASUREMENT table row."""

    measurement_id: int
    person_id: int
    measurement_concept_id: int
    measurement_date: date
    measurement_datetime: datetime | None = None
    measurement_time: str | None = None
    measurement_type_concept_id: int
    operator_concept_id: int = 0
    value_as_number: int | float | None = None
    value_as_concept_id: int = 0
    unit_concept_id: int = 0
    range_low: float | None = None
    range_high: float | None = None
    provider_id: int | None = None
    visit_occurrence_id: int | None = None
    visit_detail_id: int | None = None
    measurement_source_value: str | None = None
    measurement_source_concept_id: int = 0
    unit_source_value: str | None = None
    unit_source_concept_id: int = 0
    value_source_value: str | None = None
    measurement_event_id: int | None = None
    meas_event_field_concept_id: int = 0


class ObservationRow(OmopRow):
    """OBSERVATION table row."""

    observation_id: int
    person_id: int
    observation_concept_id: int
    observation_date: date
    observation_datetime: datetime | None = None
    observation_type_concept_id: int
    value_as_number: int | float | None = None
    value_as_string: str | None = None
    value_as_concept_id: int = 0
    qualifier_concept_id: int = 0
    unit_concept_id: int = 0
    provider_id: int | None = None
    visit_occurrence_id: int | None = None
    visit_detail_id: int | None = None
    observation_source_value: str | None = None
    observation_source_concept_id: int = 0
    unit_source_value: str | None = None
    qualifier_source_value: str | None = None
    value_source_value: str | None = None
    observation_event_id: int | None = None
    obs_event_field_concept_id: int = 0


class DrugExposureRow(OmopRow):
    """DRUG_EXPOSURE table row."""

    drug_exposure_id: int
    person_id: int
    drug_concept_id: int
    drug_exposure_start_date: date
    drug_exposure_start_datetime: datetime | None = None
    drug_exposure_end_date: date
    drug_exposure_end_datetime: datetime | None = None
    verbatim_end_date: date | None = None
    drug_type_concept_id: int
    stop_reason: str | None = None
    refills: int | None = None
    quantity: float | None = None
    days_supply: int | None = None
    sig: str | None = None
    route_concept_id: int = 0
    lot_number: str | None = None
    provider_id: int | None = None
    visit_occurrence_id: int | None = None
    visit_detail_id: int | None = None
    drug_source_value: str | None = None
    drug_source_concept_id: int = 0
    route_source_value: str | None = None
    dose_unit_source_value: str | None = None


class ConditionOccurrenceRow(OmopRow):
    """CONDITION_OCCURRENCE table row."""

    condition_occurrence_id: int
    person_id: int
    condition_concept_id: int
    condition_start_date: date
    condition_start_datetime: datetime | None = None
    condition_end_date: date | None = None
    condition_end_datetime: datetime | None = None
    condition_type_concept_id: int
    condition_status_concept_id: int = 0
    stop_reason: str | None = None
    provider_id: int | None = None
    visit_occurrence_id: int | None = None
    visit_detail_id: int | None = None
    condition_source_value: str | None = None
    condition_source_concept_id: int = 0
    condition_status_source_value: str | None = None


class VisitOccurrenceRow(OmopRow):
    """VISIT_OCCURRENCE table row."""

    visit_occurrence_id: int
    person_id: int
    visit_concept_id: int
    visit_start_date: date
    visit_start_datetime: datetime | None = None
    visit_end_date: date
    visit_end_datetime: datetime | None = None
    visit_type_concept_id: int
    provider_id: int | None = None
    care_site_id: int | None = None
    visit_source_value: str | None = None
    visit_source_concept_id: int = 0
    admitted_from_concept_id: int = 0
    admitted_from_source_value: str | None = None
    discharged_to_concept_id: int = 0
    discharged_to_source_value: str | None = None
    preceding_visit_occurrence_id: int | None = None


class DeviceExposureRow(OmopRow):
    """DEVICE_EXPOSURE table row."""

    device_exposure_id: int
    person_id: int
    device_concept_id: int
    device_exposure_start_date: date
    device_exposure_start_datetime: datetime | None = None
    device_exposure_end_date: date | None = None
    device_exposure_end_datetime: datetime | None = None
    device_type_concept_id: int
    unique_device_id: str | None = None
    production_id: str | None = None
    quantity: int | None = None
    provider_id: int | None = None
    visit_occurrence_id: int | None = None
    visit_detail_id: int | None = None
    device_source_value: str | None = None
    device_source_concept_id: int = 0
    unit_concept_id: int = 0
    unit_source_value: str | None = None
    unit_source_concept_id: int = 0


class NoteRow(OmopRow):
    """NOTE table row."""

    note_id: int
    person_id: int
    note_date: date
    note_datetime: datetime | None = None
    note_type_concept_id: int
    note_class_concept_id: int = 0
    note_title: str | None = None
    note_text: str
    encoding_concept_id: int = 0
    language_concept_id: int = ENGLISH_LANGUAGE_CONCEPT_ID
    provider_id: int | None = None
    visit_occurrence_id: int | None = None
    visit_detail_id: int | None = None
    note_source_value: str | None = None
    note_event_id: int | None = None
    note_event_field_concept_id: int = 0


ROW_MODELS: dict[OmopTable, type[OmopRow]] = {
    OmopTable.PERSON: PersonRow,
    OmopTable.OBSERVATION_PERIOD: ObservationPeriodRow,
    OmopTable.MEASUREMENT: MeasurementRow,
    OmopTable.OBSERVATION: ObservationRow,
    OmopTable.DRUG_EXPOSURE: DrugExposureRow,
    OmopTable.CONDITION_OCCURRENCE: ConditionOccurrenceRow,
    OmopTable.VISIT_OCCURRENCE: VisitOccurrenceRow,
    OmopTable.DEVICE_EXPOSURE: DeviceExposureRow,
    OmopTable.NOTE: NoteRow,
}
