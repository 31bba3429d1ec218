"""Entity mappers from platform source rows to OMOP CDM rows.

Architecture:
    Source query -> mapper(row, person_id, start_sequence) -> Accumulator

Modules:
    - concepts: static concept dictionary and resolvers
    - person_etl: Patient -> Person, check-in date range -> ObservationPeriod
    - measurement_etl: DailyEntry / ValidatedAssessment / PassiveHealthSnapshot -> Measurement
    - observation_etl: DailyEntry flags -> Observation
    - drug_etl: PatientMedication -> DrugExposure
    - condition_etl: PatientDiagnosis -> ConditionOccurrence
    - visit_etl: Appointment -> VisitOccurrence
    - device_etl: PassiveHealthSnapshot -> DeviceExposure
    - note_etl: JournalEntry -> Note
"""

from app.etl.condition_etl import map_condition_occurrence
from app.etl.device_etl import map_device_exposure
from app.etl.drug_etl import map_drug_exposure
from app.etl.measurement_etl import (
    map_assessment_measurement,
    map_daily_entry_measurements,
    map_passive_health_measurements,
)
from app.etl.note_etl import map_journal_note
from app.etl.observation_etl import map_daily_entry_observations
from app.etl.person_etl import map_observation_period, map_person
from app.etl.visit_etl import map_visit_occurrence

__all__ = [
    "map_assessment_measurement",
    "map_condition_occurrence",
    "map_daily_entry_measurements",
    "map_daily_entry_observations",
    "map_device_exposure",
    "map_drug_exposure",
    "map_journal_note",
    "map_observation_period",
    "map_passive_health_measurements",
    "map_person",
    "map_visit_occurrence",
]
