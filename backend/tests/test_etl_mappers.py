"""Tests for the OMOP entity mappers."""

from datetime import UTC, date, datetime, timedelta, timezone

from app.core.privacy import pseudonymize
from app.etl import (
    map_assessment_measurement,
    map_condition_occurrence,
    map_daily_entry_measurements,
    map_daily_entry_observations,
    map_device_exposure,
    map_drug_exposure,
    map_journal_note,
    map_observation_period,
    map_passive_health_measurements,
    map_person,
    map_visit_occurrence,
)
from app.etl.base import format_value, to_date, to_datetime
from app.models import (
    Appointment,
    DailyEntry,
    JournalEntry,
    PassiveHealthSnapshot,
    Patient,
    PatientDiagnosis,
    PatientMedication,
    ValidatedAssessment,
)

PATIENT_ID = "0b6f1c9e-4b7a-4c5e-9d7e-2f3a1b2c3d4e"
PERSON_ID = 7


class TestBaseHelpers:
    """Tests for date and value normalization."""

    def test_to_datetime_converts_to_naive_utc(self) -> None:
        value = datetime(2025, 3, 1, 23, 30, 15, 999, tzinfo=timezone(timedelta(hours=-5)))
        assert to_datetime(value) == datetime(2025, 3, 2, 4, 30, 15)

    def test_to_datetime_date_is_midnight(self) -> None:
        assert to_datetime(date(2025, 3, 1)) == datetime(2025, 3, 1, 0, 0)

    def test_to_date_uses_utc_day(self) -> None:
        value = datetime(2025, 3, 1, 23, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert to_date(value) == date(2025, 3, 2)

    def test_format_value(self) -> None:
        assert format_value(7.0) == "7"
        assert format_value(7.5) == "7.5"
        assert format_value(True) == "1"
        assert format_value(3) == "3"


class TestPersonMapper:
    """Tests for PERSON and OBSERVATION_PERIOD rows."""

    def test_person_is_pseudonymized(self) -> None:
        patient = Patient(id=PATIENT_ID, gender="female", date_of_birth=date(1990, 5, 17))

        row = map_person(patient, PERSON_ID)

        assert row.person_id == PERSON_ID
        assert row.gender_concept_id == 8532
        assert (row.year_of_birth, row.month_of_birth, row.day_of_birth) == (1990, 5, 17)
        assert row.person_source_value == pseudonymize(PATIENT_ID)
        assert PATIENT_ID not in [str(v) for v in row.values()]

    def test_person_without_birth_date(self) -> None:
        row = map_person(Patient(id=PATIENT_ID), PERSON_ID)

        assert row.year_of_birth is None
        assert row.birth_datetime is None
        assert row.gender_concept_id == 0

    def test_observation_period(self) -> None:
        rows = map_observation_period((date(2025, 1, 1), date(2025, 2, 1)), PERSON_ID, 0)

        assert len(rows) == 1
        assert rows[0].observation_period_id == 7_000_000
        assert rows[0].observation_period_start_date == date(2025, 1, 1)
        assert rows[0].observation_period_end_date == date(2025, 2, 1)


class TestMeasurementMappers:
    """Tests for daily entry, assessment and wearable measurements."""

    def test_mood_only_entries_have_consecutive_ids(self) -> None:
        """Three mood-only check-ins give measurement ids 1..3 in sequence."""
        sequence = 0
        ids = []
        for day in (1, 2, 3):
            entry = DailyEntry(patient_id=PATIENT_ID, entry_date=date(2025, 1, day), mood=day + 4)
            rows = map_daily_entry_measurements(entry, 1, sequence)
            sequence += len(rows)
            ids.extend(row.measurement_id for row in rows)

        assert ids == [1_100_000, 1_100_001, 1_100_002]

    def test_null_fields_are_skipped(self) -> None:
        entry = DailyEntry(
            patient_id=PATIENT_ID, entry_date=date(2025, 1, 1), mood=6, sleep_hours=7.5
        )

        rows = map_daily_entry_measurements(entry, PERSON_ID, 4)

        assert [r.measurement_source_value for r in rows] == ["72828-7", "65968-7"]
        assert [r.measurement_id for r in rows] == [7_100_004, 7_100_005]
        assert rows[1].value_as_number == 7.5
        assert rows[1].unit_source_value == "h"
        assert rows[0].measurement_datetime == datetime(2025, 1, 1)

    def test_unmapped_field_keeps_field_name(self) -> None:
        entry = DailyEntry(patient_id=PATIENT_ID, entry_date=date(2025, 1, 1), stress_score=3)

        [row] = map_daily_entry_measurements(entry, PERSON_ID, 0)

        assert row.measurement_concept_id == 0
        assert row.measurement_source_value == "stress_score"
        assert row.value_source_value == "3"

    def test_empty_entry_produces_nothing(self) -> None:
        entry = DailyEntry(patient_id=PATIENT_ID, entry_date=date(2025, 1, 1))
        assert map_daily_entry_measurements(entry, PERSON_ID, 0) == []

    def test_assessment(self) -> None:
        assessment = ValidatedAssessment(
            patient_id=PATIENT_ID,
            scale="PHQ-9",
            score=14,
            completed_at=datetime(2025, 1, 5, 10, 0, tzinfo=UTC),
        )

        [row] = map_assessment_measurement(assessment, PERSON_ID, 2)

        assert row.measurement_id == 7_100_002
        assert row.measurement_concept_id == 40758882
        assert row.measurement_source_value == "44249-1"
        assert row.value_as_number == 14
        assert row.measurement_date == date(2025, 1, 5)

    def test_passive_health(self) -> None:
        snapshot = PassiveHealthSnapshot(
            patient_id=PATIENT_ID,
            snapshot_date=date(2025, 1, 5),
            step_count=8000,
            hrv_sdnn=42.5,
        )

        rows = map_passive_health_measurements(snapshot, PERSON_ID, 0)

        assert [r.unit_source_value for r in rows] == ["steps", "ms"]
        assert [r.measurement_id for r in rows] == [7_100_000, 7_100_001]


class TestObservationMapper:
    """Tests for daily check-in flags."""

    def test_only_set_flags_emit_rows(self) -> None:
        entry = DailyEntry(
            patient_id=PATIENT_ID,
            entry_date=date(2025, 1, 1),
            suicidal_ideation=0,
            substance_use=False,
            racing_thoughts=True,
        )

        [row] = map_daily_entry_observations(entry, PERSON_ID, 0)

        assert row.observation_id == 7_200_000
        assert row.observation_source_value == "71978007"
        assert row.value_as_number == 1

    def test_suicidal_ideation_severity(self) -> None:
        entry = DailyEntry(patient_id=PATIENT_ID, entry_date=date(2025, 1, 1), suicidal_ideation=2)

        [row] = map_daily_entry_observations(entry, PERSON_ID, 0)

        assert row.observation_concept_id == 4150489
        assert row.value_as_number == 2
        assert row.value_source_value == "2"


class TestDrugMapper:
    """Tests for DRUG_EXPOSURE rows."""

    def test_active_medication_ends_on_as_of_date(self) -> None:
        medication = PatientMedication(
            patient_id=PATIENT_ID,
            medication_name="Sertraline",
            rxnorm_code="36437",
            dosage="50 mg",
            prescribed_at=datetime(2025, 1, 1, 9, 0, tzinfo=UTC),
        )

        [row] = map_drug_exposure(medication, PERSON_ID, 0, date(2025, 3, 1))

        assert row.drug_exposure_id == 7_300_000
        assert row.drug_concept_id == 0
        assert row.drug_exposure_end_date == date(2025, 3, 1)
        assert row.verbatim_end_date is None
        assert row.drug_source_value == "36437"
        assert row.sig == "50 mg"

    def test_discontinued_medication(self) -> None:
        medication = PatientMedication(
            patient_id=PATIENT_ID,
            medication_name="Lithium",
            prescribed_at=datetime(2025, 1, 1, tzinfo=UTC),
            discontinued_at=datetime(2025, 2, 1, tzinfo=UTC),
        )

        [row] = map_drug_exposure(medication, PERSON_ID, 0, date(2025, 3, 1))

        assert row.drug_exposure_end_date == date(2025, 2, 1)
        assert row.verbatim_end_date == date(2025, 2, 1)
        assert row.drug_source_value == "Lithium"


class TestConditionVisitDeviceNote:
    """Tests for the one-row-per-source mappers."""

    def test_condition_active_and_resolved(self) -> None:
        diagnosis = PatientDiagnosis(
            patient_id=PATIENT_ID,
            icd10_code="F41.1",
            diagnosis_name="Generalized anxiety disorder",
            diagnosed_at=datetime(2024, 6, 1, tzinfo=UTC),
        )
        [active] = map_condition_occurrence(diagnosis, PERSON_ID, 0)
        diagnosis.resolved_at = datetime(2025, 1, 1, tzinfo=UTC)
        [resolved] = map_condition_occurrence(diagnosis, PERSON_ID, 1)

        assert active.condition_concept_id == 441542
        assert active.condition_status_source_value == "active"
        assert active.condition_end_date is None
        assert resolved.condition_occurrence_id == 7_400_001
        assert resolved.condition_status_source_value == "resolved"
        assert resolved.condition_end_date == date(2025, 1, 1)

    def test_visit_without_end_or_type(self) -> None:
        scheduled = datetime(2025, 2, 3, 15, 0, tzinfo=UTC)
        appointment = Appointment(patient_id=PATIENT_ID, scheduled_at=scheduled)

        [row] = map_visit_occurrence(appointment, PERSON_ID, 0)

        assert row.visit_occurrence_id == 7_500_000
        assert row.visit_concept_id == 0
        assert row.visit_source_value == "other"
        assert row.visit_end_datetime == row.visit_start_datetime == datetime(2025, 2, 3, 15, 0)

    def test_device_exposure(self) -> None:
        snapshot = PassiveHealthSnapshot(patient_id=PATIENT_ID, snapshot_date=date(2025, 1, 5))

        [row] = map_device_exposure(snapshot, PERSON_ID, 3)

        assert row.device_exposure_id == 7_600_003
        assert row.device_source_value == "wearable"
        assert row.device_exposure_start_date == row.device_exposure_end_date

    def test_journal_note(self) -> None:
        journal = JournalEntry(
            patient_id=PATIENT_ID,
            title="Week one",
            content="Slept better",
            shared_with_care_team=True,
            created_at=datetime(2025, 1, 10, 20, 0, tzinfo=UTC),
        )

        [row] = map_journal_note(journal, PERSON_ID, 0)

        assert row.note_id == 7_700_000
        assert row.note_text == "Slept better"
        assert row.note_source_value == "patient_journal"
        assert row.language_concept_id == 4180186
