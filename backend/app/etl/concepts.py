"""Static OMOP concept dictionary for the research export.

Concept ids are configuration data curated outside this service. They are
never looked up or computed at runtime. A source key without an entry
resolves to ``UNKNOWN_CONCEPT_ID`` (0, "No matching concept") and the
verbatim key is still written to the row's ``*_source_value`` column.

Reference: https://athena.ohdsi.org

Tables:
    - GENDER_CONCEPT_MAP: patient gender -> gender concept
    - TYPE_CONCEPTS: provenance ("type concept") per row origin
    - MEASUREMENT_CONCEPTS: daily check-in numeric fields (LOINC, UCUM unit)
    - ASSESSMENT_CONCEPTS: validated scales (LOINC panel codes)
    - OBSERVATION_CONCEPTS: daily check-in flags (SNOMED)
    - VISIT_CONCEPTS: appointment type -> visit concept
    - ICD10_CONDITION_CONCEPTS: ICD-10-CM -> SNOMED condition concept
    - PASSIVE_HEALTH_CONCEPTS: wearable metrics
    - TABLE_OFFSETS: identifier offset per target table
"""

from dataclasses import dataclass

from app.schemas.base import OmopTable

UNKNOWN_CONCEPT_ID = 0


@dataclass(frozen=True)
class ConceptDef:
    """One static concept entry."""

    concept_id: int
    name: str
    code: str = ""
    unit_concept_id: int = UNKNOWN_CONCEPT_ID
    unit_source_value: str = ""


# Gender
GENDER_CONCEPT_MAP = {
    "male": 8507,
    "female": 8532,
    "non_binary": UNKNOWN_CONCEPT_ID,
    "other": UNKNOWN_CONCEPT_ID,
    "prefer_not_to_say": UNKNOWN_CONCEPT_ID,
}

# Type concepts (row provenance)
TYPE_CONCEPTS = {
    "patient_self_report": 44818702,
    "period_from_ehr": 44814724,
    "condition_from_ehr": 32020,
    "drug_from_prescription": 38000177,
    "visit_from_ehr": 44818518,
    "note_from_ehr": 44814645,
    "device_inferred": 44818707,
}

SCORE_UNIT = "{score}"

# Daily check-in numeric fields, in emission order
MEASUREMENT_CONCEPTS: dict[str, ConceptDef] = {
    "mood": ConceptDef(40758889, "Mood score", "72828-7", 0, SCORE_UNIT),
    "sleep_hours": ConceptDef(3024171, "Sleep duration", "65968-7", 8505, "h"),
    "exercise_minutes": ConceptDef(40762499, "Exercise duration", "55423-8", 8550, "min"),
    "sleep_quality": ConceptDef(0, "Sleep quality score", "", 0, SCORE_UNIT),
    "anxiety_score": ConceptDef(0, "Anxiety score", "", 0, SCORE_UNIT),
    "mania_score": ConceptDef(0, "Mania score", "", 0, SCORE_UNIT),
    "coping": ConceptDef(0, "Coping score", "", 0, SCORE_UNIT),
    "anhedonia_score": ConceptDef(0, "Anhedonia score", "", 0, SCORE_UNIT),
    "stress_score": ConceptDef(0, "Stress score", "", 0, SCORE_UNIT),
    "cognitive_score": ConceptDef(0, "Cognitive function score", "", 0, SCORE_UNIT),
    "appetite_score": ConceptDef(0, "Appetite score", "", 0, SCORE_UNIT),
    "social_score": ConceptDef(0, "Social engagement score", "", 0, SCORE_UNIT),
}

# Validated assessment scales
ASSESSMENT_CONCEPTS: dict[str, ConceptDef] = {
    "PHQ-9": ConceptDef(40758882, "PHQ-9 total score", "44249-1", 0, SCORE_UNIT),
    "GAD-7": ConceptDef(40766345, "GAD-7 total score", "69737-5", 0, SCORE_UNIT),
    "ISI": ConceptDef(0, "Insomnia Severity Index", "89794-0", 0, SCORE_UNIT),
    "C-SSRS": ConceptDef(0, "Columbia Suicide Severity Rating Scale", "89213-1", 0, SCORE_UNIT),
    "ASRM": ConceptDef(0, "Altman Self-Rating Mania Scale", "", 0, SCORE_UNIT),
    "WHODAS": ConceptDef(0, "WHO Disability Assessment Schedule", "", 0, SCORE_UNIT),
}

# Daily check-in flags (SNOMED)
OBSERVATION_CONCEPTS: dict[str, ConceptDef] = {
    "suicidal_ideation": ConceptDef(4150489, "Suicidal thoughts", "6471006"),
    "substance_use": ConceptDef(4041306, "Substance use"),
    "racing_thoughts": ConceptDef(4326432, "Flight of ideas", "71978007"),
    "decreased_sleep_need": ConceptDef(0, "Decreased need for sleep"),
}

# Appointment type -> visit concept
VISIT_CONCEPTS = {
    "telehealth": 5083,
    "in_person": 9202,
    "phone": 5083,
    "other": UNKNOWN_CONCEPT_ID,
}

# ICD-10-CM -> SNOMED standard condition concept
ICD10_CONDITION_CONCEPTS = {
    # Depressive episode
    "F32.0": 4152280,
    "F32.1": 4153428,
    "F32.2": 4152011,
    "F32.9": 440383,
    # Recurrent depression
    "F33.0": 4282096,
    "F33.1": 4283893,
    "F33.2": 4281438,
    "F33.9": 4152011,
    # Anxiety
    "F41.0": 436676,
    "F41.1": 441542,
    "F41.9": 441542,
    # Bipolar
    "F31.0": 436665,
    "F31.1": 436665,
    "F31.2": 436665,
    "F31.9": 436665,
    # PTSD
    "F43.10": 4245975,
    "F43.11": 4245975,
    "F43.12": 4245975,
    # OCD
    "F42.2": 435783,
    "F42.9": 435783,
    # Eating disorders
    "F50.00": 436073,
    "F50.01": 436073,
    "F50.02": 436073,
    "F50.2": 440704,
    "F50.81": 4068838,
    # Insomnia
    "F51.01": 436962,
    "F51.02": 436962,
}

# Wearable metrics, in emission order
PASSIVE_HEALTH_CONCEPTS: dict[str, ConceptDef] = {
    "step_count": ConceptDef(40771067, "Step count", "55423-8", 8510, "steps"),
    "heart_rate_avg": ConceptDef(3027018, "Heart rate", "8867-4", 8541, "bpm"),
    "hrv_sdnn": ConceptDef(0, "Heart rate variability SDNN", "", 8529, "ms"),
}

# Identifier offset per target table (person uses the surrogate itself)
TABLE_OFFSETS = {
    OmopTable.OBSERVATION_PERIOD: 0,
    OmopTable.MEASUREMENT: 1,
    OmopTable.OBSERVATION: 2,
    OmopTable.DRUG_EXPOSURE: 3,
    OmopTable.CONDITION_OCCURRENCE: 4,
    OmopTable.VISIT_OCCURRENCE: 5,
    OmopTable.DEVICE_EXPOSURE: 6,
    OmopTable.NOTE: 7,
}


def _resolve(table: dict[str, ConceptDef], key: str) -> ConceptDef:
    concept = table.get(key)
    if concept is None:
        return ConceptDef(UNKNOWN_CONCEPT_ID, key)
    return concept


def resolve_gender(gender: str | None) -> int:
    """Map a patient gender to its concept id."""
    if not gender:
        return UNKNOWN_CONCEPT_ID
    return GENDER_CONCEPT_MAP.get(gender.lower(), UNKNOWN_CONCEPT_ID)


def resolve_type_concept(provenance: str) -> int:
    """Map a row provenance key to its type concept id."""
    return TYPE_CONCEPTS.get(provenance, UNKNOWN_CONCEPT_ID)


def resolve_measurement(field_name: str) -> ConceptDef:
    """Resolve a daily check-in numeric field."""
    return _resolve(MEASUREMENT_CONCEPTS, field_name)


def resolve_assessment(scale: str) -> ConceptDef:
    """Resolve a validated assessment scale. Unknown scales keep a score unit."""
    concept = ASSESSMENT_CONCEPTS.get(scale)
    if concept is None:
        return ConceptDef(UNKNOWN_CONCEPT_ID, scale, unit_source_value=SCORE_UNIT)
    return concept


def resolve_observation(flag_name: str) -> ConceptDef:
    """Resolve a daily check-in flag."""
    return _resolve(OBSERVATION_CONCEPTS, flag_name)


def resolve_visit(appointment_type: str | None) -> int:
    """Map an appointment type to its visit concept id."""
    return VISIT_CONCEPTS.get(appointment_type or "other", UNKNOWN_CONCEPT_ID)


def resolve_condition(icd10_code: str) -> int:
    """Map an ICD-10-CM code to its standard condition concept id.

    Codes are matched after trimming and upper-casing.
    """
    return ICD10_CONDITION_CONCEPTS.get(icd10_code.strip().upper(), UNKNOWN_CONCEPT_ID)


def resolve_passive_health(metric: str) -> ConceptDef:
    """Resolve a wearable metric."""
    return _resolve(PASSIVE_HEALTH_CONCEPTS, metric)


def table_offset(table: OmopTable) -> int:
    """Identifier offset for a target table.

    Raises:
        KeyError: For ``person``, which has no offset.
    """
    return TABLE_OFFSETS[table]
