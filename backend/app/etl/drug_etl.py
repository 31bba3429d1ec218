"""Drug Exposure mapper for patient medications.

RxNorm codes are kept as source values only; no RxNorm to standard drug
concept mapping is curated, so ``drug_concept_id`` is always 0.

Medications still active have no discontinuation date. Their exposure
ends on the run's as-of date, while ``verbatim_end_date`` stays empty.
"""

from datetime import date

from app.etl.base import to_date, to_datetime
from app.etl.concepts import UNKNOWN_CONCEPT_ID, resolve_type_concept, table_offset
from app.models import PatientMedication
from app.schemas.base import OmopTable
from app.schemas.omop import DrugExposureRow
from app.services.export.identifiers import make_omop_id


def map_drug_exposure(
    medication: PatientMedication,
    person_id: int,
    start_sequence: int,
    as_of: date,
) -> list[DrugExposureRow]:
    """Map one medication to one DRUG_EXPOSURE row.

    Args:
        medication: Source medication.
        person_id: Person surrogate.
        start_sequence: First free drug_exposure sequence for the person.
        as_of: End date used for medications that are still active.
    """
    discontinued = medication.discontinued_at
    end = discontinued if discontinued is not None else as_of
    return [
        DrugExposureRow(
            drug_exposure_id=make_omop_id(
                person_id, table_offset(OmopTable.DRUG_EXPOSURE), start_sequence
            ),
            person_id=person_id,
            drug_concept_id=UNKNOWN_CONCEPT_ID,
            drug_exposure_start_date=to_date(medication.prescribed_at),
            drug_exposure_start_datetime=to_datetime(medication.prescribed_at),
            drug_exposure_end_date=to_date(end),
            drug_exposure_end_datetime=to_datetime(end),
            verbatim_end_date=to_date(discontinued) if discontinued is not None else None,
            drug_type_concept_id=resolve_type_concept("drug_from_prescription"),
            sig=medication.dosage,
            drug_source_value=medication.rxnorm_code or medication.medication_name,
            dose_unit_source_value=medication.dosage,
        )
    ]
