"""Device Exposure mapper for wearable snapshots.

Each snapshot records that a wearable was in use on that day. The same
snapshot also yields MEASUREMENT rows (see ``measurement_etl``); the two
tables keep separate sequence counters.
"""

from app.etl.base import to_date, to_datetime
from app.etl.concepts import UNKNOWN_CONCEPT_ID, resolve_type_concept, table_offset
from app.models import PassiveHealthSnapshot
from app.schemas.base import OmopTable
from app.schemas.omop import DeviceExposureRow
from app.services.export.identifiers import make_omop_id

DEFAULT_DEVICE_SOURCE = "wearable"


def map_device_exposure(
    snapshot: PassiveHealthSnapshot,
    person_id: int,
    start_sequence: int,
) -> list[DeviceExposureRow]:
    """Map one snapshot to one DEVICE_EXPOSURE row."""
    return [
        DeviceExposureRow(
            device_exposure_id=make_omop_id(
                person_id, table_offset(OmopTable.DEVICE_EXPOSURE), start_sequence
            ),
            person_id=person_id,
            device_concept_id=UNKNOWN_CONCEPT_ID,
            device_exposure_start_date=to_date(snapshot.snapshot_date),
            device_exposure_start_datetime=to_datetime(snapshot.snapshot_date),
            device_exposure_end_date=to_date(snapshot.snapshot_date),
            device_exposure_end_datetime=to_datetime(snapshot.snapshot_date),
            device_type_concept_id=resolve_type_concept("device_inferred"),
            device_source_value=snapshot.data_source or DEFAULT_DEVICE_SOURCE,
        )
    ]
