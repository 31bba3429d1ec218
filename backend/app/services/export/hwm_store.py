"""High-water mark persistence.

A single row (``id = 1``) holds one "extracted through this instant"
timestamp per source entity type. The store never commits; advancing the
marks is part of the orchestrator's final transaction.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.models import EPOCH, OmopExportHwm
from app.schemas.base import SourceEntity

logger = logging.getLogger(__name__)

HWM_ROW_ID = 1

Marks = dict[SourceEntity, datetime]


def epoch_marks() -> Marks:
    """Every source entity at the epoch floor."""
    return dict.fromkeys(SourceEntity, EPOCH)


def marks_of(row: OmopExportHwm) -> Marks:
    return {entity: getattr(row, entity.value) for entity in SourceEntity}


class HwmStore:
    """Reads and stages the high-water mark row through a sync Session."""

    def __init__(self, session: Session):
        self.session = session

    def get_row(self) -> OmopExportHwm | None:
        return self.session.get(OmopExportHwm, HWM_ROW_ID)

    def _get_or_create_row(self) -> OmopExportHwm:
        row = self.get_row()
        if row is None:
            row = OmopExportHwm(id=HWM_ROW_ID, **{e.value: EPOCH for e in SourceEntity})
            self.session.add(row)
            logger.info("Created high-water mark row")
        return row

    def load(self) -> Marks:
        """Stored marks, or the epoch floor when the row does not exist yet."""
        row = self.get_row()
        if row is None:
            return epoch_marks()
        return marks_of(row)

    def epoch_floor(self) -> Marks:
        """Marks used by a full-refresh run."""
        return epoch_marks()

    def stage_advance(self, instant: datetime) -> OmopExportHwm:
        """Set every mark to ``instant``. Takes effect on the caller's commit."""
        row = self._get_or_create_row()
        for entity in SourceEntity:
            setattr(row, entity.value, instant)
        row.updated_at = instant
        return row

    def reset(self, now: datetime) -> OmopExportHwm:
        """Move every mark back to the epoch so the next run extracts everything."""
        row = self._get_or_create_row()
        for entity in SourceEntity:
            setattr(row, entity.value, EPOCH)
        row.updated_at = now
        return row
