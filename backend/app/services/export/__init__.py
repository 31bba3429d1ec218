"""Incremental OMOP CDM v5.4 research export.

The orchestrator lives in ``app.services.export.orchestrator`` and is
imported from there; the entity mappers depend on this package.
"""

from app.services.export.errors import (
    ArtifactPublishError,
    ExportError,
    ExportRunNotFoundError,
    InvalidRunStateError,
    TableShapeError,
)
from app.services.export.identifiers import SequenceCounter, make_omop_id
from app.services.export.tsv import TableAccumulator, format_field, parse_tsv

__all__ = [
    "ArtifactPublishError",
    "ExportError",
    "ExportRunNotFoundError",
    "InvalidRunStateError",
    "SequenceCounter",
    "TableAccumulator",
    "TableShapeError",
    "format_field",
    "make_omop_id",
    "parse_tsv",
]
