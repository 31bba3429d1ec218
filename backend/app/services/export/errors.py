"""Exceptions raised by the OMOP export pipeline."""


class ExportError(Exception):
    """Base class for export pipeline failures."""


class InvalidRunStateError(ExportError):
    """An export run is not in a state that allows the requested transition."""

    def __init__(self, run_id: str, status: str, action: str) -> None:
        self.run_id = run_id
        self.status = status
        super().__init__(f"Cannot {action} export run {run_id} in status '{status}'")


class ExportRunNotFoundError(ExportError):
    """No export run exists with the given id."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Export run {run_id} not found")


class ArtifactPublishError(ExportError):
    """Uploading or signing a table artifact failed."""

    def __init__(self, table: str, reason: str) -> None:
        self.table = table
        super().__init__(f"Storage upload failed for {table}.tsv ({reason})")


class TableShapeError(ExportError):
    """A row's struct does not match the struct already buffered for its table."""
