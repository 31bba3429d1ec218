"""Audit logging for research export operations.

Provides logging for:
- Export triggers (manual and nightly)
- Per-table artifact publication
- High-water mark resets

Research exports leave the platform, so every publication is audited.
Audit events carry export run ids and table names only; they never
carry patient identifiers.
"""

import logging
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

# Separate audit logger for security-critical events
audit_logger = logging.getLogger("audit")


class AuditAction(str, Enum):
    """Types of auditable actions."""

    TRIGGER = "trigger"
    EXPORT = "export"
    RESET = "reset"
    ERROR = "error"


class AuditEvent(BaseModel):
    """Audit event record."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    action: AuditAction = Field(..., description="Type of action performed")
    resource_type: str = Field(..., description="Type of resource affected")
    resource_id: str | None = Field(None, description="ID of specific resource")
    user_id: str | None = Field(None, description="Operator who performed the action")
    details: dict | None = Field(None, description="Additional context")
    success: bool = Field(True, description="Whether action succeeded")


def log_audit(
    action: AuditAction,
    resource_type: str,
    resource_id: str | None = None,
    user_id: str | None = None,
    details: dict | None = None,
    success: bool = True,
) -> AuditEvent:
    """Log an audit event.

    Args:
        action: Type of action being audited
        resource_type: The type of resource being affected
        resource_id: Specific resource identifier
        user_id: Operator performing the action
        details: Additional context
        success: Whether the action succeeded

    Returns:
        The created AuditEvent
    """
    event = AuditEvent(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        user_id=user_id,
        details=details,
        success=success,
    )

    log_level = logging.INFO if success else logging.WARNING
    audit_logger.log(
        log_level,
        f"AUDIT: {action.value} {resource_type}"
        f"{f'/{resource_id}' if resource_id else ''}"
        f" success={success}",
        extra={"audit_event": event.model_dump()},
    )

    return event


def log_export_trigger(
    export_run_id: str,
    triggered_by: str,
    full_refresh: bool,
    user_id: str | None = None,
) -> AuditEvent:
    """Log the creation of an export run."""
    return log_audit(
        action=AuditAction.TRIGGER,
        resource_type="omop_export_run",
        resource_id=export_run_id,
        user_id=user_id,
        details={"triggered_by": triggered_by, "full_refresh": full_refresh},
    )


def log_export(
    export_run_id: str,
    table_name: str,
    record_count: int,
) -> AuditEvent:
    """Log publication of one exported table.

    Export events are particularly important for compliance.

    Args:
        export_run_id: Export run the artifact belongs to
        table_name: OMOP table that was published
        record_count: Number of rows in the published file

    Returns:
        The created AuditEvent
    """
    return log_audit(
        action=AuditAction.EXPORT,
        resource_type="omop_table",
        resource_id=f"{export_run_id}/{table_name}",
        details={"table": table_name, "record_count": record_count},
    )


def log_watermark_reset(user_id: str | None = None) -> AuditEvent:
    """Log a reset of all high-water marks to the epoch floor."""
    return log_audit(
        action=AuditAction.RESET,
        resource_type="omop_export_hwm",
        user_id=user_id,
    )
