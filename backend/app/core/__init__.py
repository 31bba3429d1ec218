"""Core application configuration and utilities."""

from app.core.audit import AuditAction, AuditEvent, log_audit, log_export, log_export_trigger
from app.core.config import settings
from app.core.database import Base, get_db
from app.core.privacy import pseudonymize, sanitize_for_logging

__all__ = [
    # Config
    "settings",
    # Database
    "Base",
    "get_db",
    # Audit
    "AuditAction",
    "AuditEvent",
    "log_audit",
    "log_export",
    "log_export_trigger",
    # Privacy
    "pseudonymize",
    "sanitize_for_logging",
]
