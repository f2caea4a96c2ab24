"""SQLAlchemy ORM models."""

from authcore.models.security_audit_log import SecurityAuditLog, SecurityEventType
from authcore.models.user import PendingReset, User

__all__ = [
    "PendingReset",
    "SecurityAuditLog",
    "SecurityEventType",
    "User",
]
