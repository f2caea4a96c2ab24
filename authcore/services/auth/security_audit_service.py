"""Service for logging security events."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authcore.database import unit_of_work
from authcore.exceptions import StorageError
from authcore.models.security_audit_log import SecurityAuditLog, SecurityEventType

logger = logging.getLogger(__name__)


class SecurityAuditService:
    """Service for recording security audit events."""

    @staticmethod
    def log_event(
        db: AsyncSession,
        event_type: SecurityEventType,
        user_id: str | None = None,
        username: str | None = None,
        details: dict | None = None,
    ) -> None:
        """Log a security event in the caller's transaction."""
        log_entry = SecurityAuditLog(
            event_type=event_type,
            user_id=user_id,
            username=username,
            details=details or None,
        )
        db.add(log_entry)
        # Note: Caller is responsible for committing the transaction

        # Also log to application logger for monitoring
        logger.info(f"Security event: {event_type.value} | user_id={user_id}")

    @classmethod
    async def record_event(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        event_type: SecurityEventType,
        user_id: str | None = None,
        username: str | None = None,
        details: dict | None = None,
    ) -> None:
        """Log a security event in its own transaction.

        Used on failure paths whose main transaction has been rolled back. A
        failure to write the audit row is logged and does not replace the
        error the caller is already handling.
        """
        try:
            async with unit_of_work(session_factory) as db:
                cls.log_event(db, event_type, user_id=user_id, username=username, details=details)
        except StorageError:
            logger.exception(f"Failed to record security event {event_type.value}")
