"""Security audit trail for credential events."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from authcore.database import Base


class SecurityEventType(str, Enum):
    """Credential events written to the audit trail."""

    USER_REGISTERED = "user_registered"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    PASSWORD_CHANGED = "password_changed"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PASSWORD_RESET_COMPLETED = "password_reset_completed"
    PASSWORD_RESET_REJECTED = "password_reset_rejected"
    PASSWORD_RESET_TOKENS_PURGED = "password_reset_tokens_purged"


class SecurityAuditLog(Base):
    """One credential event.

    ``username`` is the name the caller presented, so failed logins for
    accounts that do not exist can still be traced. ``details`` holds the
    internal reason for a refusal, which callers never see.
    """

    __tablename__ = "security_audit_logs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    event_type: Mapped[SecurityEventType] = mapped_column(
        SAEnum(
            SecurityEventType,
            native_enum=False,
            length=50,
            values_callable=lambda event_types: [e.value for e in event_types],
        ),
        index=True,
    )
    user_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    username: Mapped[str | None] = mapped_column(String(255), index=True)
    details: Mapped[dict | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )

    def __repr__(self) -> str:
        return (
            f"<SecurityAuditLog(event={self.event_type.value}, "
            f"user_id={self.user_id}, username={self.username})>"
        )
