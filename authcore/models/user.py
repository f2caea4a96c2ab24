"""User model for authentication."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from authcore.database import Base


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite stores them without tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True)
class PendingReset:
    """An outstanding password reset: the token hash and when it stops being valid."""

    token_hash: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return as_utc(now) > as_utc(self.expires_at)


class User(Base):
    """User model representing registered accounts."""

    __tablename__ = "users"
    __table_args__ = (
        # Reset token hash and expiry are set and cleared together
        CheckConstraint(
            "(reset_token_hash IS NULL) = (reset_token_expires_at IS NULL)",
            name="ck_users_reset_token_pair",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    username: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    reset_token_hash: Mapped[str | None] = mapped_column(String(255))
    reset_token_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )

    @property
    def pending_reset(self) -> PendingReset | None:
        """The outstanding reset, or None when no reset is in progress."""
        if self.reset_token_hash is None or self.reset_token_expires_at is None:
            return None
        return PendingReset(
            token_hash=self.reset_token_hash,
            expires_at=as_utc(self.reset_token_expires_at),
        )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
