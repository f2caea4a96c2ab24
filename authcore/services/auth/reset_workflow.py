"""One-time, time-limited password reset.

A user is either in NoResetPending (``User.pending_reset is None``) or in
ResetPending. ``initiate`` moves to ResetPending, superseding any earlier
token. ``complete`` is the only way back through a password change; expiry is
checked lazily when a token is presented.
"""

import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authcore.database import unit_of_work
from authcore.exceptions import ResetRejection, ResetTokenInvalidError
from authcore.models import SecurityEventType
from authcore.services.auth.password_hasher import PasswordHasher
from authcore.services.auth.security_audit_service import SecurityAuditService
from authcore.services.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

# 32 random bytes = 256 bits of entropy
RESET_TOKEN_BYTES = 32
DEFAULT_RESET_TOKEN_TTL = timedelta(hours=1)


def utcnow() -> datetime:
    return datetime.now(UTC)


class ResetWorkflow:
    """Issues reset tokens and consumes them exactly once."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        hasher: PasswordHasher,
        reset_token_ttl: timedelta = DEFAULT_RESET_TOKEN_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._hasher = hasher
        self._reset_token_ttl = reset_token_ttl
        self._clock = clock

    async def initiate(self, username: str) -> str:
        """Start a reset and return the raw token.

        The raw token is returned only here; the store keeps its hash. Any
        token issued earlier for the same user stops working.

        Raises:
            NotFoundError: no such user.
            StorageError: the store failed; nothing was changed.
        """
        async with unit_of_work(self._session_factory) as db:
            repo = UserRepository(db)
            user = await repo.get_by_username(username)
            superseded = user.pending_reset is not None

            token = secrets.token_urlsafe(RESET_TOKEN_BYTES)
            token_hash = await self._hasher.hash(token)
            expires_at = self._clock() + self._reset_token_ttl

            await repo.set_reset_token(user.id, token_hash, expires_at)
            SecurityAuditService.log_event(
                db,
                SecurityEventType.PASSWORD_RESET_REQUESTED,
                user_id=user.id,
                username=username,
                details={"superseded": superseded, "expires_at": expires_at.isoformat()},
            )

        logger.info(f"Password reset token generated for user {username}")
        return token

    async def complete(self, username: str, token: str, new_password: str) -> None:
        """Consume a reset token and set a new password.

        Clearing the token and storing the new hash happen in one transaction;
        if anything fails the user keeps the old password and the token stays
        valid.

        Raises:
            NotFoundError: no such user.
            ResetTokenInvalidError: no reset pending, token expired, wrong
                token, or another request consumed it first. ``reason`` says
                which.
            StorageError: the store failed; nothing was changed.
        """
        user_id = None
        try:
            async with unit_of_work(self._session_factory) as db:
                repo = UserRepository(db)
                user = await repo.get_by_username(username, for_update=True)
                user_id = user.id

                pending = user.pending_reset
                if pending is None:
                    raise ResetTokenInvalidError(ResetRejection.NOT_PENDING)
                if pending.is_expired(self._clock()):
                    raise ResetTokenInvalidError(ResetRejection.EXPIRED)
                if not await self._hasher.verify(token, pending.token_hash):
                    raise ResetTokenInvalidError(ResetRejection.MISMATCH)

                new_hash = await self._hasher.hash(new_password)

                # Only the first consumer still sees this token outstanding
                if not await repo.clear_reset_token(user.id, expected_token_hash=pending.token_hash):
                    raise ResetTokenInvalidError(ResetRejection.CONSUMED)
                await repo.update_password(user.id, new_hash)

                SecurityAuditService.log_event(
                    db,
                    SecurityEventType.PASSWORD_RESET_COMPLETED,
                    user_id=user.id,
                    username=username,
                )
        except ResetTokenInvalidError as e:
            logger.warning(f"Password reset rejected for user {username}: {e.reason.value}")
            await SecurityAuditService.record_event(
                self._session_factory,
                SecurityEventType.PASSWORD_RESET_REJECTED,
                user_id=user_id,
                username=username,
                details={"reason": e.reason.value},
            )
            raise

        logger.info(f"Password reset completed for user {username}")

    async def purge_expired(self, limit: int = 500) -> int:
        """Clear up to `limit` expired reset tokens. Returns how many were cleared.

        Optional housekeeping: expired tokens are refused at consume time anyway.
        """
        now = self._clock()
        async with unit_of_work(self._session_factory) as db:
            cleared = await UserRepository(db).clear_expired_reset_tokens(now, limit=limit)
            if cleared:
                SecurityAuditService.log_event(
                    db,
                    SecurityEventType.PASSWORD_RESET_TOKENS_PURGED,
                    details={"count": cleared},
                )

        if cleared:
            logger.info(f"Purged {cleared} expired password reset tokens")
        return cleared
