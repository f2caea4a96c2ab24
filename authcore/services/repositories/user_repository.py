"""User data access layer (the credential store)."""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authcore.exceptions import DuplicateUsernameError, NotFoundError
from authcore.models import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Centralized user data access.

    Naming conventions:
    - find_* : Query that may return None
    - get_* : Query that raises exception if missing

    Writes are flushed but not committed; the caller's unit of work owns the
    transaction.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create_user(self, username: str, password_hash: str) -> User:
        """Insert a new user. Raises DuplicateUsernameError if the username exists."""
        user = User(username=username, password_hash=password_hash)
        self._db.add(user)
        try:
            await self._db.flush()
        except IntegrityError as e:
            logger.warning(f"Duplicate username rejected: {username}")
            raise DuplicateUsernameError(username) from e
        return user

    async def find_by_username(self, username: str, *, for_update: bool = False) -> User | None:
        """Find user by username (case-sensitive).

        With for_update the row stays locked until the current transaction ends.
        """
        stmt = select(User).where(User.username == username)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str, *, for_update: bool = False) -> User:
        """Get user by username, optionally locking the row for the current transaction."""
        user = await self.find_by_username(username, for_update=for_update)
        if user is None:
            raise NotFoundError("User", username)
        return user

    async def set_reset_token(self, user_id: str, token_hash: str, expires_at: datetime) -> None:
        """Store the outstanding reset token, replacing any previous one."""
        result = await self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values(reset_token_hash=token_hash, reset_token_expires_at=expires_at)
        )
        if result.rowcount == 0:
            raise NotFoundError("User", user_id)

    async def clear_reset_token(
        self, user_id: str, *, expected_token_hash: str | None = None
    ) -> bool:
        """Clear the outstanding reset token.

        With expected_token_hash the clear only applies while that exact token
        is still outstanding, so of two concurrent consumers only one matches.
        Returns whether a row was cleared.
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(reset_token_hash=None, reset_token_expires_at=None)
        )
        if expected_token_hash is not None:
            stmt = stmt.where(User.reset_token_hash == expected_token_hash)
        result = await self._db.execute(stmt)
        return result.rowcount == 1

    async def update_password(
        self, user_id: str, password_hash: str, *, expected_hash: str | None = None
    ) -> bool:
        """Replace the stored password hash.

        With expected_hash the update only applies while that hash is still
        stored, and a False return means the password changed underneath the
        caller. Without it a missing user raises NotFoundError.
        """
        stmt = update(User).where(User.id == user_id).values(password_hash=password_hash)
        if expected_hash is not None:
            stmt = stmt.where(User.password_hash == expected_hash)
        result = await self._db.execute(stmt)
        if result.rowcount == 0 and expected_hash is None:
            raise NotFoundError("User", user_id)
        return result.rowcount == 1

    async def clear_expired_reset_tokens(self, now: datetime, *, limit: int) -> int:
        """Clear up to `limit` reset tokens that expired before `now`."""
        expired_ids = (
            await self._db.scalars(
                select(User.id)
                .where(User.reset_token_expires_at.is_not(None), User.reset_token_expires_at < now)
                .limit(limit)
            )
        ).all()
        if not expired_ids:
            return 0

        result = await self._db.execute(
            update(User)
            .where(User.id.in_(expired_ids), User.reset_token_expires_at < now)
            .values(reset_token_hash=None, reset_token_expires_at=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
