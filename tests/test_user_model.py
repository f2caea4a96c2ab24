"""Tests for User model."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from authcore.models import PendingReset, User

pytestmark = pytest.mark.asyncio


async def test_create_user_with_password(session_factory):
    """Test creating a user with username and password."""
    async with session_factory() as db:
        user = User(username="alice", password_hash="hashed_password_here")
        db.add(user)
        await db.commit()
        await db.refresh(user)

    assert user.id is not None
    assert len(user.id) == 36
    assert user.username == "alice"
    assert user.password_hash == "hashed_password_here"
    assert user.reset_token_hash is None
    assert user.pending_reset is None


async def test_username_unique(session_factory):
    """Test that usernames are unique."""
    async with session_factory() as db:
        db.add(User(username="same", password_hash="hash1"))
        await db.commit()

        db.add(User(username="same", password_hash="hash2"))
        with pytest.raises(IntegrityError):
            await db.commit()


async def test_username_is_case_sensitive(session_factory):
    async with session_factory() as db:
        db.add(User(username="Alice", password_hash="hash1"))
        db.add(User(username="alice", password_hash="hash2"))
        await db.commit()


async def test_reset_fields_must_be_set_together(session_factory):
    """A token hash without an expiry violates the paired-nullability constraint."""
    async with session_factory() as db:
        db.add(User(username="alice", password_hash="hash", reset_token_hash="token-hash"))
        with pytest.raises(IntegrityError):
            await db.commit()


async def test_pending_reset_round_trip(session_factory):
    """Stored reset fields come back as a timezone-aware PendingReset."""
    expires_at = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)
    async with session_factory() as db:
        user = User(
            username="alice",
            password_hash="hash",
            reset_token_hash="token-hash",
            reset_token_expires_at=expires_at,
        )
        db.add(user)
        await db.commit()
        user_id = user.id

    async with session_factory() as db:
        loaded = await db.get(User, user_id)

    assert loaded.pending_reset == PendingReset(token_hash="token-hash", expires_at=expires_at)


async def test_pending_reset_expiry_boundary():
    expires_at = datetime(2030, 1, 1, 12, 0, tzinfo=UTC)
    pending = PendingReset(token_hash="h", expires_at=expires_at)

    assert pending.is_expired(expires_at) is False
    assert pending.is_expired(expires_at + timedelta(microseconds=1)) is True
    # Naive timestamps are read as UTC
    assert pending.is_expired(datetime(2030, 1, 1, 11, 59)) is False
