"""Shared test fixtures for authentication tests."""

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy import select

from authcore.database import create_db_engine, create_session_factory, init_db
from authcore.models import SecurityAuditLog, SecurityEventType
from authcore.services.auth import AuthService, PasswordHasher, ResetWorkflow, TokenIssuer

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!!"  # noqa: S105


class FakeClock:
    """Controllable clock for expiry tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


async def audit_events(
    session_factory, event_type: SecurityEventType | None = None
) -> list[SecurityAuditLog]:
    """Helper to read audit log rows, oldest first."""
    async with session_factory() as db:
        stmt = select(SecurityAuditLog).order_by(SecurityAuditLog.created_at)
        if event_type:
            stmt = stmt.where(SecurityAuditLog.event_type == event_type)
        return list((await db.scalars(stmt)).all())


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite database per test, so concurrent sessions use separate connections."""
    engine = create_db_engine(f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def hasher():
    """bcrypt at the minimum cost to keep tests fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_issuer():
    return TokenIssuer(TEST_SECRET)


@pytest.fixture
def clock():
    return FakeClock(datetime.now(UTC))


@pytest.fixture
def reset_workflow(session_factory, hasher, clock):
    return ResetWorkflow(session_factory, hasher, clock=clock)


@pytest.fixture
def auth_service(session_factory, hasher, token_issuer, reset_workflow):
    return AuthService(session_factory, hasher, token_issuer, reset_workflow)
