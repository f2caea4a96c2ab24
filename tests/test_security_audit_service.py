"""Tests for the security audit trail."""

from unittest.mock import patch

import pytest
from sqlalchemy import text

from authcore.database import unit_of_work
from authcore.exceptions import StorageError
from authcore.models import SecurityEventType
from authcore.services.auth import SecurityAuditService
from tests.conftest import audit_events

pytestmark = pytest.mark.asyncio


async def test_log_event_stores_typed_event(session_factory):
    async with unit_of_work(session_factory) as db:
        SecurityAuditService.log_event(
            db,
            SecurityEventType.LOGIN_FAILED,
            username="nobody",
            details={"reason": "user_not_found"},
        )

    events = await audit_events(session_factory)
    assert len(events) == 1
    assert events[0].event_type is SecurityEventType.LOGIN_FAILED
    assert events[0].user_id is None
    assert events[0].username == "nobody"
    assert events[0].details == {"reason": "user_not_found"}

    # Stored by value, not by member name
    async with session_factory() as db:
        stored = (await db.execute(text("SELECT event_type FROM security_audit_logs"))).scalar_one()
    assert stored == "login_failed"


async def test_empty_details_stored_as_null(session_factory):
    async with unit_of_work(session_factory) as db:
        SecurityAuditService.log_event(db, SecurityEventType.LOGIN_SUCCESS, details={})

    events = await audit_events(session_factory)
    assert events[0].details is None


async def test_record_event_survives_storage_failure(session_factory, caplog):
    """A failed audit write is logged, not raised."""
    with patch(
        "authcore.services.auth.security_audit_service.unit_of_work",
        side_effect=StorageError("database unavailable"),
    ):
        await SecurityAuditService.record_event(
            session_factory, SecurityEventType.LOGIN_FAILED, username="alice"
        )

    assert "Failed to record security event login_failed" in caplog.text
    assert await audit_events(session_factory) == []
