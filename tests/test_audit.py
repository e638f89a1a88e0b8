"""Tests for the audit logger."""

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.services.storage import AuditStorageInterface


class FailingAuditStorage(AuditStorageInterface):

    async def append_event(self, event):
        raise OSError("disk full")

    async def get_events_for_user(self, user_id, limit=100):
        return []

    async def get_recent_events(self, limit=100):
        return []


class TestAuditLogger:

    @pytest.mark.asyncio
    async def test_local_only_logging_succeeds(self):
        logger = AuditLogger()
        assert await logger.log(AuditEventBuilder.signed_out("u1")) is True

    @pytest.mark.asyncio
    async def test_persists_to_storage(self, audit_logger, audit_storage):
        await audit_logger.log_sign_in(user_id="u1", remember_me=True)

        events = await audit_storage.get_events_for_user("u1")
        assert len(events) == 1
        assert events[0].details == {"remember_me": True}

    @pytest.mark.asyncio
    async def test_storage_failure_is_not_raised(self):
        logger = AuditLogger(FailingAuditStorage())
        assert await logger.log(AuditEventBuilder.signed_out("u1")) is False

    @pytest.mark.asyncio
    async def test_error_helper(self, audit_logger, audit_storage):
        await audit_logger.log_error("boom", "it broke", details={"user_id": "u1"})

        event = (await audit_storage.get_recent_events())[0]
        assert event.severity.value == "error"
        assert event.error_message == "it broke"
