"""
Shared fixtures.

Every test runs against an in-memory store, a controllable clock and the
cheapest bcrypt cost so the suite stays fast.
"""

from datetime import datetime, timedelta, timezone

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.config import AppSettings, AuthSettings
from finance_tracker.models.auth import PublicUser, ResetCode
from finance_tracker.services.auth import AuthService, ResetCodeDelivery
from finance_tracker.services.finance import BudgetService, ExpenseStore, IncomeStore
from finance_tracker.services.storage import InMemoryKeyValueStore, KeyValueAuditStorage


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class CapturingDelivery(ResetCodeDelivery):
    """Keeps delivered codes so tests can read them back."""

    def __init__(self):
        self.sent: dict[str, ResetCode] = {}

    async def deliver(self, email: str, reset_code: ResetCode) -> None:
        self.sent[email] = reset_code

    def code_for(self, email: str) -> str:
        return self.sent[email].code


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_storage(audit_store):
    return KeyValueAuditStorage(audit_store)


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def auth_settings():
    return AuthSettings(bcrypt_rounds=4)


@pytest.fixture
def app_settings():
    return AppSettings(default_savings_goal=10000, trend_months=6)


@pytest.fixture
def delivery():
    return CapturingDelivery()


@pytest.fixture
def auth(store, auth_settings, delivery, audit_logger, clock):
    return AuthService(
        store,
        settings=auth_settings,
        delivery=delivery,
        audit_logger=audit_logger,
        clock=clock,
    )


@pytest.fixture
def alice():
    return PublicUser(id="user-alice", email="alice@example.com", name="Alice")


@pytest.fixture
def bob():
    return PublicUser(id="user-bob", email="bob@example.com", name="Bob")


@pytest.fixture
def expenses(store, audit_logger):
    return ExpenseStore(store, audit_logger=audit_logger)


@pytest.fixture
def incomes(store, audit_logger):
    return IncomeStore(store, audit_logger=audit_logger)


@pytest.fixture
def budget(store, app_settings, audit_logger):
    return BudgetService(store, settings=app_settings, audit_logger=audit_logger)
