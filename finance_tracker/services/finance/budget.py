"""
Budget and savings figures, per user.

Three numbers per user: the monthly budget, the savings goal and the
amount saved so far. Each is stored as a decimal string on its own key.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from finance_tracker.audit import AuditLogger
from finance_tracker.config import AppSettings, get_settings
from finance_tracker.models.audit import AuditEventBuilder, AuditEventType
from finance_tracker.models.auth import PublicUser
from finance_tracker.models.report import SavingsState
from finance_tracker.services.storage import keys
from finance_tracker.services.storage.interface import (
    KeyValueStoreInterface,
    StorageCorruptedError,
)

Amount = Union[Decimal, int, float, str]


class InvalidAmountError(ValueError):
    """Amount is not a finite number or is out of range."""
    pass


def to_amount(value: Amount) -> Decimal:
    """Parse user input into a finite Decimal."""
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise InvalidAmountError(f"Not a valid amount: {value!r}") from e
    if not amount.is_finite():
        raise InvalidAmountError(f"Not a valid amount: {value!r}")
    return amount


class BudgetService:
    """Monthly budget, savings goal and current savings for each user."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        settings: Optional[AppSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().app
        self._audit_logger = audit_logger

    async def _read(self, key: str, default: Decimal) -> Decimal:
        raw = await self._store.get_item(key)
        if raw is None:
            return default
        try:
            return to_amount(raw)
        except InvalidAmountError as e:
            raise StorageCorruptedError(f"Unreadable amount under {key!r}") from e

    async def _write(self, key: str, amount: Decimal) -> None:
        await self._store.set_item(key, str(amount))

    async def _audit(self, event_type: AuditEventType, actor: PublicUser, amount: Decimal) -> None:
        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.budget_changed(
                event_type=event_type,
                user_id=actor.id,
                amount=str(amount),
            ))

    async def get_monthly_budget(self, actor: PublicUser) -> Decimal:
        """The actor's monthly budget; 0 until one is set."""
        return await self._read(keys.MONTHLY_BUDGET_PREFIX + actor.id, Decimal("0"))

    async def set_monthly_budget(self, actor: PublicUser, amount: Amount) -> Decimal:
        """
        Raises:
            InvalidAmountError: If the amount is negative or not a number
        """
        budget = to_amount(amount)
        if budget < 0:
            raise InvalidAmountError("Budget cannot be negative")
        await self._write(keys.MONTHLY_BUDGET_PREFIX + actor.id, budget)
        await self._audit(AuditEventType.BUDGET_SET, actor, budget)
        return budget

    async def get_savings(self, actor: PublicUser) -> SavingsState:
        current = await self._read(keys.CURRENT_SAVINGS_PREFIX + actor.id, Decimal("0"))
        goal = await self._read(
            keys.SAVINGS_GOAL_PREFIX + actor.id,
            self._settings.default_savings_goal,
        )
        try:
            return SavingsState(current=current, goal=goal)
        except ValueError as e:
            raise StorageCorruptedError(f"Stored savings for {actor.id!r} out of range: {e}") from e

    async def set_savings_goal(self, actor: PublicUser, amount: Amount) -> SavingsState:
        """
        Raises:
            InvalidAmountError: If the goal is not positive
        """
        goal = to_amount(amount)
        if goal <= 0:
            raise InvalidAmountError("Savings goal must be greater than zero")
        await self._write(keys.SAVINGS_GOAL_PREFIX + actor.id, goal)
        await self._audit(AuditEventType.SAVINGS_GOAL_SET, actor, goal)
        return await self.get_savings(actor)

    async def add_to_savings(self, actor: PublicUser, amount: Amount) -> SavingsState:
        """
        Raises:
            InvalidAmountError: If the amount is not positive
        """
        deposit = to_amount(amount)
        if deposit <= 0:
            raise InvalidAmountError("Amount to save must be greater than zero")
        state = await self.get_savings(actor)
        await self._write(keys.CURRENT_SAVINGS_PREFIX + actor.id, state.current + deposit)
        await self._audit(AuditEventType.SAVINGS_ADDED, actor, deposit)
        return await self.get_savings(actor)
