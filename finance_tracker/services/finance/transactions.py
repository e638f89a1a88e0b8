"""
Transaction Stores

CRUD over a user's expenses and incomes.

DESIGN DECISION: Records are partitioned by owner in the key itself
(`<collection><user_id>:<record_id>`). Listing a user's records reads
only that user's keys, and one user can never address another user's
record by id.

Every operation takes the actor explicitly; callers obtain it from
AuthService.require_user().
"""

import json
from typing import Any, ClassVar, Generic, Optional, TypeVar, Union
from uuid import uuid4

from pydantic import ValidationError

from finance_tracker.audit import AuditLogger
from finance_tracker.models.audit import AuditEventBuilder, AuditEventType
from finance_tracker.models.auth import PublicUser
from finance_tracker.models.transaction import (
    Expense,
    ExpenseDraft,
    ExpenseUpdate,
    Income,
    IncomeDraft,
    IncomeUpdate,
    SortBy,
    SortOrder,
    TransactionDraft,
    TransactionFilter,
    TransactionRecord,
    TransactionUpdate,
)
from finance_tracker.services.storage import keys
from finance_tracker.services.storage.interface import (
    KeyValueStoreInterface,
    NotFoundError,
    StorageCorruptedError,
)

RecordT = TypeVar("RecordT", bound=TransactionRecord)


class RecordNotFoundError(NotFoundError):
    """No record with this id exists for this user."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} {record_id!r} not found")


class TransactionStore(Generic[RecordT]):
    """
    Per-user storage of one kind of transaction.

    Subclasses choose the key collection and the models.
    """

    kind: ClassVar[str]
    collection_prefix: ClassVar[str]
    record_model: ClassVar[type[TransactionRecord]]
    draft_model: ClassVar[type[TransactionDraft]]
    update_model: ClassVar[type[TransactionUpdate]]

    def __init__(
        self,
        store: KeyValueStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    def _key(self, actor: PublicUser, record_id: str) -> str:
        return keys.record_key(self.collection_prefix, actor.id, record_id)

    def _parse(self, key: str, raw: str) -> RecordT:
        try:
            return self.record_model.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            raise StorageCorruptedError(f"Unreadable {self.kind} {key!r}: {e}") from e

    async def _audit(self, event_type: AuditEventType, actor: PublicUser, record_id: str, amount=None) -> None:
        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.transaction_changed(
                event_type=event_type,
                kind=self.kind,
                record_id=record_id,
                user_id=actor.id,
                amount=str(amount) if amount is not None else None,
            ))

    async def add(
        self,
        actor: PublicUser,
        draft: Union[TransactionDraft, dict[str, Any]],
    ) -> RecordT:
        """
        Store a new record owned by `actor`.

        Raises:
            pydantic.ValidationError: If the draft is invalid
        """
        if not isinstance(draft, self.draft_model):
            draft = self.draft_model.model_validate(draft)

        record = self.record_model(
            id=str(uuid4()),
            user_id=actor.id,
            **draft.model_dump(),
        )
        await self._store.set_json(self._key(actor, record.id), record.to_storage())
        await self._audit(AuditEventType.TRANSACTION_ADDED, actor, record.id, record.amount)
        return record

    async def get(self, actor: PublicUser, record_id: str) -> Optional[RecordT]:
        key = self._key(actor, record_id)
        raw = await self._store.get_item(key)
        if raw is None:
            return None
        return self._parse(key, raw)

    async def update(
        self,
        actor: PublicUser,
        record_id: str,
        changes: Union[TransactionUpdate, dict[str, Any]],
    ) -> RecordT:
        """
        Apply a partial update to one of the actor's records.

        Raises:
            RecordNotFoundError: If the actor has no such record
            pydantic.ValidationError: If the changes are invalid
        """
        if not isinstance(changes, self.update_model):
            changes = self.update_model.model_validate(changes)

        current = await self.get(actor, record_id)
        if current is None:
            raise RecordNotFoundError(self.kind, record_id)

        updated = self.record_model.model_validate({
            **current.model_dump(),
            **changes.changes(),
        })
        await self._store.set_json(self._key(actor, record_id), updated.to_storage())
        await self._audit(AuditEventType.TRANSACTION_UPDATED, actor, record_id, updated.amount)
        return updated

    async def delete(self, actor: PublicUser, record_id: str) -> bool:
        """Remove a record. Returns False if there was nothing to remove."""
        key = self._key(actor, record_id)
        if await self._store.get_item(key) is None:
            return False
        await self._store.remove_item(key)
        await self._audit(AuditEventType.TRANSACTION_DELETED, actor, record_id)
        return True

    async def list_records(
        self,
        actor: PublicUser,
        filters: Optional[TransactionFilter] = None,
        sort_by: SortBy = SortBy.DATE,
        order: SortOrder = SortOrder.DESC,
    ) -> list[RecordT]:
        """The actor's records, filtered and sorted (newest first by default)."""
        prefix = keys.user_records_prefix(self.collection_prefix, actor.id)
        record_keys = await self._store.get_keys_with_prefix(prefix)
        values = await self._store.multi_get(record_keys)

        records = [
            self._parse(key, raw)
            for key, raw in values.items()
            if raw is not None
        ]
        records = [r for r in records if r.user_id == actor.id]
        if filters is not None:
            records = [r for r in records if filters.matches(r)]

        if sort_by == SortBy.AMOUNT:
            records.sort(key=lambda r: r.amount, reverse=order == SortOrder.DESC)
        else:
            records.sort(key=lambda r: r.occurred_at, reverse=order == SortOrder.DESC)
        return records


class ExpenseStore(TransactionStore[Expense]):
    kind = "expense"
    collection_prefix = keys.EXPENSES_PREFIX
    record_model = Expense
    draft_model = ExpenseDraft
    update_model = ExpenseUpdate


class IncomeStore(TransactionStore[Income]):
    kind = "income"
    collection_prefix = keys.INCOMES_PREFIX
    record_model = Income
    draft_model = IncomeDraft
    update_model = IncomeUpdate
