"""
Key-value backed audit log.

Each event is its own key; keys embed a zero-padded timestamp so that
sorting keys sorts events chronologically.
"""

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.common import to_epoch_ms
from finance_tracker.services.storage import keys
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStoreInterface,
    StorageCorruptedError,
)


class KeyValueAuditStorage(AuditStorageInterface):
    """Append-only audit log stored alongside the application data."""

    def __init__(self, store: KeyValueStoreInterface):
        self._store = store

    async def append_event(self, event: AuditEvent) -> bool:
        key = keys.audit_key(to_epoch_ms(event.timestamp), str(event.event_id))
        await self._store.set_item(key, event.to_storage())
        return True

    async def _load_newest_first(self) -> list[AuditEvent]:
        event_keys = await self._store.get_keys_with_prefix(keys.AUDIT_PREFIX)
        values = await self._store.multi_get(reversed(event_keys))
        events = []
        for key, raw in values.items():
            if raw is None:
                continue
            try:
                events.append(AuditEvent.from_storage(raw))
            except ValueError as e:
                raise StorageCorruptedError(f"Unreadable audit event {key!r}: {e}") from e
        return events

    async def get_events_for_user(
        self,
        user_id: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = [e for e in await self._load_newest_first() if e.user_id == user_id]
        return events[:limit]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return (await self._load_newest_first())[:limit]
