"""
Abstract Storage Interface

DESIGN DECISION: Everything persists through a small async key-value
interface, modelled on the on-device storage API. This allows us to:
1. Keep data in a local JSON file in the app
2. Use in-memory storage for testing
3. Swap in a real database later without touching the services

Values are strings. Structured values are JSON-encoded, usually through
get_json/set_json. Unparseable data raises StorageCorruptedError.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from finance_tracker.models.audit import AuditEvent


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for the key-value store.

    Any storage implementation (JSON file, SQLite, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """
        Read one value.

        Returns:
            The stored string, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """
        Write one value, replacing any previous one.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Remove one key. Removing an absent key is not an error."""
        pass

    @abstractmethod
    async def get_all_keys(self) -> list[str]:
        """List every key currently stored."""
        pass

    async def multi_get(self, keys: Iterable[str]) -> dict[str, Optional[str]]:
        """Read several keys. Absent keys map to None."""
        return {key: await self.get_item(key) for key in keys}

    async def multi_remove(self, keys: Iterable[str]) -> None:
        for key in keys:
            await self.remove_item(key)

    async def get_keys_with_prefix(self, prefix: str) -> list[str]:
        return sorted(key for key in await self.get_all_keys() if key.startswith(prefix))

    async def get_json(self, key: str) -> Any:
        """
        Read and decode a JSON value.

        Returns:
            The decoded value, or None if the key is absent

        Raises:
            StorageCorruptedError: If the stored value is not valid JSON
        """
        raw = await self.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            raise StorageCorruptedError(f"Malformed JSON under {key!r}: {e}") from e

    async def set_json(self, key: str, value: Any) -> None:
        await self.set_item(key, json.dumps(value))


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_for_user(
        self,
        user_id: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the events that concern one user.

        Returns:
            List of events (newest first)
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageCorruptedError(StorageError):
    """Stored data could not be read back (malformed JSON, bad shape, I/O)."""

    code = "storage/corrupted"
    message = "Stored data is unreadable. Please sign in again."


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass
