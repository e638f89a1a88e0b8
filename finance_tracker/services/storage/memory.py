"""In-memory key-value store, used by tests and throwaway sessions."""

from typing import Optional

from finance_tracker.services.storage.interface import KeyValueStoreInterface


class InMemoryKeyValueStore(KeyValueStoreInterface):

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    async def get_all_keys(self) -> list[str]:
        return list(self._data.keys())

    def snapshot(self) -> dict[str, str]:
        """Copy of the raw contents, for assertions."""
        return dict(self._data)
