"""Tests for the key-value stores and the audit log built on them."""

import json
import os

import pytest

from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    StorageCorruptedError,
    StorageError,
)


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "data" / "store.json"


@pytest.fixture
def file_store(store_path):
    return JsonFileKeyValueStore(str(store_path))


class TestKeyValueInterface:
    """Behaviour shared by every backend, exercised on the in-memory one."""

    @pytest.mark.asyncio
    async def test_missing_key_is_none(self):
        store = InMemoryKeyValueStore()
        assert await store.get_item("absent") is None
        assert await store.get_json("absent") is None

    @pytest.mark.asyncio
    async def test_json_values(self):
        store = InMemoryKeyValueStore()
        await store.set_json("k", {"a": 1, "b": [1, 2]})
        assert await store.get_json("k") == {"a": 1, "b": [1, 2]}

    @pytest.mark.asyncio
    async def test_malformed_json_raises_corrupted(self):
        store = InMemoryKeyValueStore({"k": "{oops"})
        with pytest.raises(StorageCorruptedError) as exc_info:
            await store.get_json("k")
        assert exc_info.value.code == "storage/corrupted"

    @pytest.mark.asyncio
    async def test_prefix_lookup_is_sorted(self):
        store = InMemoryKeyValueStore({"p:2": "b", "p:1": "a", "q:1": "c"})
        assert await store.get_keys_with_prefix("p:") == ["p:1", "p:2"]

    @pytest.mark.asyncio
    async def test_multi_get_and_remove(self):
        store = InMemoryKeyValueStore({"a": "1", "b": "2"})
        assert await store.multi_get(["a", "c"]) == {"a": "1", "c": None}

        await store.multi_remove(["a", "c"])
        assert await store.get_all_keys() == ["b"]

    @pytest.mark.asyncio
    async def test_remove_missing_key_is_noop(self):
        store = InMemoryKeyValueStore()
        await store.remove_item("absent")
        assert store.snapshot() == {}


class TestJsonFileStore:

    @pytest.mark.asyncio
    async def test_values_survive_reopen(self, file_store, store_path):
        await file_store.set_item("greeting", "hello")

        reopened = JsonFileKeyValueStore(str(store_path))
        assert await reopened.get_item("greeting") == "hello"

    @pytest.mark.asyncio
    async def test_file_is_a_plain_string_map(self, file_store, store_path):
        await file_store.set_json("k", {"x": 1})
        on_disk = json.loads(store_path.read_text(encoding="utf-8"))
        assert on_disk == {"k": '{"x": 1}'}

    @pytest.mark.asyncio
    async def test_missing_file_is_empty_store(self, file_store):
        assert await file_store.get_all_keys() == []

    @pytest.mark.asyncio
    async def test_remove_persists(self, file_store, store_path):
        await file_store.set_item("a", "1")
        await file_store.set_item("b", "2")
        await file_store.multi_remove(["a"])

        reopened = JsonFileKeyValueStore(str(store_path))
        assert await reopened.get_all_keys() == ["b"]

    @pytest.mark.asyncio
    async def test_corrupted_file_raises(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageCorruptedError):
            await JsonFileKeyValueStore(str(store_path)).get_item("k")

    @pytest.mark.asyncio
    async def test_non_string_values_are_corrupted(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text('{"k": 5}', encoding="utf-8")

        with pytest.raises(StorageCorruptedError):
            await JsonFileKeyValueStore(str(store_path)).get_item("k")

    @pytest.mark.asyncio
    async def test_failed_write_rolls_back_memory(self, file_store, monkeypatch):
        await file_store.set_item("a", "1")

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", failing_replace)

        with pytest.raises(StorageError):
            await file_store.set_item("a", "2")
        with pytest.raises(StorageError):
            await file_store.set_item("b", "3")
        with pytest.raises(StorageError):
            await file_store.remove_item("a")

        assert await file_store.get_item("a") == "1"
        assert await file_store.get_item("b") is None

    @pytest.mark.asyncio
    async def test_failed_write_leaves_no_temp_files(self, file_store, store_path, monkeypatch):
        await file_store.set_item("a", "1")

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", failing_replace)
        with pytest.raises(StorageError):
            await file_store.set_item("a", "2")

        assert [p.name for p in store_path.parent.iterdir()] == ["store.json"]


class TestAuditStorage:

    @pytest.mark.asyncio
    async def test_events_filtered_by_user(self):
        audit = KeyValueAuditStorage(InMemoryKeyValueStore())
        await audit.append_event(AuditEventBuilder.signed_out("u1"))
        await audit.append_event(AuditEventBuilder.signed_out("u2"))
        await audit.append_event(AuditEventBuilder.password_reset_completed("u1"))

        events = await audit.get_events_for_user("u1")
        assert len(events) == 2
        assert all(e.user_id == "u1" for e in events)

    @pytest.mark.asyncio
    async def test_limit(self):
        audit = KeyValueAuditStorage(InMemoryKeyValueStore())
        for _ in range(5):
            await audit.append_event(AuditEventBuilder.signed_out("u1"))

        assert len(await audit.get_recent_events(limit=3)) == 3

    @pytest.mark.asyncio
    async def test_unreadable_event_raises_corrupted(self):
        store = InMemoryKeyValueStore({"@audit:000000000000001:x": "garbage"})
        audit = KeyValueAuditStorage(store)
        with pytest.raises(StorageCorruptedError):
            await audit.get_recent_events()
