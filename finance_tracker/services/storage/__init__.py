"""
Storage Services Package

Provides the abstract key-value interface and its implementations.
The JSON file store is the on-device backend; the in-memory store backs tests.
"""

from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStoreInterface,
    NotFoundError,
    StorageCorruptedError,
    StorageError,
)
from finance_tracker.services.storage.audit_storage import KeyValueAuditStorage
from finance_tracker.services.storage.json_file import JsonFileKeyValueStore
from finance_tracker.services.storage.memory import InMemoryKeyValueStore

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStoreInterface",
    # Exceptions
    "NotFoundError",
    "StorageCorruptedError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueAuditStorage",
]
