"""Storage layer - SQL, in-memory and key-value implementations."""

from supportdesk.storage.base import StorageBackend
from supportdesk.storage.keyvalue import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from supportdesk.storage.memory import InMemoryStorage
from supportdesk.storage.sql import SQLStorage

__all__ = [
    "StorageBackend",
    "InMemoryStorage",
    "SQLStorage",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
]
