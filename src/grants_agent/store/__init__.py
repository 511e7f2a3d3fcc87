"""Persisted sync state."""

from grants_agent.store.backends import (
    DELETED,
    PROCESSED,
    JsonFileBackend,
    KeyValueBackend,
    SqliteBackend,
    open_backend,
)
from grants_agent.store.sync_state import DEFAULT_REPROCESS_WINDOW_HOURS, SyncStateStore

__all__ = [
    "DEFAULT_REPROCESS_WINDOW_HOURS",
    "DELETED",
    "PROCESSED",
    "JsonFileBackend",
    "KeyValueBackend",
    "SqliteBackend",
    "SyncStateStore",
    "open_backend",
]
