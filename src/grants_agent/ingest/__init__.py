"""Registry synchronization."""

from .client import IngestSynchronizer, RegistryStatus, SyncResult

__all__ = ["IngestSynchronizer", "RegistryStatus", "SyncResult"]
