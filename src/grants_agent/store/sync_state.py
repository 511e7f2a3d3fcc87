"""Cross-run memory: when each item was last synced and which were deleted downstream."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from .backends import DELETED, PROCESSED, KeyValueBackend

DEFAULT_REPROCESS_WINDOW_HOURS = 24.0


def _as_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


class SyncStateStore:
    """
    Processed timestamps and the sticky deleted set.
    An id in the deleted set is never processed again.
    """

    def __init__(self, backend: KeyValueBackend):
        self._backend = backend

    def is_deleted(self, external_id: str) -> bool:
        return self._backend.get(DELETED, external_id) is not None

    def mark_deleted(self, external_id: str, now: Optional[datetime] = None) -> None:
        when = _as_utc(now or datetime.now(timezone.utc))
        self._backend.set(DELETED, external_id, when.isoformat())

    def last_processed(self, external_id: str) -> Optional[datetime]:
        value = self._backend.get(PROCESSED, external_id)
        if not value:
            return None
        try:
            return _as_utc(datetime.fromisoformat(value))
        except ValueError:
            return None

    def mark_processed(self, external_id: str, now: datetime) -> None:
        self._backend.set(PROCESSED, external_id, _as_utc(now).isoformat())

    def should_process(
        self,
        external_id: str,
        now: datetime,
        reprocess_window_hours: float = DEFAULT_REPROCESS_WINDOW_HOURS,
    ) -> bool:
        """False for deleted ids and for ids processed within the window."""
        if self.is_deleted(external_id):
            return False
        last = self.last_processed(external_id)
        if last is None:
            return True
        return _as_utc(now) - last >= timedelta(hours=reprocess_window_hours)

    def forget(self, external_id: str) -> None:
        """Drop the processed timestamp. Deletion is never undone."""
        self._backend.delete(PROCESSED, external_id)

    def processed_ids(self) -> list[str]:
        return self._backend.keys(PROCESSED)

    def deleted_ids(self) -> list[str]:
        return self._backend.keys(DELETED)

    def close(self) -> None:
        self._backend.close()
