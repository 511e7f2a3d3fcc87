"""Unit tests for SyncStateStore over both backends."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from grants_agent.store import (
    JsonFileBackend,
    SqliteBackend,
    SyncStateStore,
    open_backend,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _backend(kind: str, tmp_path: Path):
    if kind == "sqlite":
        return SqliteBackend(tmp_path / "state.db")
    return JsonFileBackend(tmp_path)


@pytest.fixture(params=["sqlite", "json"])
def backend_kind(request) -> str:
    return request.param


@pytest.fixture
def state(backend_kind: str, tmp_path: Path) -> SyncStateStore:
    """SyncStateStore on a fresh backend in tmp_path."""
    store = SyncStateStore(_backend(backend_kind, tmp_path))
    yield store
    store.close()


class TestReprocessWindow:
    """Tests for should_process and mark_processed."""

    def test_new_id_is_processed(self, state: SyncStateStore) -> None:
        assert state.should_process("abc", NOW) is True
        assert state.last_processed("abc") is None

    def test_within_window_skipped(self, state: SyncStateStore) -> None:
        state.mark_processed("abc", NOW)
        assert state.should_process("abc", NOW + timedelta(hours=1)) is False
        assert state.last_processed("abc") == NOW

    def test_after_window_reprocessed(self, state: SyncStateStore) -> None:
        state.mark_processed("abc", NOW)
        assert state.should_process("abc", NOW + timedelta(hours=24)) is True

    def test_custom_window(self, state: SyncStateStore) -> None:
        state.mark_processed("abc", NOW)
        later = NOW + timedelta(hours=2)
        assert state.should_process("abc", later, reprocess_window_hours=1) is True
        assert state.should_process("abc", later, reprocess_window_hours=0) is True

    def test_naive_timestamps_treated_as_utc(self, state: SyncStateStore) -> None:
        state.mark_processed("abc", NOW.replace(tzinfo=None))
        assert state.last_processed("abc") == NOW

    def test_forget(self, state: SyncStateStore) -> None:
        state.mark_processed("abc", NOW)
        state.forget("abc")
        assert state.should_process("abc", NOW) is True
        assert state.processed_ids() == []


class TestDeletion:
    """The deleted set is sticky."""

    def test_deleted_never_processed(self, state: SyncStateStore) -> None:
        state.mark_deleted("gone", NOW)
        assert state.is_deleted("gone") is True
        assert state.should_process("gone", NOW + timedelta(days=365)) is False

    def test_forget_does_not_undelete(self, state: SyncStateStore) -> None:
        state.mark_deleted("gone", NOW)
        state.forget("gone")
        assert state.is_deleted("gone") is True

    def test_deleted_ids(self, state: SyncStateStore) -> None:
        state.mark_deleted("a")
        state.mark_deleted("b")
        assert sorted(state.deleted_ids()) == ["a", "b"]


class TestPersistence:
    """State survives reopening the backend."""

    def test_reopen(self, backend_kind: str, tmp_path: Path) -> None:
        first = SyncStateStore(_backend(backend_kind, tmp_path))
        first.mark_processed("abc", NOW)
        first.mark_deleted("gone", NOW)
        first.close()

        second = SyncStateStore(_backend(backend_kind, tmp_path))
        assert second.last_processed("abc") == NOW
        assert second.is_deleted("gone") is True
        second.close()


class TestJsonFileBackend:
    """File layout of the JSON backend."""

    def test_file_formats(self, tmp_path: Path) -> None:
        state = SyncStateStore(JsonFileBackend(tmp_path))
        state.mark_processed("abc", NOW)
        state.mark_deleted("zed", NOW)
        state.mark_deleted("gone", NOW)

        processed = json.loads((tmp_path / "processed-grants.json").read_text())
        deleted = json.loads((tmp_path / "deleted-grants.json").read_text())
        assert processed == {"abc": NOW.isoformat()}
        assert deleted == ["gone", "zed"]

    def test_reads_plain_id_lists(self, tmp_path: Path) -> None:
        """A processed file holding a bare id list loads without timestamps."""
        (tmp_path / "processed-grants.json").write_text(json.dumps(["old-id"]))
        state = SyncStateStore(JsonFileBackend(tmp_path))
        assert state.processed_ids() == ["old-id"]
        assert state.last_processed("old-id") is None

    def test_corrupt_file_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "deleted-grants.json").write_text("{not json")
        state = SyncStateStore(JsonFileBackend(tmp_path))
        assert state.deleted_ids() == []


class TestOpenBackend:
    def test_kinds(self, tmp_path: Path) -> None:
        assert isinstance(open_backend("sqlite", tmp_path / "s.db"), SqliteBackend)
        assert isinstance(open_backend("JSON", tmp_path), JsonFileBackend)

    def test_unknown_kind(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Unknown state backend"):
            open_backend("redis", tmp_path)
