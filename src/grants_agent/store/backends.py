"""Key-value backends for persisted sync state."""

import json
import logging
import os
import sqlite3
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

PROCESSED = "processed"
DELETED = "deleted"


class KeyValueBackend(Protocol):
    """Namespaced string key-value store."""

    def get(self, namespace: str, key: str) -> Optional[str]:
        ...

    def set(self, namespace: str, key: str, value: str) -> None:
        ...

    def delete(self, namespace: str, key: str) -> None:
        ...

    def keys(self, namespace: str) -> list[str]:
        ...

    def close(self) -> None:
        ...


class SqliteBackend:
    """
    SQLite-backed state. Every write is a single atomic upsert, so a crash
    mid-run keeps all previously committed items.
    """

    def __init__(self, db_path: str | Path = "grants_agent.db"):
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        with self._connection() as conn:
            conn.executescript(schema_path.read_text())

    def get(self, namespace: str, key: str) -> Optional[str]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT value FROM sync_state WHERE namespace = ? AND key = ?",
                (namespace, key),
            ).fetchone()
        return row["value"] if row else None

    def set(self, namespace: str, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO sync_state (namespace, key, value, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(namespace, key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (namespace, key, value, now),
            )
            conn.commit()

    def delete(self, namespace: str, key: str) -> None:
        with self._connection() as conn:
            conn.execute(
                "DELETE FROM sync_state WHERE namespace = ? AND key = ?",
                (namespace, key),
            )
            conn.commit()

    def keys(self, namespace: str) -> list[str]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT key FROM sync_state WHERE namespace = ? ORDER BY updated_at",
                (namespace,),
            ).fetchall()
        return [r["key"] for r in rows]

    def close(self) -> None:
        pass


class JsonFileBackend:
    """
    One JSON file per namespace in a directory: processed-grants.json maps
    id -> timestamp, deleted-grants.json lists ids. Single writer only.
    """

    FILENAMES = {PROCESSED: "processed-grants.json", DELETED: "deleted-grants.json"}

    def __init__(self, directory: str | Path = "."):
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._data: dict[str, dict[str, str]] = {}

    def _path(self, namespace: str) -> Path:
        return self._dir / self.FILENAMES.get(namespace, f"{namespace}.json")

    def _load(self, namespace: str) -> dict[str, str]:
        if namespace in self._data:
            return self._data[namespace]
        path = self._path(namespace)
        loaded: dict[str, str] = {}
        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Ignoring unreadable state file %s: %s", path, e)
                raw = {}
            if isinstance(raw, list):
                loaded = {str(k): "" for k in raw}
            elif isinstance(raw, dict):
                loaded = {str(k): str(v) for k, v in raw.items()}
        self._data[namespace] = loaded
        return loaded

    def _save(self, namespace: str) -> None:
        data = self._data.get(namespace, {})
        payload = sorted(data) if namespace == DELETED else data
        path = self._path(namespace)
        fd, tmp = tempfile.mkstemp(dir=self._dir, prefix=path.name, suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp, path)

    def get(self, namespace: str, key: str) -> Optional[str]:
        return self._load(namespace).get(key)

    def set(self, namespace: str, key: str, value: str) -> None:
        self._load(namespace)[key] = value
        self._save(namespace)

    def delete(self, namespace: str, key: str) -> None:
        data = self._load(namespace)
        if key in data:
            del data[key]
            self._save(namespace)

    def keys(self, namespace: str) -> list[str]:
        return list(self._load(namespace))

    def close(self) -> None:
        self._data.clear()


def open_backend(kind: str, path: str | Path) -> KeyValueBackend:
    """Backend factory for the configured STATE_BACKEND."""
    kind = (kind or "sqlite").lower()
    if kind == "sqlite":
        return SqliteBackend(path)
    if kind == "json":
        return JsonFileBackend(path)
    raise ValueError(f"Unknown state backend: {kind}. Available: ['sqlite', 'json']")
