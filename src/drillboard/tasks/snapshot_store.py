# src/drillboard/tasks/snapshot_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

from ..errors import PersistenceReadError

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "drill_tasks_v1"


class SnapshotStore:
    """
    SQLite key-value slot holding the whole task list as one JSON array.

    - one row per key, value is replaced in full on every save
    - no partial updates, no history
    - each method opens its own short-lived SQLite connection
    """

    def __init__(
        self,
        db_path: str | Path = "tasks.sqlite3",
        key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        if not key or not key.strip():
            raise ValueError("storage key is required")
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._key = key.strip()
        self._ensure_schema()
        logger.info("SnapshotStore ready db=%s key=%s", self._db_path, self._key)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    # ---- public API ----

    def _load_raw(self) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (self._key,)).fetchone()
            return None if row is None else str(row["value"])
        finally:
            conn.close()

    def load(self) -> list[dict[str, Any]]:
        """
        Return the stored record array.

        Missing slot -> [].
        Unparsable JSON or a non-array value -> PersistenceReadError.
        """
        raw = self._load_raw()
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise PersistenceReadError(f"slot {self._key!r} is not valid JSON") from e
        if not isinstance(data, list):
            raise PersistenceReadError(
                f"slot {self._key!r} holds {type(data).__name__}, expected a list"
            )
        return [r for r in data if isinstance(r, dict)]

    def save(self, records: list[dict[str, Any]]) -> None:
        value = json.dumps(records, ensure_ascii=False)
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at
                """,
                (self._key, value, time.time()),
            )
            conn.commit()
            logger.debug("Snapshot saved key=%s records=%d", self._key, len(records))
        finally:
            conn.close()

