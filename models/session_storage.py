"""Durable per-session key/value storage backed by SQLite."""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Iterable

from config.exceptions import StorageError

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS session_kv (
    namespace TEXT NOT NULL,
    key TEXT NOT NULL,
    value TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (namespace, key)
);
"""


class SessionStorage:
    """JSON values keyed by (namespace, key).

    Each book session owns one namespace. ``put_many`` writes all of its
    keys in a single transaction so a reload never sees half an update.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.executescript(_CREATE_TABLE_SQL)
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    def get_many(self, namespace: str, keys: Iterable[str]) -> dict[str, Any]:
        """Return the stored values for ``keys``; missing keys are omitted."""
        keys = list(keys)
        if not keys:
            return {}
        placeholders = ", ".join("?" for _ in keys)
        try:
            conn = self._connect()
            try:
                rows = conn.execute(
                    f"SELECT key, value FROM session_kv WHERE namespace = ? AND key IN ({placeholders})",
                    (namespace, *keys),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Session read failed: {e}", {"namespace": namespace}) from e

        result = {}
        for row in rows:
            try:
                result[row["key"]] = json.loads(row["value"])
            except json.JSONDecodeError:
                logger.warning("Dropping corrupt session value %s/%s", namespace, row["key"])
        return result

    def put_many(self, namespace: str, values: dict[str, Any]):
        if not values:
            return
        try:
            conn = self._connect()
            try:
                with conn:
                    conn.executemany(
                        "INSERT INTO session_kv (namespace, key, value, updated_at) "
                        "VALUES (?, ?, ?, CURRENT_TIMESTAMP) "
                        "ON CONFLICT(namespace, key) DO UPDATE SET "
                        "value = excluded.value, updated_at = CURRENT_TIMESTAMP",
                        [(namespace, key, json.dumps(value)) for key, value in values.items()],
                    )
            finally:
                conn.close()
        except (sqlite3.Error, TypeError) as e:
            raise StorageError(f"Session write failed: {e}", {"namespace": namespace}) from e

    def list_namespaces(self) -> list[str]:
        try:
            conn = self._connect()
            try:
                rows = conn.execute(
                    "SELECT DISTINCT namespace FROM session_kv ORDER BY namespace"
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Session listing failed: {e}") from e
        return [r["namespace"] for r in rows]
