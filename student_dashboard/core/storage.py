"""
Thread-safe SQLite key-value store for student-dashboard.

This is the durable slot the rest of the application persists into: one
table of string keys to string values, the same shape as a browser's
localStorage. The local record cache keeps its JSON array under one key;
the session gate keeps its flags under the "session." prefix.

Schema:
    schema_version:  Single row with DATABASE_VERSION
    kv:              key TEXT PRIMARY KEY, value TEXT, updated_at TEXT

Usage:
    store = KeyValueStore(Path("~/.student-dashboard/storage.db").expanduser())
    store.set("localStudents", "[]")
    raw = store.get("localStudents")

    # Ephemeral store, e.g. for tests
    store = KeyValueStore(":memory:")
"""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

from student_dashboard.core.exceptions import PersistError


DATABASE_VERSION = 1
MEMORY_PATH = ":memory:"


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT
);
"""


class KeyValueStore:
    """
    Thread-safe SQLite key-value store.

    One connection serves every call; a threading.Lock serialises access.
    All public methods acquire self._lock before executing, and every
    sqlite3 failure surfaces as PersistError.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

        if db_path != MEMORY_PATH:
            parent = Path(db_path).parent
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PersistError(
                    f"Cannot create storage directory: {parent}",
                    details={"path": str(parent), "original_error": str(e)}
                ) from e

        try:
            self._init_database()
        except sqlite3.Error as e:
            raise PersistError(
                f"Failed to initialize storage: {e}",
                details={"path": str(db_path)}
            ) from e

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Yield the shared connection, opening it on first use.

        The connection is created once and reused for all operations; for
        ":memory:" it is also the only place the data lives.
        """
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                check_same_thread=False  # guarded by _lock
            )
            if self.db_path != MEMORY_PATH:
                self._conn.execute("PRAGMA journal_mode = WAL")
        yield self._conn

    def close(self) -> None:
        """Close the connection; a later call reopens it."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "KeyValueStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _init_database(self) -> None:
        with self._get_connection() as conn:
            conn.executescript(_SCHEMA_SQL)

            cursor = conn.execute("SELECT version FROM schema_version LIMIT 1")
            row = cursor.fetchone()

            if row is None:
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (DATABASE_VERSION,))
            elif row[0] != DATABASE_VERSION:
                raise PersistError(
                    f"Storage version mismatch: expected {DATABASE_VERSION}, got {row[0]}",
                    details={"expected": DATABASE_VERSION, "actual": row[0]}
                )
            conn.commit()

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def get(self, key: str) -> str | None:
        """Return the value stored under key, or None if absent."""
        with self._lock:
            try:
                with self._get_connection() as conn:
                    row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            except sqlite3.Error as e:
                raise PersistError(
                    f"Failed to read '{key}': {e}",
                    details={"key": key, "original_error": str(e)}
                ) from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        """Create or overwrite the value under key."""
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        INSERT INTO kv (key, value, updated_at)
                        VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET
                            value = excluded.value,
                            updated_at = excluded.updated_at
                    """, (key, value, self._now_iso()))
                    conn.commit()
            except sqlite3.Error as e:
                raise PersistError(
                    f"Failed to write '{key}': {e}",
                    details={"key": key, "original_error": str(e)}
                ) from e

    def delete(self, key: str) -> bool:
        """Remove key. Returns True if something was removed."""
        with self._lock:
            try:
                with self._get_connection() as conn:
                    cursor = conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                    conn.commit()
            except sqlite3.Error as e:
                raise PersistError(
                    f"Failed to delete '{key}': {e}",
                    details={"key": key, "original_error": str(e)}
                ) from e
        return cursor.rowcount > 0

    def keys(self, prefix: str = "") -> list[str]:
        """All keys starting with prefix, sorted."""
        with self._lock:
            try:
                with self._get_connection() as conn:
                    rows = conn.execute(
                        "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
                        (len(prefix), prefix)
                    ).fetchall()
            except sqlite3.Error as e:
                raise PersistError(
                    f"Failed to list keys: {e}",
                    details={"prefix": prefix, "original_error": str(e)}
                ) from e
        return [row[0] for row in rows]
