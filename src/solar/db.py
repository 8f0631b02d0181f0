"""Local cache store: a flat key/value table in SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import DEFAULT_DB_PATH

FORECAST_KEY = "forecast"
API_KEY_KEY = "apiKey"

SCHEMA = """
-- Last-known-good payloads and stored credentials, one row per key
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


def get_db_path(db_path: Path | None = None) -> Path:
    """Get the database path, creating parent directories if needed."""
    path = Path(db_path or DEFAULT_DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


@contextmanager
def get_connection(db_path: Path | None = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with row factory enabled."""
    conn = sqlite3.connect(get_db_path(db_path))
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        conn.executescript(SCHEMA)
        conn.commit()


class CacheStore:
    """String values stored under fixed keys, surviving process restarts."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path
        init_db(db_path)

    def get(self, key: str) -> str | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM cache_entries WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute(
                """INSERT INTO cache_entries (key, value, updated_at)
                   VALUES (?, ?, CURRENT_TIMESTAMP)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                  updated_at = excluded.updated_at""",
                (key, value),
            )
            conn.commit()

    def delete(self, key: str) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            conn.commit()
