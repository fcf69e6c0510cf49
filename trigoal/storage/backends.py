"""Key-value stores holding whole serialized records."""

import logging
import re
import sqlite3
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Narrow get/set interface the diary storage is written against."""

    name = "base"

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key was never set."""
        raise NotImplementedError

    def set(self, key: str, value: str):
        """Replace the value stored under key."""
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store, lost when the process exits."""

    name = "memory"

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value


class FileStore(KeyValueStore):
    """One JSON text file per key inside a data directory."""

    name = "file"

    def __init__(self, data_dir: str = "data"):
        """Initialize store, creating the directory if needed."""
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"File store initialized at {self.data_dir}")

    def _path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.data_dir / f"{safe_key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str):
        path = self._path(key)
        # Write then rename so a crash mid-write leaves the old value intact
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)


class SQLiteStore(KeyValueStore):
    """Simple SQLite table of key/value rows."""

    name = "sqlite"

    def __init__(self, db_path: str = "data/diary.db"):
        """Initialize database."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Create database tables if they don't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.commit()
        logger.info(f"Database initialized at {self.db_path}")

    def get(self, key: str) -> Optional[str]:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()

        if not row:
            return None
        return row[0]

    def set(self, key: str, value: str):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO kv (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
            conn.commit()


def create_store(backend: str, data_dir: str) -> KeyValueStore:
    """
    Build the configured backend.

    Args:
        backend: "file", "sqlite" or "memory"
        data_dir: Directory for on-disk backends

    Returns:
        KeyValueStore instance
    """
    if backend == "memory":
        return MemoryStore()
    if backend == "sqlite":
        return SQLiteStore(str(Path(data_dir) / "diary.db"))
    if backend == "file":
        return FileStore(data_dir)
    raise ValueError(f"Unknown storage backend: {backend}")
