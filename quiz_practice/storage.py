"""Durable key space for stats, session snapshots and the user profile."""
from __future__ import annotations

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from quiz_practice.models import UserProfile

log = logging.getLogger("quiz_practice.storage")

STATS_KEY = "prep_master_stats"
USER_KEY = "prep_master_user"
PROGRESS_KEY_PREFIX = "quiz_progress_"

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def progress_key(subject_id: str) -> str:
    return f"{PROGRESS_KEY_PREFIX}{subject_id}"


class Storage(ABC):
    """Raw text blobs by key. No transactions span calls."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    def close(self) -> None:
        pass


class MemoryStorage(Storage):
    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SqliteStorage(Storage):
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    def get(self, key: str) -> str | None:
        row = self.conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        self.conn.execute(
            "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
            (key, value, now),
        )
        self.conn.commit()

    def delete(self, key: str) -> None:
        self.conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self.conn.commit()


def read_user_profile(storage: Storage) -> UserProfile | None:
    """The locally signed-in learner, if any. Unreadable profiles count as signed out."""
    raw = storage.get(USER_KEY)
    if raw is None:
        return None
    try:
        data = json.loads(raw)
        return UserProfile(
            email=str(data["email"]),
            name=str(data["name"]),
            is_verified=bool(data.get("is_verified", False)),
        )
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        log.warning("Ignoring unreadable user profile: %s", e)
        return None
