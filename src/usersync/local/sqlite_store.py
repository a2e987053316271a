"""
SQLite-backed local replica.

Schema:
    users(id PRIMARY KEY, <profile columns>, pending_sync, pending_delete)
    failed_deletes(id PRIMARY KEY, failed_at)

A connection is opened per operation and every call holds the
store lock, so one instance can be shared between the CLI thread
and a background sync trigger.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Optional

from ..errors import StorageFailure
from ..models import PROFILE_FIELDS, User
from .base import LocalUserStore

logger = logging.getLogger("usersync.local.sqlite")

_COLUMNS = ("id", *PROFILE_FIELDS, "pending_sync", "pending_delete")
_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM users"
_UPSERT = (
    f"INSERT OR REPLACE INTO users ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)})"
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    first_name TEXT NOT NULL DEFAULT '',
    last_name TEXT NOT NULL DEFAULT '',
    email TEXT NOT NULL DEFAULT '',
    age INTEGER NOT NULL DEFAULT 0,
    user_name TEXT NOT NULL DEFAULT '',
    position_title TEXT NOT NULL DEFAULT '',
    imagen TEXT NOT NULL DEFAULT '',
    pending_sync INTEGER NOT NULL DEFAULT 0,
    pending_delete INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS failed_deletes (
    id TEXT PRIMARY KEY,
    failed_at TEXT NOT NULL
);
"""


def _to_row(user: User) -> tuple:
    return (
        user.id,
        *(getattr(user, name) for name in PROFILE_FIELDS),
        int(user.pending_sync),
        int(user.pending_delete),
    )


def _from_row(row: sqlite3.Row) -> User:
    data = dict(row)
    data["pending_sync"] = bool(data["pending_sync"])
    data["pending_delete"] = bool(data["pending_delete"])
    return User(**data)


class SQLiteUserStore(LocalUserStore):
    """Local user replica persisted in a single SQLite file.

    Args:
        db_path: Database file. Parent directories are created.
    """

    def __init__(self, db_path: Path) -> None:
        super().__init__()
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        self._initialize()

    def _initialize(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._connect() as conn:
                conn.executescript(_SCHEMA)
        except OSError as exc:
            raise StorageFailure(f"Cannot create {self.db_path}: {exc}") from exc
        logger.debug("SQLite replica ready at %s", self.db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, wrap sqlite errors."""
        with self._lock:
            try:
                conn = sqlite3.connect(self.db_path)
            except sqlite3.Error as exc:
                raise StorageFailure(f"Cannot open {self.db_path}: {exc}") from exc
            conn.row_factory = sqlite3.Row
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as exc:
                raise StorageFailure(str(exc)) from exc
            finally:
                conn.close()

    def _query(self, where: str = "", params: tuple = ()) -> list[User]:
        sql = f"{_SELECT} {where} ORDER BY rowid"
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_from_row(row) for row in rows]

    # --- reads -------------------------------------------------------------

    def active_users(self) -> list[User]:
        return self._query("WHERE pending_delete = 0")

    def pending_upserts(self) -> list[User]:
        return self._query("WHERE pending_sync = 1 AND pending_delete = 0")

    def pending_deletes(self) -> list[User]:
        return self._query("WHERE pending_delete = 1")

    def all_ids(self) -> set[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT id FROM users").fetchall()
        return {row["id"] for row in rows}

    def all_users(self) -> list[User]:
        return self._query()

    def get(self, user_id: str) -> Optional[User]:
        users = self._query("WHERE id = ?", (user_id,))
        return users[0] if users else None

    # --- writes ------------------------------------------------------------

    def upsert(self, user: User) -> None:
        with self._connect() as conn:
            conn.execute(_UPSERT, _to_row(user))
        self._notify_active()

    def upsert_many(self, users: Iterable[User]) -> None:
        rows = [_to_row(user) for user in users]
        if not rows:
            return
        with self._connect() as conn:
            conn.executemany(_UPSERT, rows)
        logger.debug("Upserted %d user(s)", len(rows))
        self._notify_active()

    def delete_by_id(self, user_id: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        self._notify_active()

    # --- failed remote deletes --------------------------------------------

    def add_failed_delete(self, user_id: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO failed_deletes (id, failed_at) VALUES (?, ?)",
                (user_id, datetime.now(timezone.utc).isoformat()),
            )

    def failed_deletes(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id FROM failed_deletes ORDER BY failed_at"
            ).fetchall()
        return [row["id"] for row in rows]

    def remove_failed_delete(self, user_id: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM failed_deletes WHERE id = ?", (user_id,))
