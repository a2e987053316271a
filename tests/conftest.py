"""Shared test fixtures for usersync."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import pytest

from usersync.errors import RemoteFailure
from usersync.local.sqlite_store import SQLiteUserStore
from usersync.models import User
from usersync.remote.base import RemoteUserStore
from usersync.sync.engine import SyncEngine


class FakeRemoteStore(RemoteUserStore):
    """In-memory stand-in for the server.

    Records every call in ``calls``. Operation names listed in
    ``fail_on`` raise RemoteFailure (status 503) instead of running.
    """

    def __init__(self, users: Iterable[User] = (), next_id: int = 1) -> None:
        self.users: dict[str, User] = {u.id: u for u in users}
        self.calls: list[tuple[str, Optional[str]]] = []
        self.fail_on: set[str] = set()
        self._next_id = next_id

    @property
    def name(self) -> str:
        return "fake-remote"

    def _record(self, op: str, user_id: Optional[str] = None) -> None:
        self.calls.append((op, user_id))
        if op in self.fail_on:
            raise RemoteFailure(f"{op} unavailable", status_code=503)

    def list_all(self) -> list[User]:
        self._record("list_all")
        return list(self.users.values())

    def create(self, user: User) -> User:
        self._record("create", user.id)
        new_id = f"server_{self._next_id}"
        self._next_id += 1
        created = User(id=new_id, **user.profile())
        self.users[new_id] = created
        return created

    def update(self, user_id: str, user: User) -> User:
        self._record("update", user_id)
        if user_id not in self.users:
            raise RemoteFailure(f"{user_id} not found", status_code=404)
        updated = User(id=user_id, **user.profile())
        self.users[user_id] = updated
        return updated

    def delete(self, user_id: str) -> None:
        self._record("delete", user_id)
        if user_id not in self.users:
            raise RemoteFailure(f"{user_id} not found", status_code=404)
        del self.users[user_id]


@pytest.fixture
def store(tmp_path: Path) -> SQLiteUserStore:
    """An empty SQLite replica in a temp directory."""
    return SQLiteUserStore(tmp_path / "users.db")


@pytest.fixture
def remote() -> FakeRemoteStore:
    """An empty fake server."""
    return FakeRemoteStore()


@pytest.fixture
def engine(store: SQLiteUserStore, remote: FakeRemoteStore) -> SyncEngine:
    """A sync engine wired to the temp replica and the fake server."""
    return SyncEngine(store, remote)


def make_user(user_id: str, **fields) -> User:
    """Build a user with sensible profile defaults."""
    defaults = {
        "first_name": "Ana",
        "last_name": "García",
        "email": "ana@example.com",
        "age": 34,
        "user_name": "agarcia",
        "position_title": "Engineer",
        "imagen": "https://example.com/ana.png",
    }
    defaults.update(fields)
    return User(id=user_id, **defaults)
