"""Tests for offline-first local mutations in UserRepository."""

from __future__ import annotations

import pytest

from conftest import FakeRemoteStore, make_user
from usersync.errors import StorageFailure
from usersync.models import User
from usersync.repository import UserRepository
from usersync.sync.engine import SyncEngine


@pytest.fixture
def repo(store, engine) -> UserRepository:
    return UserRepository(store, engine)


class TestLocalMutations:
    """Writes land locally with their sync flags forced."""

    def test_insert_assigns_provisional_id(self, repo, store):
        outcome = repo.insert_user(User(id="", first_name="Ana"))

        assert outcome.ok
        assert outcome.message == "User created locally"
        (user,) = store.active_users()
        assert user.is_provisional
        assert user.pending_sync is True
        assert user.first_name == "Ana"

    def test_insert_replaces_server_looking_id(self, repo, store):
        repo.insert_user(make_user("42"))

        (user,) = store.active_users()
        assert user.id != "42"
        assert user.is_provisional

    def test_insert_keeps_provisional_id(self, repo, store):
        repo.insert_user(make_user("local_mine"))

        assert store.all_ids() == {"local_mine"}

    def test_update_forces_pending_sync(self, repo, store):
        store.upsert(make_user("server_1"))

        outcome = repo.update_user(make_user("server_1", first_name="Edited"))

        assert outcome.ok
        stored = store.get("server_1")
        assert stored.first_name == "Edited"
        assert stored.pending_sync is True

    def test_delete_is_soft(self, repo, store):
        store.upsert(make_user("server_1"))

        outcome = repo.delete_user(store.get("server_1"))

        assert outcome.message == "User marked for deletion"
        assert repo.active_users() == []
        stored = store.get("server_1")
        assert stored.pending_delete is True
        assert stored.pending_sync is True

    def test_storage_failure_is_error_outcome(self, repo, store, monkeypatch):
        def broken(user):
            raise StorageFailure("disk full")

        monkeypatch.setattr(store, "upsert", broken)

        outcome = repo.insert_user(User(id="", first_name="Ana"))

        assert not outcome.ok
        assert outcome.message == "Error creating local user"
        assert isinstance(outcome.cause, StorageFailure)

    def test_pending_counts(self, repo, store):
        repo.insert_user(User(id="", first_name="New"))
        store.upsert(make_user("server_1"))
        repo.delete_user(store.get("server_1"))
        store.add_failed_delete("server_0")

        assert repo.pending_counts() == {"upserts": 1, "deletes": 1, "failed_deletes": 1}


class TestRepositorySync:
    """Offline edits followed by a sync round-trip."""

    def test_create_edit_delete_then_sync(self, store):
        remote = FakeRemoteStore([make_user("server_1"), make_user("server_2")], next_id=3)
        repo = UserRepository(store, SyncEngine(store, remote))
        repo.sync_from_server()

        repo.insert_user(User(id="", first_name="Carla"))
        repo.update_user(store.get("server_1").model_copy(update={"age": 50}))
        repo.delete_user(store.get("server_2"))

        pushed, pulled = repo.sync()

        assert pushed.counts == {"uploaded": 2, "deleted": 1}
        assert pulled.counts == {"inserted": 0, "updated": 0}
        assert {u.id for u in repo.active_users()} == {"server_1", "server_3"}
        assert remote.users["server_1"].age == 50
        assert "server_2" not in remote.users
        assert all(not u.pending_sync for u in repo.active_users())

    def test_observer_sees_offline_edits(self, repo):
        seen = []
        repo.subscribe_active(lambda users: seen.append(len(users)))

        repo.insert_user(User(id="", first_name="Ana"))

        assert seen == [0, 1]
