"""Tests for the user entity, its wire shape and sync outcomes."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import make_user
from usersync.models import (
    LOCAL_ID_PREFIX,
    Error,
    RemoteUser,
    Success,
    User,
    is_provisional_id,
    new_local_id,
)


class TestIds:
    """Provisional vs server ids."""

    def test_new_local_id_is_provisional(self):
        first, second = new_local_id(), new_local_id()

        assert first.startswith(LOCAL_ID_PREFIX)
        assert is_provisional_id(first)
        assert first != second

    def test_server_ids_are_not_provisional(self):
        assert not is_provisional_id("42")
        assert not is_provisional_id("server_local_1")

    def test_provisional_user_is_always_pending(self):
        user = User(id="local_1", first_name="Ana", pending_sync=False)

        assert user.is_provisional
        assert user.pending_sync is True

    def test_server_user_keeps_flags(self):
        user = User(id="9")

        assert not user.is_provisional
        assert user.pending_sync is False
        assert user.pending_delete is False


class TestUser:
    """Entity behavior."""

    def test_frozen(self):
        user = make_user("9")

        with pytest.raises(ValidationError):
            user.id = "10"

    def test_copy_with_update(self):
        user = make_user("9")
        edited = user.model_copy(update={"first_name": "Anita", "pending_sync": True})

        assert edited.id == "9"
        assert edited.first_name == "Anita"
        assert user.first_name == "Ana"

    def test_display_name_fallbacks(self):
        assert make_user("9").display_name == "Ana García"
        assert User(id="9", user_name="ana").display_name == "ana"
        assert User(id="9").display_name == "9"


class TestWireShape:
    """camelCase on the wire, flags never sent."""

    def test_to_remote_wire_keys(self):
        wire = make_user("9", pending_sync=True).to_remote().to_wire()

        assert wire == {
            "id": "9",
            "firstName": "Ana",
            "lastName": "García",
            "email": "ana@example.com",
            "age": 34,
            "userName": "agarcia",
            "positionTitle": "Engineer",
            "imagen": "https://example.com/ana.png",
        }

    def test_to_wire_without_id(self):
        assert "id" not in make_user("local_1").to_remote().to_wire(include_id=False)

    def test_from_wire_ignores_unknown_keys(self):
        remote = RemoteUser.model_validate(
            {"id": 12, "firstName": "Bruno", "avatarColor": "blue"}
        )

        assert remote.id == "12"
        assert remote.to_local() == User(id="12", first_name="Bruno")

    def test_round_trip_preserves_profile(self):
        user = make_user("9", pending_sync=True)
        back = RemoteUser.model_validate(user.to_remote().to_wire()).to_local()

        assert back.profile() == user.profile()
        assert back.id == user.id
        assert back.pending_sync is False

    def test_to_local_requires_id(self):
        with pytest.raises(ValueError):
            RemoteUser(firstName="Ana").to_local()


class TestOutcomes:
    """Success / Error tagging."""

    def test_success(self):
        outcome = Success("Uploaded: 1, Deleted: 0", {"uploaded": 1, "deleted": 0})

        assert outcome.ok
        assert outcome.counts["uploaded"] == 1

    def test_error_carries_cause(self):
        cause = RuntimeError("offline")
        outcome = Error("Error downloading data from server", cause)

        assert not outcome.ok
        assert outcome.cause is cause
