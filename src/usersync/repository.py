"""
User repository -- offline-first mutations plus the sync entry points.

Every local mutation lands in the replica immediately with its sync
flags forced; nothing here touches the network. The engine later
drains those flags (push) and merges the server state back (pull).
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .errors import StorageFailure
from .local.base import ActiveObserver, LocalUserStore
from .models import Error, Success, SyncOutcome, User, new_local_id
from .sync.engine import SyncEngine

logger = logging.getLogger("usersync.repository")


class UserRepository:
    """Local-first access to the user collection.

    Args:
        local: The local replica.
        engine: Sync engine bound to the same replica.
    """

    def __init__(self, local: LocalUserStore, engine: SyncEngine) -> None:
        self._local = local
        self._engine = engine

    # --- reads -------------------------------------------------------------

    def active_users(self) -> list[User]:
        return self._local.active_users()

    def subscribe_active(self, callback: ActiveObserver) -> Callable[[], None]:
        return self._local.subscribe_active(callback)

    def get(self, user_id: str) -> Optional[User]:
        return self._local.get(user_id)

    def pending_counts(self) -> dict[str, int]:
        """Number of queued upserts, deletes and failed remote deletes."""
        return {
            "upserts": len(self._local.pending_upserts()),
            "deletes": len(self._local.pending_deletes()),
            "failed_deletes": len(self._local.failed_deletes()),
        }

    # --- local mutations ---------------------------------------------------

    def insert_user(self, user: User) -> SyncOutcome:
        """Create a user locally under a provisional id.

        An id already carrying the provisional prefix is kept; any other
        id (or an empty one) is replaced, since only the server mints
        real ids.
        """
        user_id = user.id if user.is_provisional else new_local_id()
        try:
            self._local.upsert(
                User(**{**user.model_dump(), "id": user_id, "pending_sync": True})
            )
        except StorageFailure as exc:
            logger.error("Error creating local user: %s", exc)
            return Error("Error creating local user", exc)
        return Success("User created locally", {"created": 1})

    def update_user(self, user: User) -> SyncOutcome:
        """Store an edit locally and queue it for upload."""
        try:
            self._local.upsert(user.model_copy(update={"pending_sync": True}))
        except StorageFailure as exc:
            logger.error("Error updating local user %s: %s", user.id, exc)
            return Error("Error updating local user", exc)
        return Success("User updated locally", {"updated": 1})

    def delete_user(self, user: User) -> SyncOutcome:
        """Soft-delete: hide the user now, remove it on the next push."""
        try:
            self._local.upsert(
                user.model_copy(update={"pending_delete": True, "pending_sync": True})
            )
        except StorageFailure as exc:
            logger.error("Error marking user %s for deletion: %s", user.id, exc)
            return Error("Error marking user for deletion", exc)
        return Success("User marked for deletion", {"deleted": 1})

    # --- sync --------------------------------------------------------------

    def upload_pending_changes(self) -> SyncOutcome:
        return self._engine.push()

    def sync_from_server(self) -> SyncOutcome:
        return self._engine.pull()

    def retry_failed_deletes(self) -> SyncOutcome:
        return self._engine.retry_failed_deletes()

    def sync(self) -> tuple[SyncOutcome, SyncOutcome]:
        """Push, then pull. Pull runs even when push failed."""
        return self.upload_pending_changes(), self.sync_from_server()
