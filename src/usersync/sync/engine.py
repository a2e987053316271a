"""
Sync Engine -- reconciles the local replica with the remote store.

    push  ->  pending upserts (create / update) -> pending deletes
    pull  ->  list remote -> partition by local ids -> upsert batches

Each operation is a strictly sequential loop and returns a single
Success or Error. Work committed by earlier iterations is never
rolled back; re-running an operation simply re-reads what is still
pending.
"""

from __future__ import annotations

import logging
import threading
import weakref
from typing import Optional

from ..errors import RemoteFailure, SyncCancelled, UserSyncError
from ..local.base import LocalUserStore
from ..models import Error, Success, SyncOutcome
from ..remote.base import RemoteUserStore

logger = logging.getLogger("usersync.sync.engine")

PUSH_ERROR = "Error while uploading pending changes"
PULL_ERROR = "Error downloading data from server"
RETRY_ERROR = "Error while retrying failed deletes"

_store_locks: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()
_store_locks_guard = threading.Lock()


def _lock_for(store: LocalUserStore) -> threading.Lock:
    """Single-flight lock shared by every engine bound to this store."""
    with _store_locks_guard:
        lock = _store_locks.get(store)
        if lock is None:
            lock = threading.Lock()
            _store_locks[store] = lock
        return lock


class SyncEngine:
    """Orchestrates push and pull between a local and a remote store.

    Holds no state between calls. Operations against the same local
    store instance are serialized, even across engine instances.

    Args:
        local: The local replica.
        remote: The authoritative remote store.
        stop_event: Optional cancellation signal, checked between
            loop iterations.
    """

    def __init__(
        self,
        local: LocalUserStore,
        remote: RemoteUserStore,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.local = local
        self.remote = remote
        self.stop_event = stop_event

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def push(self) -> SyncOutcome:
        """Upload every pending creation, update and deletion.

        Upserts are processed before deletes. A provisional record is
        created remotely, then replaced locally by the server's record
        (delete-then-insert, the only place a provisional id retires).
        A remote delete failure is logged and tombstoned, never fatal;
        the local purge happens regardless.

        Returns:
            Success with uploaded/deleted counts, or Error.
        """
        with _lock_for(self.local):
            try:
                uploaded = self._upload_pending()
                deleted = self._purge_deleted()
            except SyncCancelled as exc:
                logger.warning("Push cancelled: %s", exc)
                return Error("Upload cancelled", exc)
            except UserSyncError as exc:
                logger.exception("Error during push")
                return Error(PUSH_ERROR, exc)

        counts = {"uploaded": uploaded, "deleted": deleted}
        if uploaded == 0 and deleted == 0:
            return Success("No pending changes", counts)

        logger.info("Push complete: %d uploaded, %d deleted", uploaded, deleted)
        return Success(f"Uploaded: {uploaded}, Deleted: {deleted}", counts)

    def pull(self) -> SyncOutcome:
        """Merge the full remote collection into the local replica.

        Remote always wins on a shared id; a local record already equal
        to its remote version is neither rewritten nor counted. Local
        records the server does not list are left alone, so provisional
        creations and records only present locally survive.

        Returns:
            Success with inserted/updated counts, or Error.
        """
        with _lock_for(self.local):
            try:
                inserted, updated = self._merge_remote()
            except SyncCancelled as exc:
                logger.warning("Pull cancelled: %s", exc)
                return Error("Download cancelled", exc)
            except UserSyncError as exc:
                logger.exception("Error during pull")
                return Error(PULL_ERROR, exc)

        logger.info("Pull complete: %d new, %d updated", inserted, updated)
        return Success(
            f"Downloaded: {inserted} new, {updated} updated",
            {"inserted": inserted, "updated": updated},
        )

    def retry_failed_deletes(self) -> SyncOutcome:
        """Re-send remote deletes that failed during an earlier push.

        A 404 from the server means the record is already gone and
        clears the tombstone like a success does.

        Returns:
            Success with retried/failed counts, or Error on storage failure.
        """
        with _lock_for(self.local):
            try:
                retried, failed = self._retry_tombstones()
            except SyncCancelled as exc:
                logger.warning("Delete retry cancelled: %s", exc)
                return Error("Delete retry cancelled", exc)
            except UserSyncError as exc:
                logger.exception("Error while retrying deletes")
                return Error(RETRY_ERROR, exc)

        counts = {"retried": retried, "failed": failed}
        if retried == 0 and failed == 0:
            return Success("No failed deletes to retry", counts)
        return Success(f"Retried deletes: {retried} ok, {failed} still failing", counts)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _check_cancelled(self) -> None:
        if self.stop_event is not None and self.stop_event.is_set():
            raise SyncCancelled("stop requested")

    def _upload_pending(self) -> int:
        uploaded = 0
        for user in self.local.pending_upserts():
            self._check_cancelled()
            if user.is_provisional:
                created = self.remote.create(user)
                self.local.delete_by_id(user.id)
                self.local.upsert(
                    created.model_copy(update={"pending_sync": False, "pending_delete": False})
                )
                logger.info("Created %s on server as %s", user.id, created.id)
            else:
                self.remote.update(user.id, user)
                self.local.upsert(user.model_copy(update={"pending_sync": False}))
                logger.debug("Updated %s on server", user.id)
            uploaded += 1
        return uploaded

    def _purge_deleted(self) -> int:
        deleted = 0
        for user in self.local.pending_deletes():
            self._check_cancelled()
            if not user.is_provisional:
                try:
                    self.remote.delete(user.id)
                except RemoteFailure as exc:
                    logger.warning("Remote delete failed for %s: %s", user.id, exc)
                    self.local.add_failed_delete(user.id)
            self.local.delete(user)
            deleted += 1
        return deleted

    def _merge_remote(self) -> tuple[int, int]:
        self._check_cancelled()
        # Duplicate ids in the listing collapse to the last one sent.
        remote_users = {user.id: user for user in self.remote.list_all()}
        local_users = {user.id: user for user in self.local.all_users()}

        to_update = []
        to_insert = []
        for user in remote_users.values():
            current = local_users.get(user.id)
            if current is None:
                to_insert.append(user)
            elif current != user:
                to_update.append(user)

        self._check_cancelled()
        if to_update:
            self.local.upsert_many(to_update)
        if to_insert:
            self.local.upsert_many(to_insert)
        return len(to_insert), len(to_update)

    def _retry_tombstones(self) -> tuple[int, int]:
        retried = failed = 0
        for user_id in self.local.failed_deletes():
            self._check_cancelled()
            try:
                self.remote.delete(user_id)
            except RemoteFailure as exc:
                if exc.status_code != 404:
                    logger.warning("Remote delete still failing for %s: %s", user_id, exc)
                    failed += 1
                    continue
                logger.info("Remote user %s already gone", user_id)
            self.local.remove_failed_delete(user_id)
            retried += 1
        return retried, failed
