"""
Local store contract -- what the sync engine needs from the replica.

Reads are filtered by the two sync flags only. Writes are
insert-or-replace by id and physical deletes. Every method may
raise StorageFailure; nothing here retries.

The active-users view is an observer interface: subscribers get
the current snapshot immediately and a fresh one after every
committed write. The engine never subscribes, only display code.
"""

from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Iterator, Optional

from ..errors import StorageFailure
from ..models import User

logger = logging.getLogger("usersync.local")

ActiveObserver = Callable[[list[User]], None]


class LocalUserStore(ABC):
    """Abstract local replica of the user collection."""

    def __init__(self) -> None:
        self._observers: list[ActiveObserver] = []
        self._observers_lock = threading.Lock()

    # --- reads -------------------------------------------------------------

    @abstractmethod
    def active_users(self) -> list[User]:
        """Snapshot of every record with pending_delete = false."""

    @abstractmethod
    def pending_upserts(self) -> list[User]:
        """Snapshot of records with pending_sync and not pending_delete."""

    @abstractmethod
    def pending_deletes(self) -> list[User]:
        """Snapshot of records with pending_delete."""

    @abstractmethod
    def all_ids(self) -> set[str]:
        """Every id currently stored, deleted-pending included."""

    @abstractmethod
    def all_users(self) -> list[User]:
        """Snapshot of every record, deleted-pending included."""

    @abstractmethod
    def get(self, user_id: str) -> Optional[User]:
        """Look up one record by id, or None."""

    # --- writes ------------------------------------------------------------

    @abstractmethod
    def upsert(self, user: User) -> None:
        """Insert or replace a record by id."""

    @abstractmethod
    def upsert_many(self, users: Iterable[User]) -> None:
        """Insert or replace several records in one commit."""

    @abstractmethod
    def delete_by_id(self, user_id: str) -> None:
        """Physically remove the record with this id (no-op if absent)."""

    def delete(self, user: User) -> None:
        """Physically remove a record."""
        self.delete_by_id(user.id)

    # --- failed remote deletes --------------------------------------------

    @abstractmethod
    def add_failed_delete(self, user_id: str) -> None:
        """Remember a server id whose remote delete did not go through."""

    @abstractmethod
    def failed_deletes(self) -> list[str]:
        """Server ids still awaiting a successful remote delete."""

    @abstractmethod
    def remove_failed_delete(self, user_id: str) -> None:
        """Forget a tombstoned id."""

    # --- active users view -------------------------------------------------

    def subscribe_active(self, callback: ActiveObserver) -> Callable[[], None]:
        """Observe the active-users view.

        The callback receives the current snapshot right away, then a
        new snapshot after each committed write.

        Args:
            callback: Called with a list of active users.

        Returns:
            A function that removes the subscription.
        """
        with self._observers_lock:
            self._observers.append(callback)
        callback(self.active_users())

        def unsubscribe() -> None:
            with self._observers_lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def active_stream(
        self,
        stop_event: Optional[threading.Event] = None,
        poll_timeout: float = 0.5,
    ) -> Iterator[list[User]]:
        """Iterate over active-user snapshots as they are committed.

        Runs until stop_event is set or the consumer closes the
        generator. Each call is an independent subscription.
        """
        snapshots: queue.Queue[list[User]] = queue.Queue()
        unsubscribe = self.subscribe_active(snapshots.put)
        try:
            while stop_event is None or not stop_event.is_set():
                try:
                    yield snapshots.get(timeout=poll_timeout)
                except queue.Empty:
                    continue
        finally:
            unsubscribe()

    def _notify_active(self) -> None:
        """Push a fresh snapshot to every observer."""
        with self._observers_lock:
            observers = list(self._observers)
        if not observers:
            return

        try:
            snapshot = self.active_users()
        except StorageFailure as exc:
            logger.error("Cannot refresh active users: %s", exc)
            return

        for observer in observers:
            try:
                observer(list(snapshot))
            except Exception as exc:
                logger.error("Active-users observer failed: %s", exc)
