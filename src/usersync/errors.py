"""Exception taxonomy shared by the stores and the sync engine."""

from __future__ import annotations

from typing import Optional


class UserSyncError(Exception):
    """Base class for every usersync failure."""


class StorageFailure(UserSyncError):
    """Raised when the local replica rejects a read or write."""


class RemoteFailure(UserSyncError):
    """Raised when the remote store is unreachable or misbehaves.

    Covers network errors, non-2xx responses and payloads that
    do not deserialize into a user record.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SyncCancelled(UserSyncError):
    """Raised inside the engine when the caller's stop event is set."""


class ConfigError(UserSyncError):
    """Raised when the config file cannot be read or validated."""
