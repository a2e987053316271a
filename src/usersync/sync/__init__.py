"""
Sync -- push pending local changes, pull the server's full state.

Push drains creations, updates and soft deletes to the remote store.
Pull merges every remote record into the replica, remote wins.
"""

from .engine import SyncEngine

__all__ = ["SyncEngine"]
