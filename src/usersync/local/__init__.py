"""
Local replica -- the user collection as held on this machine.

The contract lives in base.py; SQLiteUserStore is the shipped
implementation.
"""

from .base import LocalUserStore
from .sqlite_store import SQLiteUserStore

__all__ = ["LocalUserStore", "SQLiteUserStore"]
