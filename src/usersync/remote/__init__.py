"""
Remote store -- the authoritative user collection behind the API.
"""

from .base import RemoteUserStore
from .http_client import HttpRemoteStore

__all__ = ["HttpRemoteStore", "RemoteUserStore"]
