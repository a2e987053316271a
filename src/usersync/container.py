"""
Composition root -- builds the stores, the engine and the repository.

Everything is constructed once here and passed down explicitly;
there is no module-level registry to reach into.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from .config import UserSyncConfig, load_config, resolve_home
from .local.base import LocalUserStore
from .local.sqlite_store import SQLiteUserStore
from .remote.base import RemoteUserStore
from .remote.http_client import HttpRemoteStore
from .repository import UserRepository
from .sync.engine import SyncEngine
from .trigger import ResultCallback, SyncTrigger

logger = logging.getLogger("usersync.container")


class AppContainer:
    """Wires one local replica to one remote store.

    Args:
        config: Effective configuration.
        home: usersync home directory.
        local: Override the local store (defaults to SQLite under home).
        remote: Override the remote store (defaults to the HTTP API).
    """

    def __init__(
        self,
        config: UserSyncConfig,
        home: Path,
        local: Optional[LocalUserStore] = None,
        remote: Optional[RemoteUserStore] = None,
    ) -> None:
        self.config = config
        self.home = home
        self.stop_event = threading.Event()

        self.local = local or SQLiteUserStore(config.database_path(home))
        self.remote = remote or HttpRemoteStore(
            config.api_base_url, timeout=config.request_timeout,
        )
        self.engine = SyncEngine(self.local, self.remote, stop_event=self.stop_event)
        self.repository = UserRepository(self.local, self.engine)
        logger.debug("Container ready: home=%s remote=%s", home, self.remote.name)

    def build_trigger(
        self,
        interval: Optional[float] = None,
        on_result: Optional[ResultCallback] = None,
    ) -> SyncTrigger:
        """A trigger driving this container's engine."""
        return SyncTrigger(
            self.engine,
            interval=interval if interval is not None else self.config.sync_interval,
            retry_deletes=self.config.retry_failed_deletes,
            on_result=on_result,
        )


def build_container(home: Optional[Path] = None) -> AppContainer:
    """Load config from home and build the default container."""
    home_path = resolve_home(home)
    return AppContainer(load_config(home_path), home_path)
