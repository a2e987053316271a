"""
Configuration for a usersync home directory.

    ~/.usersync/
    ├── config.yaml     # UserSyncConfig
    ├── users.db        # SQLite local replica
    └── logs/
        └── usersync.log

Environment overrides (applied after the file):
    USERSYNC_API_URL   -> api_base_url
    USERSYNC_TIMEOUT   -> request_timeout
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from . import USERSYNC_HOME
from .errors import ConfigError

logger = logging.getLogger("usersync.config")

CONFIG_FILE = "config.yaml"
DEFAULT_API_URL = "https://69286b9db35b4ffc5015a129.mockapi.io/api/wirtz/"


class UserSyncConfig(BaseModel):
    """Settings for the local replica, the remote API and the trigger."""

    api_base_url: str = DEFAULT_API_URL
    request_timeout: float = Field(default=15.0, gt=0)
    database: Path = Path("users.db")
    sync_interval: int = Field(default=300, ge=1, description="Seconds between background syncs")
    retry_failed_deletes: bool = False

    def database_path(self, home: Path) -> Path:
        """Resolve the database path against the home directory."""
        db = self.database.expanduser()
        return db if db.is_absolute() else home / db


def resolve_home(home: Optional[Path] = None) -> Path:
    """Expand the home directory, defaulting to USERSYNC_HOME."""
    return Path(home or USERSYNC_HOME).expanduser()


def load_config(home: Optional[Path] = None) -> UserSyncConfig:
    """Load config.yaml from home and apply environment overrides.

    A missing file yields defaults. An unreadable or invalid file
    raises ConfigError rather than silently falling back.

    Args:
        home: usersync home directory.

    Returns:
        UserSyncConfig: The effective configuration.
    """
    config_file = resolve_home(home) / CONFIG_FILE
    data: dict = {}
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read {config_file}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{config_file} must contain a mapping")

    env_url = os.environ.get("USERSYNC_API_URL")
    if env_url:
        data["api_base_url"] = env_url
    env_timeout = os.environ.get("USERSYNC_TIMEOUT")
    if env_timeout:
        data["request_timeout"] = env_timeout

    try:
        config = UserSyncConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_file}: {exc}") from exc

    logger.debug("Loaded config from %s (api=%s)", config_file, config.api_base_url)
    return config


def save_config(config: UserSyncConfig, home: Optional[Path] = None) -> Path:
    """Persist the configuration as YAML and return the file path."""
    home_path = resolve_home(home)
    home_path.mkdir(parents=True, exist_ok=True)
    config_file = home_path / CONFIG_FILE
    config_file.write_text(
        yaml.dump(config.model_dump(mode="json"), default_flow_style=False),
        encoding="utf-8",
    )
    return config_file
