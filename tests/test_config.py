"""Tests for config loading, env overrides and persistence."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from usersync.config import (
    DEFAULT_API_URL,
    UserSyncConfig,
    load_config,
    save_config,
)
from usersync.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("USERSYNC_API_URL", raising=False)
    monkeypatch.delenv("USERSYNC_TIMEOUT", raising=False)


class TestLoadConfig:
    """config.yaml plus environment."""

    def test_defaults_without_file(self, tmp_path: Path):
        config = load_config(tmp_path)

        assert config.api_base_url == DEFAULT_API_URL
        assert config.request_timeout == 15.0
        assert config.sync_interval == 300
        assert config.retry_failed_deletes is False

    def test_reads_yaml(self, tmp_path: Path):
        (tmp_path / "config.yaml").write_text(
            yaml.dump({
                "api_base_url": "https://api.example.com/",
                "request_timeout": 5,
                "database": "replica.db",
                "retry_failed_deletes": True,
            })
        )

        config = load_config(tmp_path)

        assert config.api_base_url == "https://api.example.com/"
        assert config.request_timeout == 5.0
        assert config.database_path(tmp_path) == tmp_path / "replica.db"
        assert config.retry_failed_deletes is True

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch):
        (tmp_path / "config.yaml").write_text("api_base_url: https://file.example.com/\n")
        monkeypatch.setenv("USERSYNC_API_URL", "https://env.example.com/")
        monkeypatch.setenv("USERSYNC_TIMEOUT", "2.5")

        config = load_config(tmp_path)

        assert config.api_base_url == "https://env.example.com/"
        assert config.request_timeout == 2.5

    def test_empty_file_is_defaults(self, tmp_path: Path):
        (tmp_path / "config.yaml").write_text("")

        assert load_config(tmp_path) == UserSyncConfig()

    def test_invalid_yaml(self, tmp_path: Path):
        (tmp_path / "config.yaml").write_text("api_base_url: [unclosed\n")

        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_not_a_mapping(self, tmp_path: Path):
        (tmp_path / "config.yaml").write_text("- just\n- a list\n")

        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_invalid_value(self, tmp_path: Path):
        (tmp_path / "config.yaml").write_text("request_timeout: -1\n")

        with pytest.raises(ConfigError):
            load_config(tmp_path)


class TestSaveConfig:
    """Round trip through disk."""

    def test_save_then_load(self, tmp_path: Path):
        home = tmp_path / "home"
        original = UserSyncConfig(api_base_url="https://api.example.com/", sync_interval=60)

        path = save_config(original, home)

        assert path == home / "config.yaml"
        assert load_config(home) == original

    def test_absolute_database_path(self, tmp_path: Path):
        config = UserSyncConfig(database=tmp_path / "elsewhere.db")

        assert config.database_path(Path("/ignored")) == tmp_path / "elsewhere.db"
