"""
Unit tests for configuration management (dbbackup/core/config.py).
"""

import json
from pathlib import Path

import pytest

from dbbackup.core.config import ConfigManager

ENV_VARS = [
    "DB_TYPE", "DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD", "DB_NAME",
    "BACKUP_TYPE", "BACKUP_COMPRESS", "BACKUP_CLOUD", "BACKUP_DIR",
    "BACKUP_LOG_LEVEL", "BACKUP_LOG_FILE", "BACKUP_CLOUD_PROVIDER",
    "BACKUP_CLOUD_TARGET_DIR", "BACKUP_NOTIFICATIONS",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


def make_config(tmp_path, content=None):
    config_file = tmp_path / "config.json"
    if content is not None:
        config_file.write_text(content if isinstance(content, str) else json.dumps(content))
    return ConfigManager(config_file, load_env_file=False)


class TestDefaults:

    def test_default_values(self, tmp_path):
        config = make_config(tmp_path)

        assert config.get_database_defaults()["host"] == "localhost"
        assert config.get_database_defaults()["db"] is None
        assert config.get_backup_defaults() == {"type": "full", "compress": False, "cloud": False}
        assert config.get_upload_config()["provider"] == "log"
        assert config.notifications_enabled() is True
        assert config.get_log_level() == "INFO"
        assert config.get_log_file() is None

    def test_backup_dir_resolved_at_runtime(self, tmp_path):
        config = make_config(tmp_path)

        assert config.get_backup_dir() == Path.home() / "db_backups"
        assert not config.get_backup_dir().exists()


class TestFileConfig:

    def test_file_overrides_defaults(self, tmp_path):
        config = make_config(tmp_path, {
            "database": {"db": "mysql", "port": 3307},
            "backup": {"compress": True},
        })

        database = config.get_database_defaults()
        assert database["db"] == "mysql"
        assert database["port"] == 3307
        assert database["host"] == "localhost"
        assert config.get_backup_defaults()["compress"] is True
        assert config.get_backup_defaults()["cloud"] is False

    def test_invalid_file_is_ignored(self, tmp_path, caplog):
        config = make_config(tmp_path, "{not json")

        assert config.get_database_defaults()["host"] == "localhost"
        assert "Error loading config file" in caplog.text


class TestEnvironment:

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DB_TYPE", "postgres")
        monkeypatch.setenv("DB_PORT", "6543")
        monkeypatch.setenv("DB_NAME", "analytics")
        monkeypatch.setenv("BACKUP_COMPRESS", "yes")
        monkeypatch.setenv("BACKUP_CLOUD", "0")
        monkeypatch.setenv("BACKUP_DIR", str(tmp_path / "out"))
        monkeypatch.setenv("BACKUP_NOTIFICATIONS", "false")

        config = make_config(tmp_path, {"database": {"db": "mysql"}, "backup": {"cloud": True}})

        database = config.get_database_defaults()
        assert database["db"] == "postgres"
        assert database["port"] == 6543
        assert database["dbname"] == "analytics"
        assert config.get_backup_defaults()["compress"] is True
        assert config.get_backup_defaults()["cloud"] is False
        assert config.get_backup_dir() == tmp_path / "out"
        assert config.notifications_enabled() is False

    def test_non_integer_port_is_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DB_PORT", "not-a-port")

        config = make_config(tmp_path)

        assert config.get_database_defaults()["port"] is None

    def test_dotenv_file_is_loaded(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("DB_USER=from_dotenv\n")
        monkeypatch.chdir(tmp_path)

        config = ConfigManager(tmp_path / "missing.json")

        assert config.get_database_defaults()["user"] == "from_dotenv"

    def test_get_config_value(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BACKUP_CLOUD_PROVIDER", "local")

        config = make_config(tmp_path)

        assert config.get_config_value("upload.provider") == "local"
        assert config.get_config_value("upload.missing", "fallback") == "fallback"
