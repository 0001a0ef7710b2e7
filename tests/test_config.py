"""Tests for configuration management."""

import os
import pytest
from pathlib import Path
from unittest.mock import patch

from chatdb.config import BackupConfig, get_default_app_data_dir, DEFAULT_REQUIRED_TABLES
from chatdb.backup.paths import ensure_backup_directory, get_backup_directory, get_database_path
from chatdb.backup.exceptions import FileSystemError


class TestBackupConfig:
    """Test backup configuration."""

    def test_defaults(self):
        """Test default values."""
        config = BackupConfig()
        assert config.database_filename == "database.sqlite"
        assert config.max_backups == 10
        assert config.include_wal is True
        assert config.include_shm is False
        assert config.auto_cleanup is True
        assert config.required_tables == DEFAULT_REQUIRED_TABLES

    def test_from_env(self, tmp_path):
        """Test creating from environment variables."""
        with patch.dict(os.environ, {
            "CHATDB_APP_DATA_DIR": str(tmp_path),
            "CHATDB_BACKUP_DIR": str(tmp_path / "snapshots"),
            "CHATDB_MAX_BACKUPS": "3",
            "CHATDB_INCLUDE_WAL": "false",
            "CHATDB_INCLUDE_SHM": "true",
            "CHATDB_AUTO_CLEANUP": "false",
        }):
            config = BackupConfig.from_env()
            assert config.app_data_path == tmp_path
            assert config.backup_dir == str(tmp_path / "snapshots")
            assert config.max_backups == 3
            assert config.include_wal is False
            assert config.include_shm is True
            assert config.auto_cleanup is False

    def test_app_name_from_env(self):
        """The app name picks the platform data directory."""
        with patch("chatdb.config.sys.platform", "linux"), \
                patch.dict(os.environ, {
                    "CHATDB_APP_NAME": "team-chat",
                    "CHATDB_APP_DATA_DIR": "",
                    "XDG_CONFIG_HOME": "/xdg",
                }):
            config = BackupConfig.from_env()
            assert config.app_name == "team-chat"
            assert config.app_data_path == Path("/xdg") / "team-chat"

    def test_validation(self):
        """Test validation errors."""
        with pytest.raises(ValueError, match="max_backups must be non-negative"):
            BackupConfig(max_backups=-1)

        with pytest.raises(ValueError, match="database_filename must not be empty"):
            BackupConfig(database_filename="")

    def test_default_backup_options(self):
        config = BackupConfig(backup_dir="/tmp/b", max_backups=4, include_shm=True)
        options = config.default_backup_options()
        assert options.directory == "/tmp/b"
        assert options.max_backups == 4
        assert options.include_shm is True
        assert options.include_wal is True


class TestPaths:
    """Test database and backup path resolution."""

    def test_database_path(self, tmp_path):
        config = BackupConfig(app_data_dir=str(tmp_path))
        assert get_database_path(config) == tmp_path / "database.sqlite"

    def test_backup_directory_precedence(self, tmp_path):
        config = BackupConfig(app_data_dir=str(tmp_path))
        assert get_backup_directory(config) == tmp_path / "backups"

        config = BackupConfig(app_data_dir=str(tmp_path), backup_dir=str(tmp_path / "cfg"))
        assert get_backup_directory(config) == tmp_path / "cfg"
        assert get_backup_directory(config, str(tmp_path / "custom")) == tmp_path / "custom"

    def test_platform_default(self):
        with patch("chatdb.config.sys.platform", "linux"), \
                patch.dict(os.environ, {"XDG_CONFIG_HOME": "/xdg"}):
            assert get_default_app_data_dir("chat") == Path("/xdg") / "chat"

        with patch("chatdb.config.sys.platform", "win32"), \
                patch.dict(os.environ, {"APPDATA": "C:/Users/me/AppData/Roaming"}):
            assert get_default_app_data_dir("chat") == Path("C:/Users/me/AppData/Roaming") / "chat"

        with patch("chatdb.config.sys.platform", "darwin"):
            assert get_default_app_data_dir("chat") == Path.home() / "Library" / "Application Support" / "chat"

    def test_ensure_backup_directory_is_idempotent(self, tmp_path):
        target = tmp_path / "a" / "b"
        assert ensure_backup_directory(target) == target
        assert ensure_backup_directory(target) == target
        assert target.is_dir()

    def test_ensure_backup_directory_over_file(self, tmp_path):
        blocker = tmp_path / "backups"
        blocker.write_text("not a directory")
        with pytest.raises(FileSystemError):
            ensure_backup_directory(blocker)
