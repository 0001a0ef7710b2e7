"""Configuration management for chatdb."""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


DEFAULT_APP_NAME = "chat-desktop"
DEFAULT_DATABASE_FILENAME = "database.sqlite"
DEFAULT_REQUIRED_TABLES = ("conversations", "agents", "messages", "conversation_agents")


def get_default_app_data_dir(app_name: str = DEFAULT_APP_NAME) -> Path:
    """Return the per-user application data directory for the current platform."""
    if sys.platform.startswith("win"):
        base = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(base) / app_name
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / app_name
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / app_name


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default).lower()).lower() == "true"


@dataclass(frozen=True)
class BackupConfig:
    """Database location and backup policy configuration."""
    app_name: str = DEFAULT_APP_NAME
    app_data_dir: Optional[str] = None  # None = platform default
    database_filename: str = DEFAULT_DATABASE_FILENAME
    backup_dir: Optional[str] = None  # None = <app_data_dir>/backups
    max_backups: int = 10
    include_wal: bool = True
    include_shm: bool = False
    auto_cleanup: bool = True
    required_tables: Tuple[str, ...] = DEFAULT_REQUIRED_TABLES

    @classmethod
    def from_env(cls) -> 'BackupConfig':
        """Create config from environment variables."""
        return cls(
            app_name=os.getenv("CHATDB_APP_NAME", DEFAULT_APP_NAME),
            app_data_dir=os.getenv("CHATDB_APP_DATA_DIR"),
            database_filename=os.getenv("CHATDB_DATABASE_FILENAME", DEFAULT_DATABASE_FILENAME),
            backup_dir=os.getenv("CHATDB_BACKUP_DIR"),
            max_backups=int(os.getenv("CHATDB_MAX_BACKUPS", "10")),
            include_wal=_env_bool("CHATDB_INCLUDE_WAL", True),
            include_shm=_env_bool("CHATDB_INCLUDE_SHM", False),
            auto_cleanup=_env_bool("CHATDB_AUTO_CLEANUP", True),
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.max_backups < 0:
            raise ValueError(f"max_backups must be non-negative, got {self.max_backups}")
        if not self.database_filename:
            raise ValueError("database_filename must not be empty")
        if not self.required_tables:
            raise ValueError("required_tables must name at least one table")

    @property
    def app_data_path(self) -> Path:
        if self.app_data_dir:
            return Path(self.app_data_dir)
        return get_default_app_data_dir(self.app_name)

    def default_backup_options(self) -> "BackupOptions":
        """Build the manager-level BackupOptions defaults from this config."""
        from .backup.models import BackupOptions

        return BackupOptions(
            directory=self.backup_dir,
            include_wal=self.include_wal,
            include_shm=self.include_shm,
            max_backups=self.max_backups,
            auto_cleanup=self.auto_cleanup,
        )
