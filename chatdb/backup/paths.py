"""Database and backup directory resolution."""

from pathlib import Path
from typing import Optional

from .._utils import logger
from ..config import BackupConfig
from .exceptions import FileSystemError


def get_database_path(config: BackupConfig) -> Path:
    """Path of the live database file."""
    return config.app_data_path / config.database_filename


def get_backup_directory(config: BackupConfig, directory: Optional[str] = None) -> Path:
    """Backup directory: explicit override, then config, then <app-data>/backups."""
    if directory:
        return Path(directory)
    if config.backup_dir:
        return Path(config.backup_dir)
    return config.app_data_path / "backups"


def ensure_backup_directory(directory: Path) -> Path:
    """Create the backup directory if it does not exist yet."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(f"Failed to create backup directory {directory}: {e}", str(directory)) from e
    if not directory.is_dir():
        raise FileSystemError(f"Backup path is not a directory: {directory}", str(directory))
    logger.debug(f"Backup directory ready: {directory}")
    return directory
