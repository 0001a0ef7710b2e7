"""Data models for backup and restore operations."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class BackupMetadata(BaseModel):
    """One backup file on disk."""

    id: str = Field(..., description="Backup filename")
    timestamp: datetime = Field(..., description="Backup creation time (UTC)")
    file_path: str = Field(..., description="Absolute path to the backup file")
    size: int = Field(..., description="Backup file size in bytes")
    compressed: bool = Field(default=False, description="Reserved, always False")
    db_version: int = Field(default=0, description="SQLite user_version of the backup")
    app_version: str = Field(default="unknown", description="chatdb version that wrote it")
    checksum: Optional[str] = Field(default=None, description="SHA-256 checksum of the main file")
    wal_included: bool = False
    shm_included: bool = False


class BackupOptions(BaseModel):
    """Options for creating backups."""

    directory: Optional[str] = None
    compression: bool = False
    include_wal: bool = True
    include_shm: bool = False
    max_backups: int = Field(default=10, ge=0)
    auto_cleanup: bool = True
    custom_file_name: Optional[str] = None


class RestoreOptions(BaseModel):
    """Options for restoring from a backup."""

    create_backup_before_restore: bool = True
    validate_integrity: bool = True
    overwrite_existing: bool = False
    restore_wal: bool = False
    restore_shm: bool = False
    verify_checksum: bool = True
    abort_on_snapshot_failure: bool = False


class BackupResult(BaseModel):
    """Outcome of create_backup."""

    success: bool
    file_path: Optional[str] = None
    size: Optional[int] = None
    timestamp: Optional[datetime] = None
    checksum: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "BackupResult":
        return cls(success=False, error=error)


class RestoreResult(BaseModel):
    """Outcome of restore_from_backup."""

    success: bool
    restored_file: Optional[str] = None
    backup_created: Optional[str] = None
    timestamp: Optional[datetime] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "RestoreResult":
        return cls(success=False, error=error)


class BackupStats(BaseModel):
    """Aggregate statistics over the backup catalog."""

    total_backups: int = 0
    total_size: int = 0
    oldest_backup: Optional[datetime] = None
    newest_backup: Optional[datetime] = None
