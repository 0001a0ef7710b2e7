"""Backup and recovery for the chat application database."""

from .manager import BackupManager
from .models import (
    BackupMetadata,
    BackupOptions,
    BackupResult,
    BackupStats,
    RestoreOptions,
    RestoreResult,
)

__all__ = [
    "BackupManager",
    "BackupMetadata",
    "BackupOptions",
    "BackupResult",
    "BackupStats",
    "RestoreOptions",
    "RestoreResult",
]
