"""Error hierarchy for backup and restore operations."""

from typing import Optional


class BackupError(Exception):
    """Base exception for backup operations."""
    pass


class ConnectionNotInitializedError(BackupError):
    """No live database connection is available."""

    def __init__(self, message: str = "Database not initialized"):
        super().__init__(message)


class IntegrityCheckFailedError(BackupError):
    """A backup failed its structural or schema check."""

    def __init__(self, path: str, message: str = "Backup integrity validation failed"):
        super().__init__(message)
        self.path = path


class FileSystemError(BackupError):
    """Copy, mkdir or unlink failed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ChecksumComputationError(BackupError):
    """The backup file could not be hashed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to compute checksum for {path}: {reason}")
        self.path = path
