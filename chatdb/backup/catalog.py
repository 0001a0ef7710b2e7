"""Backup catalog: enumerate backups on disk and enforce retention.

The catalog is the directory itself. Each ``*.sqlite`` file is one backup;
its sidecar ``.json`` manifest, when present, supplies the metadata. Backups
without a manifest fall back to the timestamp embedded in the filename, then
to the file's mtime.

Retention is best-effort rather than transactional: a backup that cannot be
deleted is logged and skipped, and a partially completed sweep is a valid
terminal state.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import List

from .._utils import logger
from .exceptions import FileSystemError
from .files import SHM_SUFFIX, WAL_SUFFIX, companion_path
from .models import BackupMetadata
from .utils import BACKUP_EXTENSION, load_manifest, manifest_path, parse_backup_timestamp


async def read_backup_metadata(backup_path: Path) -> BackupMetadata:
    """Build metadata for one backup file."""
    stat = backup_path.stat()
    wal_included = companion_path(backup_path, WAL_SUFFIX).exists()
    shm_included = companion_path(backup_path, SHM_SUFFIX).exists()

    sidecar = manifest_path(backup_path)
    if sidecar.exists():
        try:
            data = await load_manifest(sidecar)
            data.update(
                id=backup_path.name,
                file_path=str(backup_path),
                size=stat.st_size,
            )
            return BackupMetadata(**data)
        except Exception as e:
            logger.warning(f"Ignoring unreadable manifest {sidecar.name}: {e}")

    timestamp = parse_backup_timestamp(backup_path.name)
    if timestamp is None:
        timestamp = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)

    return BackupMetadata(
        id=backup_path.name,
        timestamp=timestamp,
        file_path=str(backup_path),
        size=stat.st_size,
        wal_included=wal_included,
        shm_included=shm_included,
    )


async def list_backups(directory: Path) -> List[BackupMetadata]:
    """List all backups in ``directory``, newest first.

    A missing directory means there are no backups yet.
    """
    if not directory.is_dir():
        return []

    backups = []
    for backup_path in directory.glob(f"*{BACKUP_EXTENSION}"):
        if not backup_path.is_file():
            continue
        try:
            backups.append(await read_backup_metadata(backup_path))
        except Exception as e:
            logger.warning(f"Failed to read backup {backup_path.name}: {e}")

    # Filename breaks ties so order never depends on directory listing order
    backups.sort(key=lambda b: (b.timestamp, b.id), reverse=True)
    return backups


def delete_backup_files(backup_path: Path) -> None:
    """Remove a backup file, its companions and its manifest.

    Raises:
        FileSystemError: The main file is missing or could not be removed
    """
    try:
        backup_path.unlink()
    except OSError as e:
        raise FileSystemError(f"Failed to delete {backup_path}: {e}", str(backup_path)) from e

    for extra in (
        companion_path(backup_path, WAL_SUFFIX),
        companion_path(backup_path, SHM_SUFFIX),
        manifest_path(backup_path),
    ):
        try:
            extra.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove {extra.name}: {e}")


async def cleanup_old_backups(directory: Path, max_backups: int) -> List[str]:
    """Delete all but the newest ``max_backups`` backups.

    Returns:
        Paths of the backups actually deleted
    """
    if max_backups < 0:
        raise ValueError(f"max_backups must be non-negative, got {max_backups}")

    backups = await list_backups(directory)
    deleted = []

    for backup in backups[max_backups:]:
        try:
            delete_backup_files(Path(backup.file_path))
            deleted.append(backup.file_path)
            logger.info(f"Deleted old backup: {backup.id}")
        except Exception as e:
            logger.error(f"Failed to delete old backup {backup.id}: {e}")

    return deleted
