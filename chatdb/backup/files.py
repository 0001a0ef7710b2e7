"""Copy primitives for database files and their WAL/SHM companions."""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from .._utils import logger
from .exceptions import FileSystemError


WAL_SUFFIX = "-wal"
SHM_SUFFIX = "-shm"
RESTORE_TMP_SUFFIX = ".restore-tmp"


def companion_path(path: Path, suffix: str) -> Path:
    """`database.sqlite` -> `database.sqlite-wal` / `database.sqlite-shm`."""
    return path.with_name(path.name + suffix)


@dataclass
class CopiedFiles:
    """Which files a copy actually wrote."""
    main: bool = False
    wal: bool = False
    shm: bool = False


def _copy(source: Path, destination: Path) -> None:
    try:
        shutil.copyfile(source, destination)
    except OSError as e:
        raise FileSystemError(f"Failed to copy {source} to {destination}: {e}", str(destination)) from e


def _stage(source: Path, target: Path) -> Path:
    staged = target.with_name(target.name + RESTORE_TMP_SUFFIX)
    try:
        _copy(source, staged)
    except FileSystemError:
        staged.unlink(missing_ok=True)
        raise
    return staged


def _replace(staged: Path, target: Path) -> None:
    try:
        os.replace(staged, target)
    except OSError as e:
        raise FileSystemError(f"Failed to move {staged} into place: {e}", str(target)) from e


def _copy_companion(source: Path, destination: Path, suffix: str) -> bool:
    src = companion_path(source, suffix)
    if not src.exists():
        logger.debug(f"No {suffix} file next to {source}, skipping")
        return False
    _copy(src, companion_path(destination, suffix))
    return True


def create_backup_file(
    db_path: Path,
    backup_path: Path,
    include_wal: bool = True,
    include_shm: bool = False,
) -> CopiedFiles:
    """Copy the live database (and optional companions) to ``backup_path``.

    A missing WAL or SHM file is normal after a checkpoint and is not an error.
    """
    if not db_path.exists():
        raise FileSystemError(f"Database file not found: {db_path}", str(db_path))

    copied = CopiedFiles()
    _copy(db_path, backup_path)
    copied.main = True

    if include_wal:
        copied.wal = _copy_companion(db_path, backup_path, WAL_SUFFIX)
    if include_shm:
        copied.shm = _copy_companion(db_path, backup_path, SHM_SUFFIX)

    logger.debug(f"Backup files written: {backup_path} (wal={copied.wal}, shm={copied.shm})")
    return copied


def remove_companion(path: Path, suffix: str) -> bool:
    target = companion_path(path, suffix)
    if not target.exists():
        return False
    try:
        target.unlink()
    except OSError as e:
        raise FileSystemError(f"Failed to remove {target}: {e}", str(target)) from e
    return True


def restore_backup_file(
    backup_path: Path,
    db_path: Path,
    overwrite_existing: bool = False,
    restore_wal: bool = False,
    restore_shm: bool = False,
) -> CopiedFiles:
    """Copy a backup over the live database files.

    Must only be called once the live connection is closed. Every file is first
    copied next to its target and then moved into place, so a failed copy
    leaves the live files as they were. Nothing is touched when
    ``overwrite_existing`` is False and a live file exists.

    Live companions the backup does not provide are removed, since they
    belong to the replaced database.
    """
    copied = CopiedFiles()

    if db_path.exists() and not overwrite_existing:
        logger.warning(f"Live database exists and overwrite_existing is False, keeping {db_path}")
        return copied

    db_path.parent.mkdir(parents=True, exist_ok=True)

    sources = {db_path: backup_path}
    for suffix, wanted in ((WAL_SUFFIX, restore_wal), (SHM_SUFFIX, restore_shm)):
        src = companion_path(backup_path, suffix)
        if wanted and src.exists():
            sources[companion_path(db_path, suffix)] = src
        elif wanted:
            logger.debug(f"No {suffix} file next to {backup_path}, skipping")

    staged = {}
    try:
        for target, src in sources.items():
            staged[target] = _stage(src, target)

        _replace(staged[db_path], db_path)
        copied.main = True

        wal_target = companion_path(db_path, WAL_SUFFIX)
        if wal_target in staged:
            _replace(staged[wal_target], wal_target)
            copied.wal = True
        elif remove_companion(db_path, WAL_SUFFIX):
            logger.info(f"Removed stale WAL file next to {db_path}")

        shm_target = companion_path(db_path, SHM_SUFFIX)
        if shm_target in staged:
            _replace(staged[shm_target], shm_target)
            copied.shm = True
        elif remove_companion(db_path, SHM_SUFFIX):
            logger.info(f"Removed stale SHM file next to {db_path}")
    finally:
        for tmp in staged.values():
            tmp.unlink(missing_ok=True)

    return copied
