"""Independent integrity validation of database files."""

import struct
from pathlib import Path
from typing import Iterable, Set, Union

import aiosqlite

from .._utils import logger
from ..config import DEFAULT_REQUIRED_TABLES
from .files import SHM_SUFFIX, WAL_SUFFIX, companion_path


SQLITE_MAGIC = b"SQLite format 3\x00"
SQLITE_HEADER_SIZE = 100
USER_VERSION_OFFSET = 60


def _readonly_uri(path: Path) -> str:
    return f"{path.resolve().as_uri()}?mode=ro"


def _existing_companions(path: Path) -> Set[str]:
    return {suffix for suffix in (WAL_SUFFIX, SHM_SUFFIX) if companion_path(path, suffix).exists()}


def _remove_created_companions(path: Path, existing: Set[str]) -> None:
    # Opening a WAL-mode file read-only still creates -wal/-shm next to it
    for suffix in (WAL_SUFFIX, SHM_SUFFIX):
        if suffix in existing:
            continue
        target = companion_path(path, suffix)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove {target} left by integrity check: {e}")


async def validate_backup_integrity(
    path: Union[str, Path],
    required_tables: Iterable[str] = DEFAULT_REQUIRED_TABLES,
) -> bool:
    """Check a database file without touching the live connection.

    Opens a throwaway read-only connection and requires both:
      - ``PRAGMA integrity_check`` to return exactly one row, "ok"
      - every table in ``required_tables`` to be present

    Companion files SQLite creates during the check are removed afterwards.

    Args:
        path: Database file to check
        required_tables: Core application tables

    Returns:
        True if the file passes both checks, False otherwise (never raises)
    """
    path = Path(path)
    if not path.is_file():
        logger.warning(f"Integrity check skipped, file not found: {path}")
        return False

    existing = _existing_companions(path)
    conn = None
    try:
        conn = await aiosqlite.connect(_readonly_uri(path), uri=True)

        async with conn.execute("PRAGMA integrity_check") as cursor:
            rows = await cursor.fetchall()
        if len(rows) != 1 or rows[0][0] != "ok":
            details = "; ".join(str(r[0]) for r in rows[:5])
            logger.warning(f"Integrity check failed for {path}: {details}")
            return False

        async with conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'") as cursor:
            present = {row[0] for row in await cursor.fetchall()}
        missing = [t for t in required_tables if t not in present]
        if missing:
            logger.warning(f"Schema check failed for {path}: missing tables {missing}")
            return False

        return True

    except Exception as e:
        logger.warning(f"Integrity check error for {path}: {e}")
        return False

    finally:
        if conn is not None:
            await conn.close()
        _remove_created_companions(path, existing)


def read_schema_version(path: Union[str, Path]) -> int:
    """Return the ``user_version`` stored in a database file header, 0 if unreadable."""
    try:
        with open(path, "rb") as f:
            header = f.read(SQLITE_HEADER_SIZE)
    except OSError as e:
        logger.debug(f"Could not read header of {path}: {e}")
        return 0
    if len(header) < SQLITE_HEADER_SIZE or not header.startswith(SQLITE_MAGIC):
        return 0
    return struct.unpack(">i", header[USER_VERSION_OFFSET:USER_VERSION_OFFSET + 4])[0]
