"""Live database connection handle and the state that owns it."""

import sqlite3
from pathlib import Path
from typing import Any, Iterable, List, Optional, Protocol, Tuple, Union

import aiosqlite

from ._utils import logger


class DatabaseHandle(Protocol):
    """Minimal contract the backup subsystem needs from a live connection."""

    async def checkpoint(self, mode: str = "FULL") -> Tuple[int, int, int]:
        ...

    async def close(self) -> None:
        ...


class SQLiteDatabase:
    """WAL-mode SQLite connection backed by aiosqlite."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._conn: Optional[aiosqlite.Connection] = None

    @classmethod
    async def open(cls, path: Union[str, Path], wal: bool = True) -> "SQLiteDatabase":
        """Open (or create) the database at ``path``."""
        db = cls(path)
        db.path.parent.mkdir(parents=True, exist_ok=True)
        db._conn = await aiosqlite.connect(str(db.path))
        if wal:
            await db._conn.execute("PRAGMA journal_mode=WAL")
        await db._conn.execute("PRAGMA foreign_keys=ON")
        logger.info(f"Opened database: {db.path}")
        return db

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _require(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise sqlite3.ProgrammingError(f"Database is closed: {self.path}")
        return self._conn

    async def execute(self, sql: str, params: Iterable[Any] = ()) -> List[Tuple[Any, ...]]:
        """Execute a statement, commit, and return any fetched rows."""
        conn = self._require()
        async with conn.execute(sql, tuple(params)) as cursor:
            rows = await cursor.fetchall()
        await conn.commit()
        return list(rows)

    async def executescript(self, script: str) -> None:
        conn = self._require()
        await conn.executescript(script)
        await conn.commit()

    async def checkpoint(self, mode: str = "FULL") -> Tuple[int, int, int]:
        """Run ``PRAGMA wal_checkpoint(mode)``.

        Returns:
            (busy, wal_frames, checkpointed_frames) as reported by SQLite
        """
        conn = self._require()
        async with conn.execute(f"PRAGMA wal_checkpoint({mode})") as cursor:
            row = await cursor.fetchone()
        if row is None:
            return (0, -1, -1)
        return (int(row[0]), int(row[1]), int(row[2]))

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        logger.info(f"Closed database: {self.path}")


class ConnectionState:
    """Owns the application's live database handle.

    Passed explicitly to the components that need it instead of living in a
    module-level singleton. Only restore is allowed to clear it.
    """

    def __init__(self, instance: Optional[DatabaseHandle] = None):
        self._instance = instance

    def get_instance(self) -> Optional[DatabaseHandle]:
        return self._instance

    def set_instance(self, instance: Optional[DatabaseHandle]) -> None:
        self._instance = instance
