"""Test utilities for chatdb tests."""
import os
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from chatdb.backup.utils import generate_backup_filename


CHAT_SCHEMA = """
CREATE TABLE IF NOT EXISTS conversations (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    is_active INTEGER DEFAULT 1
);
CREATE TABLE IF NOT EXISTS agents (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    role TEXT,
    personality TEXT,
    is_active INTEGER DEFAULT 1,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY,
    conversation_id INTEGER NOT NULL REFERENCES conversations(id),
    agent_id INTEGER REFERENCES agents(id),
    content TEXT NOT NULL,
    type TEXT DEFAULT 'user',
    metadata TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS conversation_agents (
    conversation_id INTEGER NOT NULL REFERENCES conversations(id),
    agent_id INTEGER NOT NULL REFERENCES agents(id),
    PRIMARY KEY (conversation_id, agent_id)
);
PRAGMA user_version = 3;
"""


def create_chat_database(path: Path, messages: int = 3) -> Path:
    """Create a standalone (non-WAL) chat database with a little data."""
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(CHAT_SCHEMA)
        conn.execute("INSERT INTO conversations (id, name) VALUES (1, 'General')")
        conn.execute("INSERT INTO agents (id, name, role) VALUES (1, 'Ada', 'assistant')")
        conn.execute("INSERT INTO conversation_agents VALUES (1, 1)")
        for i in range(messages):
            conn.execute(
                "INSERT INTO messages (conversation_id, agent_id, content) VALUES (1, 1, ?)",
                (f"message {i}",),
            )
        conn.commit()
    finally:
        conn.close()
    return path


def count_messages(path: Path) -> int:
    conn = sqlite3.connect(str(path))
    try:
        return conn.execute("SELECT COUNT(*) FROM messages").fetchone()[0]
    finally:
        conn.close()


def write_fake_backup(
    directory: Path,
    moment: datetime,
    name: Optional[str] = None,
    content: bytes = b"fake backup",
    mtime: Optional[float] = None,
) -> Path:
    """Drop a backup-named file into ``directory`` without a manifest."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / generate_backup_filename(name, moment)
    path.write_bytes(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path
