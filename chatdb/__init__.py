from .config import BackupConfig
from .connection import ConnectionState, SQLiteDatabase
from .checkpoint import CheckpointManager, CheckpointError

__version__ = "0.3.1"
__author__ = "Chat Desktop Contributors"
__url__ = "https://github.com/chat-desktop/chatdb"

__all__ = [
    "BackupConfig",
    "ConnectionState",
    "SQLiteDatabase",
    "CheckpointManager",
    "CheckpointError",
]
