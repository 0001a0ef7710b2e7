"""Global pytest configuration and fixtures."""

import pytest
import pytest_asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from chatdb.config import BackupConfig
from chatdb.connection import ConnectionState, SQLiteDatabase
from chatdb.backup.manager import BackupManager
from tests.utils import CHAT_SCHEMA


@pytest.fixture
def app_config(tmp_path):
    """Config rooted in a temporary app-data directory."""
    return BackupConfig(app_data_dir=str(tmp_path / "app-data"))


@pytest_asyncio.fixture
async def live_db(app_config):
    """Open WAL-mode chat database with a few rows written."""
    db = await SQLiteDatabase.open(app_config.app_data_path / app_config.database_filename)
    await db.executescript(CHAT_SCHEMA)
    await db.execute("INSERT INTO conversations (id, name) VALUES (1, 'General')")
    await db.execute("INSERT INTO agents (id, name, role) VALUES (1, 'Ada', 'assistant')")
    await db.execute("INSERT INTO conversation_agents VALUES (1, 1)")
    for i in range(5):
        await db.execute(
            "INSERT INTO messages (conversation_id, agent_id, content) VALUES (1, 1, ?)",
            (f"hello {i}",),
        )
    yield db
    await db.close()


@pytest.fixture
def connection_state(live_db):
    return ConnectionState(live_db)


@pytest.fixture
def manager(connection_state, app_config):
    return BackupManager(connection_state, config=app_config)


@pytest.fixture
def backup_dir(app_config):
    return app_config.app_data_path / "backups"
