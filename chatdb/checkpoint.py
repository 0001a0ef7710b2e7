"""WAL checkpoint coordination for the live database."""

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from ._utils import logger
from .connection import ConnectionState


CHECKPOINT_MODES = ("PASSIVE", "FULL", "RESTART", "TRUNCATE")


class CheckpointError(Exception):
    """Checkpoint could not be completed."""
    pass


class CheckpointBusyError(CheckpointError):
    """SQLite reported the checkpoint as blocked by another reader or writer."""
    pass


class CheckpointManager:
    """Flush WAL contents into the main database file on request."""

    def __init__(self, state: ConnectionState):
        self.state = state

    async def perform_checkpoint(self, mode: str = "FULL") -> None:
        """Run a checkpoint and wait for it to finish.

        Args:
            mode: One of PASSIVE, FULL, RESTART, TRUNCATE

        Raises:
            ValueError: Unknown mode
            CheckpointError: No live connection, or the database stayed busy
        """
        mode = mode.upper()
        if mode not in CHECKPOINT_MODES:
            raise ValueError(f"Unsupported checkpoint mode: {mode}")

        handle = self.state.get_instance()
        if handle is None:
            raise CheckpointError("Database not initialized")

        await self._checkpoint(handle, mode)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        retry=retry_if_exception_type(CheckpointBusyError),
        reraise=True,
    )
    async def _checkpoint(self, handle, mode: str) -> None:
        busy, wal_frames, checkpointed = await handle.checkpoint(mode)
        if busy:
            logger.warning(f"{mode} checkpoint busy ({checkpointed}/{wal_frames} frames)")
            raise CheckpointBusyError(f"{mode} checkpoint could not complete: database busy")
        logger.debug(f"{mode} checkpoint complete ({checkpointed}/{wal_frames} frames)")
