"""Backup and restore orchestration for the chat database."""

import asyncio
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .._utils import logger
from ..checkpoint import CheckpointManager
from ..config import BackupConfig
from ..connection import ConnectionState
from .catalog import cleanup_old_backups, delete_backup_files, list_backups
from .exceptions import ConnectionNotInitializedError
from .files import create_backup_file, restore_backup_file
from .integrity import read_schema_version, validate_backup_integrity
from .models import (
    BackupMetadata,
    BackupOptions,
    BackupResult,
    BackupStats,
    RestoreOptions,
    RestoreResult,
)
from .paths import ensure_backup_directory, get_backup_directory, get_database_path
from .utils import (
    BACKUP_EXTENSION,
    compute_checksum,
    generate_backup_filename,
    load_manifest,
    manifest_path,
    save_manifest,
    verify_checksum,
)


PRE_RESTORE_BACKUP_NAME = "pre-restore-backup"


class BackupManager:
    """Create, restore, list and prune backups of the live database.

    Public operations never raise: create/restore return result objects,
    delete/validate return booleans. Calls that write or remove files are
    serialized by a per-manager lock.
    """

    def __init__(
        self,
        state: ConnectionState,
        checkpointer: Optional[CheckpointManager] = None,
        config: Optional[BackupConfig] = None,
        options: Optional[BackupOptions] = None,
    ):
        """Initialize backup manager.

        Args:
            state: Owner of the live database handle
            checkpointer: WAL checkpoint trigger, defaults to one bound to ``state``
            config: Database location and policy, defaults to BackupConfig()
            options: Manager-level backup defaults, derived from ``config`` if omitted
        """
        self.state = state
        self.config = config or BackupConfig()
        self.checkpointer = checkpointer or CheckpointManager(state)
        self.options = options or self.config.default_backup_options()
        self._lock = asyncio.Lock()

    @property
    def database_path(self) -> Path:
        return get_database_path(self.config)

    @property
    def backup_directory(self) -> Path:
        return get_backup_directory(self.config, self.options.directory)

    async def create_backup(
        self,
        options: Optional[Union[BackupOptions, Dict[str, Any]]] = None
    ) -> BackupResult:
        """Create a point-in-time backup of the live database.

        Args:
            options: Overrides for the manager's default BackupOptions

        Returns:
            BackupResult with the backup path, size and timestamp, or the error
        """
        try:
            opts = self._merge_options(options)
        except ValueError as e:
            return BackupResult.failure(str(e))

        async with self._lock:
            return await self._create_backup(opts)

    async def restore_from_backup(
        self,
        backup_path: Union[str, Path],
        options: Optional[Union[RestoreOptions, Dict[str, Any]]] = None
    ) -> RestoreResult:
        """Replace the live database with a backup.

        Args:
            backup_path: Backup file to restore from
            options: RestoreOptions, defaults apply when omitted

        Returns:
            RestoreResult with the restored file and safety snapshot path, or the error
        """
        try:
            opts = RestoreOptions(**options) if isinstance(options, dict) else options or RestoreOptions()
        except ValueError as e:
            return RestoreResult.failure(str(e))

        async with self._lock:
            try:
                return await self._restore(Path(backup_path), opts)
            except Exception as e:
                logger.error(f"Restore from {backup_path} failed: {e}")
                return RestoreResult.failure(str(e))

    async def list_backups(self) -> List[BackupMetadata]:
        """List all available backups, newest first."""
        return await list_backups(self.backup_directory)

    async def delete_backup(self, backup_id: str) -> bool:
        """Delete one backup by filename.

        Returns:
            True if deleted, False if not found or not removable
        """
        if (
            not backup_id
            or Path(backup_id).name != backup_id
            or not backup_id.endswith(BACKUP_EXTENSION)
        ):
            logger.warning(f"Refusing to delete invalid backup id: {backup_id!r}")
            return False

        backup_path = self.backup_directory / backup_id
        async with self._lock:
            try:
                if not backup_path.is_file():
                    return False
                delete_backup_files(backup_path)
            except Exception as e:
                logger.error(f"Failed to delete backup {backup_id}: {e}")
                return False

        logger.info(f"Deleted backup: {backup_id}")
        return True

    async def cleanup_old_backups(self) -> List[str]:
        """Apply the retention policy to the backup directory.

        Returns:
            Paths of the deleted backups
        """
        async with self._lock:
            try:
                return await cleanup_old_backups(self.backup_directory, self.options.max_backups)
            except Exception as e:
                logger.error(f"Backup cleanup failed: {e}")
                return []

    async def validate_backup(self, backup_path: Union[str, Path]) -> bool:
        """Check a backup's integrity through an independent read-only connection."""
        return await validate_backup_integrity(backup_path, self.config.required_tables)

    async def get_backup_stats(self) -> BackupStats:
        """Aggregate count, size and age of the current backups."""
        backups = await self.list_backups()
        if not backups:
            return BackupStats()

        timestamps = [b.timestamp for b in backups]
        return BackupStats(
            total_backups=len(backups),
            total_size=sum(b.size for b in backups),
            oldest_backup=min(timestamps),
            newest_backup=max(timestamps),
        )

    # Private helper methods

    def _merge_options(
        self,
        options: Optional[Union[BackupOptions, Dict[str, Any]]]
    ) -> BackupOptions:
        if options is None:
            return self.options
        if isinstance(options, dict):
            options = BackupOptions(**options)
        return self.options.model_copy(update=options.model_dump(exclude_unset=True))

    async def _create_backup(self, opts: BackupOptions) -> BackupResult:
        """Backup body, called with the lock already held."""
        try:
            if self.state.get_instance() is None:
                raise ConnectionNotInitializedError()

            # Fold the WAL into the main file before copying it
            await self.checkpointer.perform_checkpoint("FULL")

            directory = ensure_backup_directory(get_backup_directory(self.config, opts.directory))
            timestamp = datetime.now(timezone.utc)
            filename = generate_backup_filename(opts.custom_file_name, timestamp)
            # Same-millisecond backups must not overwrite each other
            while (directory / filename).exists():
                timestamp += timedelta(milliseconds=1)
                filename = generate_backup_filename(opts.custom_file_name, timestamp)
            backup_path = directory / filename
            logger.info(f"Starting backup: {filename}")

            copied = await asyncio.to_thread(
                create_backup_file,
                self.database_path,
                backup_path,
                opts.include_wal,
                opts.include_shm,
            )

            checksum = await asyncio.to_thread(compute_checksum, backup_path)
            size = backup_path.stat().st_size

            metadata = BackupMetadata(
                id=filename,
                timestamp=timestamp,
                file_path=str(backup_path),
                size=size,
                compressed=False,
                db_version=read_schema_version(backup_path),
                app_version=self._get_version(),
                checksum=checksum,
                wal_included=copied.wal,
                shm_included=copied.shm,
            )
            await save_manifest(metadata.model_dump(mode="json"), manifest_path(backup_path))

            logger.info(f"Backup complete: {filename} ({size:,} bytes)")

            # max_backups == 0 disables the automatic sweep, so a fresh backup is never removed here
            if opts.auto_cleanup and opts.max_backups:
                await cleanup_old_backups(directory, opts.max_backups)

            return BackupResult(
                success=True,
                file_path=str(backup_path),
                size=size,
                timestamp=timestamp,
                checksum=checksum,
            )

        except Exception as e:
            logger.error(f"Backup failed: {e}")
            return BackupResult.failure(str(e))

    async def _restore(self, backup_path: Path, opts: RestoreOptions) -> RestoreResult:
        if not backup_path.is_file():
            return RestoreResult.failure(f"Backup file not found: {backup_path}")

        logger.info(f"Starting restore: {backup_path.name}")

        if opts.verify_checksum:
            expected = await self._stored_checksum(backup_path)
            if expected and not await asyncio.to_thread(verify_checksum, backup_path, expected):
                logger.error(f"Checksum mismatch for {backup_path.name}, expected {expected}")
                return RestoreResult.failure("Backup integrity validation failed: checksum mismatch")

        if opts.validate_integrity and not await self.validate_backup(backup_path):
            return RestoreResult.failure("Backup integrity validation failed")

        backup_created = None
        if opts.create_backup_before_restore:
            snapshot_opts = self.options.model_copy(update={
                "custom_file_name": f"{PRE_RESTORE_BACKUP_NAME}-{int(time.time() * 1000)}",
                "auto_cleanup": False,
            })
            snapshot = await self._create_backup(snapshot_opts)
            if snapshot.success:
                backup_created = snapshot.file_path
            elif opts.abort_on_snapshot_failure:
                return RestoreResult.failure(f"Pre-restore backup failed: {snapshot.error}")
            else:
                logger.warning(f"Pre-restore backup failed, restoring anyway: {snapshot.error}")

        handle = self.state.get_instance()
        if handle is not None:
            await handle.close()
            self.state.set_instance(None)
            logger.info("Live database connection closed for restore")

        await asyncio.to_thread(
            restore_backup_file,
            backup_path,
            self.database_path,
            opts.overwrite_existing,
            opts.restore_wal,
            opts.restore_shm,
        )

        logger.info(f"Restore complete: {backup_path.name}")
        return RestoreResult(
            success=True,
            restored_file=str(backup_path),
            backup_created=backup_created,
            timestamp=datetime.now(timezone.utc),
        )

    async def _stored_checksum(self, backup_path: Path) -> Optional[str]:
        sidecar = manifest_path(backup_path)
        if not sidecar.exists():
            return None
        try:
            manifest = await load_manifest(sidecar)
        except Exception as e:
            logger.warning(f"Unreadable manifest for {backup_path.name}: {e}")
            return None
        return manifest.get("checksum")

    def _get_version(self) -> str:
        """Get chatdb version."""
        try:
            from .. import __version__
            return __version__
        except ImportError:
            return "unknown"
