"""Utility functions for backup/restore operations."""

import hashlib
import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .._utils import logger
from .exceptions import ChecksumComputationError


BACKUP_EXTENSION = ".sqlite"
DEFAULT_BACKUP_NAME = "database-backup"
MANIFEST_SUFFIX = ".json"

# ISO-8601 UTC with ':' and '.' replaced by '-', e.g. 2024-01-01T12-00-00-000Z
TIMESTAMP_PATTERN = re.compile(r"(\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z)")


def format_backup_timestamp(moment: datetime) -> str:
    """Render a datetime as a filename-safe, lexicographically sortable stamp."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def parse_backup_timestamp(filename: str) -> Optional[datetime]:
    """Extract the embedded creation timestamp from a backup filename.

    Returns:
        Timezone-aware UTC datetime, or None if the name carries no stamp
    """
    match = TIMESTAMP_PATTERN.search(filename)
    if not match:
        return None

    stamp = match.group(1)
    try:
        base = datetime.strptime(stamp[:19], "%Y-%m-%dT%H-%M-%S")
    except ValueError:
        return None
    millis = int(stamp[20:23])
    return base.replace(microsecond=millis * 1000, tzinfo=timezone.utc)


def generate_backup_filename(name: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Generate backup filename with timestamp.

    Returns:
        Filename in format: <name>-YYYY-MM-DDTHH-MM-SS-mmmZ.sqlite
    """
    name = name or DEFAULT_BACKUP_NAME
    if "/" in name or "\\" in name:
        raise ValueError(f"Backup name must not contain path separators: {name}")
    now = now or datetime.now(timezone.utc)
    return f"{name}-{format_backup_timestamp(now)}{BACKUP_EXTENSION}"


def compute_checksum(file_path: Path) -> str:
    """Compute SHA-256 checksum of file.

    Args:
        file_path: Path to file

    Returns:
        SHA-256 checksum as hex string with 'sha256:' prefix
    """
    sha256 = hashlib.sha256()

    try:
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(65536), b""):
                sha256.update(chunk)
    except OSError as e:
        raise ChecksumComputationError(str(file_path), str(e)) from e

    return f"sha256:{sha256.hexdigest()}"


def verify_checksum(file_path: Path, expected_checksum: str) -> bool:
    """Verify file checksum.

    Args:
        file_path: Path to file
        expected_checksum: Expected checksum (with 'sha256:' prefix)

    Returns:
        True if checksum matches, False otherwise
    """
    actual_checksum = compute_checksum(file_path)
    return actual_checksum == expected_checksum


def manifest_path(backup_path: Path) -> Path:
    """Sidecar manifest location for a backup file."""
    return backup_path.with_name(backup_path.name + MANIFEST_SUFFIX)


async def save_manifest(manifest: Dict[str, Any], output_path: Path) -> None:
    """Save manifest JSON to file.

    Args:
        manifest: Manifest dictionary
        output_path: Output file path
    """
    with open(output_path, "w") as f:
        json.dump(manifest, f, indent=2, default=str)

    logger.debug(f"Manifest saved: {output_path}")


async def load_manifest(input_path: Path) -> Dict[str, Any]:
    """Load manifest JSON from file.

    Args:
        input_path: Manifest file path

    Returns:
        Manifest dictionary
    """
    with open(input_path, "r") as f:
        manifest = json.load(f)

    logger.debug(f"Manifest loaded: {input_path}")
    return manifest
