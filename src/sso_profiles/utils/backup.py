"""Backup of the AWS config file before it is rewritten."""

from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path

from sso_profiles.utils.errors import FileAccessError


def backup_config_file(
    config_path: Path,
    backup_dir: str = "~/.aws/backups",
    now: datetime | None = None,
) -> Path | None:
    """Copy the AWS config file into backup_dir.

    Args:
        config_path: The config file about to be overwritten.
        backup_dir: Directory to save backups in (created if missing).
        now: Timestamp for the backup name; defaults to the current time.

    Returns:
        Path of the backup, or None when config_path does not exist yet.

    Raises:
        FileAccessError: The backup directory or file could not be written.
    """
    if not config_path.exists():
        return None

    dir_path = Path(backup_dir).expanduser()
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    backup_path = dir_path / f"{config_path.name}-{stamp}.bak"

    try:
        dir_path.mkdir(parents=True, exist_ok=True)
        shutil.copy2(config_path, backup_path)
    except OSError as e:
        raise FileAccessError(f"Cannot back up {config_path} to {dir_path}: {e}") from e
    return backup_path
