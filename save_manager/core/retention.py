"""Retention manager — keep at most N snapshots per title."""

from __future__ import annotations

import shutil
from pathlib import Path

from loguru import logger

from save_manager.utils import sanitize_title_name


class RetentionManager:
    """Deletes the oldest snapshot directories of a title beyond a limit."""

    def __init__(self, backup_root: Path) -> None:
        self._root = backup_root

    def enforce(self, title_name: str, limit: int) -> int:
        """Remove the oldest ``count - limit`` snapshots. Returns how many were removed."""
        title_dir = self._root / sanitize_title_name(title_name)
        if not title_dir.is_dir():
            return 0

        try:
            snapshots = sorted(
                (entry for entry in title_dir.iterdir() if entry.is_dir()),
                key=lambda entry: entry.name,
            )
        except OSError as e:
            logger.warning(f"Cannot list snapshots of {title_name}: {e}")
            return 0

        excess = len(snapshots) - max(0, limit)
        if excess <= 0:
            return 0

        deleted = 0
        for snapshot in snapshots[:excess]:
            try:
                shutil.rmtree(snapshot)
            except OSError as e:
                logger.warning(f"Failed to remove old snapshot {snapshot}: {e}")
                continue
            deleted += 1
            try:
                title_dir.joinpath(f"{snapshot.name}.zip").unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to remove archive of {snapshot.name}: {e}")
            logger.debug(f"Rotated old snapshot: {title_name}/{snapshot.name}")

        if deleted:
            logger.info(f"Retention removed {deleted} snapshot(s) of {title_name} (limit {limit})")
        return deleted
