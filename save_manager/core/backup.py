"""Backup manager — timestamped directory snapshots aggregated from several save sources."""

from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from loguru import logger

from save_manager.core.sources import resolve_slots
from save_manager.i18n import t
from save_manager.models.backup_record import BackupResult, BackupStatus, SnapshotInfo
from save_manager.models.save_source import SaveSource, by_priority
from save_manager.utils import copy_contents, dir_size, is_present, sanitize_title_name

if TYPE_CHECKING:
    from save_manager.core.path_resolver import PathResolver

# Fixed width, so name order is creation order
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
BACKUP_DIR_NAME = "SaveManagerBackups"

ProgressCallback = Callable[[str], None]


def default_backup_root(documents: Path | None) -> Path:
    """``<documents>/SaveManagerBackups``, falling back to the home directory."""
    return (documents or Path.home()) / BACKUP_DIR_NAME


def title_backup_dir(backup_root: Path, title_name: str) -> Path:
    return backup_root / sanitize_title_name(title_name)


def notify(progress: ProgressCallback | None, message: str) -> None:
    """Send a progress message; observer errors never affect the operation."""
    if progress is None:
        return
    try:
        progress(message)
    except Exception as e:
        logger.warning(f"Progress observer failed: {e}")


class BackupManager:
    """Snapshot engine: one directory per backup, one slot per save source."""

    def __init__(
        self,
        backup_root: Path,
        resolver: PathResolver,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._root = backup_root
        self._resolver = resolver
        self._clock = clock

    @property
    def backup_root(self) -> Path:
        return self._root

    def title_dir(self, title_name: str) -> Path:
        return title_backup_dir(self._root, title_name)

    def snapshot_dir(self, title_name: str, timestamp: str) -> Path:
        return self.title_dir(title_name) / timestamp

    def create_backup(
        self,
        title_id: int,
        title_name: str,
        sources: list[SaveSource],
        progress: ProgressCallback | None = None,
    ) -> BackupResult:
        """Copy every existing source location into a new snapshot.

        Sources are processed one after another in priority order. A failed
        copy is logged and counted; it does not stop the remaining sources.
        """
        timestamp = self._clock().strftime(TIMESTAMP_FORMAT)
        snapshot = self.snapshot_dir(title_name, timestamp)
        notify(progress, t("progress.start", title=title_name))

        new_title_dir = not snapshot.parent.exists()
        try:
            snapshot.parent.mkdir(parents=True, exist_ok=True)
            snapshot.mkdir()
        except FileExistsError:
            logger.warning(f"Snapshot {snapshot} already exists, refusing to overwrite")
            return BackupResult(BackupStatus.SNAPSHOT_EXISTS, title_name, timestamp)
        except OSError as e:
            logger.error(f"Cannot create snapshot directory {snapshot}: {e}")
            return BackupResult(BackupStatus.IO_ERROR, title_name, timestamp, error=str(e))

        copied = 0
        failed = 0
        for source in by_priority(sources):
            slots = resolve_slots(source, title_id, self._resolver)
            if not slots:
                continue
            notify(progress, t(f"progress.{source.kind}"))
            for slot, path in slots:
                if not is_present(path):
                    logger.debug(f"[{title_name}] {source.kind} location missing: {path}")
                    continue
                try:
                    copy_contents(path, snapshot / slot)
                    copied += 1
                    logger.debug(f"[{title_name}] Copied {path} → {slot}")
                except (OSError, shutil.Error) as e:
                    failed += 1
                    logger.warning(f"[{title_name}] Failed to copy {path}: {e}")

        if copied == 0:
            shutil.rmtree(snapshot, ignore_errors=True)
            if new_title_dir:
                try:
                    snapshot.parent.rmdir()
                except OSError as e:
                    logger.debug(f"Kept title directory {snapshot.parent}: {e}")
            status = BackupStatus.COPY_FAILED if failed else BackupStatus.NO_SOURCE_FOUND
            logger.info(f"No backup for {title_name}: {status}")
            return BackupResult(status, title_name, timestamp, failed=failed)

        notify(progress, t("progress.done"))
        logger.info(
            f"Created snapshot {timestamp} for {title_name} "
            f"({copied} location(s), {failed} failed)"
        )
        return BackupResult(
            BackupStatus.SUCCESS, title_name, timestamp, copied=copied, failed=failed
        )

    def list_snapshots(self, title_name: str) -> list[SnapshotInfo]:
        """List snapshots of a title, newest first."""
        title_dir = self.title_dir(title_name)
        if not title_dir.is_dir():
            return []

        snapshots: list[SnapshotInfo] = []
        for entry in title_dir.iterdir():
            if not entry.is_dir():
                continue
            snapshots.append(
                SnapshotInfo(
                    name=entry.name,
                    path=entry,
                    has_archive=(title_dir / f"{entry.name}.zip").exists(),
                    size=dir_size(entry),
                )
            )
        snapshots.sort(key=lambda s: s.name, reverse=True)
        return snapshots

    def latest_snapshot(self, title_name: str) -> str | None:
        """Name of the most recent snapshot, used as a last-backup hint."""
        title_dir = self.title_dir(title_name)
        if not title_dir.is_dir():
            return None
        names = sorted(entry.name for entry in title_dir.iterdir() if entry.is_dir())
        return names[-1] if names else None
