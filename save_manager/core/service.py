"""Save service — per-title serialized operations on a worker pool.

The core managers assume at most one mutating operation per title at a time.
This service enforces it with a keyed lock, and runs filesystem-heavy work on
a thread pool so callers servicing interactive requests are not blocked.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from loguru import logger

from save_manager.core.backup import ProgressCallback, notify
from save_manager.core.watcher import ChangeWatcher
from save_manager.i18n import t
from save_manager.models.backup_record import ArchiveResult, BackupResult, RestoreResult
from save_manager.utils import sanitize_title_name

if TYPE_CHECKING:
    from save_manager.config import Config
    from save_manager.core.archive import ArchivePacker
    from save_manager.core.backup import BackupManager
    from save_manager.core.path_resolver import PathResolver
    from save_manager.core.restore import RestoreManager
    from save_manager.core.retention import RetentionManager
    from save_manager.core.sources import SourceCatalog
    from save_manager.models.backup_record import SnapshotInfo


class TitleLocks:
    """One lock per backup folder (titles sharing a sanitized name share it)."""

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, title_name: str) -> threading.Lock:
        key = sanitize_title_name(title_name)
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    @contextmanager
    def hold(self, title_name: str) -> Iterator[None]:
        lock = self.get(title_name)
        with lock:
            yield


class SaveService:
    """Entry point for backup, restore, packing, retention and auto-backup."""

    def __init__(
        self,
        config: Config,
        resolver: PathResolver,
        catalog: SourceCatalog,
        backup_manager: BackupManager,
        restore_manager: RestoreManager,
        retention: RetentionManager,
        packer: ArchivePacker,
    ) -> None:
        self._config = config
        self._resolver = resolver
        self._catalog = catalog
        self._backup = backup_manager
        self._restore = restore_manager
        self._retention = retention
        self._packer = packer
        self._locks = TitleLocks()
        self._executor = ThreadPoolExecutor(
            max_workers=config.worker_threads, thread_name_prefix="save-worker"
        )
        self._watcher = ChangeWatcher(
            backup=self._backup_only,
            prune=self.prune,
            retention_limit=config.auto_backup_limit,
            debounce_seconds=config.debounce_seconds,
        )

    @property
    def watcher(self) -> ChangeWatcher:
        return self._watcher

    # ── Synchronous operations ──

    def backup(
        self,
        title_id: int,
        title_name: str,
        progress: ProgressCallback | None = None,
        retention_limit: int | None = None,
    ) -> BackupResult:
        """Manual backup, followed by retention when it succeeded."""
        limit = self._config.retention_limit if retention_limit is None else retention_limit
        with self._locks.hold(title_name):
            sources = self._catalog.sources_for(title_id)
            result = self._backup.create_backup(title_id, title_name, sources, progress)
            if result.success:
                self._retention.enforce(title_name, limit)
                notify(progress, t("progress.retention"))
        return result

    def _backup_only(self, title_id: int, title_name: str) -> BackupResult:
        with self._locks.hold(title_name):
            sources = self._catalog.sources_for(title_id)
            return self._backup.create_backup(title_id, title_name, sources)

    def restore(
        self,
        title_id: int,
        title_name: str,
        timestamp: str,
        progress: ProgressCallback | None = None,
    ) -> RestoreResult:
        with self._locks.hold(title_name):
            sources = self._catalog.sources_for(title_id)
            return self._restore.restore_backup(title_id, title_name, timestamp, sources, progress)

    def pack(self, title_name: str, timestamp: str) -> ArchiveResult:
        with self._locks.hold(title_name):
            return self._packer.pack(self._backup.snapshot_dir(title_name, timestamp))

    def prune(self, title_name: str, limit: int | None = None) -> int:
        limit = self._config.retention_limit if limit is None else limit
        with self._locks.hold(title_name):
            return self._retention.enforce(title_name, limit)

    def list_snapshots(self, title_name: str) -> list[SnapshotInfo]:
        return self._backup.list_snapshots(title_name)

    def latest_snapshot(self, title_name: str) -> str | None:
        return self._backup.latest_snapshot(title_name)

    # ── Worker pool ──

    def submit_backup(
        self,
        title_id: int,
        title_name: str,
        progress: ProgressCallback | None = None,
        retention_limit: int | None = None,
    ) -> Future[BackupResult]:
        return self._executor.submit(self.backup, title_id, title_name, progress, retention_limit)

    def submit_restore(
        self,
        title_id: int,
        title_name: str,
        timestamp: str,
        progress: ProgressCallback | None = None,
    ) -> Future[RestoreResult]:
        return self._executor.submit(self.restore, title_id, title_name, timestamp, progress)

    def submit_pack(self, title_name: str, timestamp: str) -> Future[ArchiveResult]:
        return self._executor.submit(self.pack, title_name, timestamp)

    # ── Auto-backup ──

    def enable_auto_backup(self, title_id: int, title_name: str) -> bool:
        """Start a watch session and remember the title for the next start."""
        paths = self._catalog.watch_paths(title_id, self._resolver)
        if not paths or not self._watcher.start(title_id, title_name, paths):
            return False
        titles = dict(self._config.auto_backup_titles)
        titles[str(title_id)] = title_name
        self._config.auto_backup_titles = titles
        return True

    def disable_auto_backup(self, title_id: int) -> bool:
        stopped = self._watcher.stop(title_id)
        titles = dict(self._config.auto_backup_titles)
        if titles.pop(str(title_id), None) is not None:
            self._config.auto_backup_titles = titles
        return stopped

    def resume_auto_backups(self) -> int:
        """Restart the watch sessions remembered in the config."""
        started = 0
        for raw_id, title_name in self._config.auto_backup_titles.items():
            try:
                title_id = int(raw_id)
            except ValueError:
                logger.warning(f"Ignoring invalid auto-backup title id: {raw_id!r}")
                continue
            paths = self._catalog.watch_paths(title_id, self._resolver)
            if paths and self._watcher.start(title_id, title_name, paths):
                started += 1
        return started

    def shutdown(self) -> None:
        self._watcher.stop_all()
        self._executor.shutdown(wait=True)
