"""Restore manager — merge a snapshot back into the title's save locations."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from save_manager.core.backup import ProgressCallback, notify, title_backup_dir
from save_manager.core.sources import resolve_slots
from save_manager.i18n import t
from save_manager.models.backup_record import RestoreResult, RestoreStatus
from save_manager.models.save_source import SaveSource, SourceKind, by_priority
from save_manager.utils import is_present, merge_into

if TYPE_CHECKING:
    from save_manager.core.path_resolver import PathResolver


class RestoreManager:
    """Restore snapshots into existing save locations."""

    def __init__(self, backup_root: Path, resolver: PathResolver) -> None:
        self._root = backup_root
        self._resolver = resolver

    def restore_backup(
        self,
        title_id: int,
        title_name: str,
        timestamp: str,
        sources: list[SaveSource],
        progress: ProgressCallback | None = None,
    ) -> RestoreResult:
        """
        Restore the snapshot *timestamp* of a title.

        Slot contents are merged into the target: unrelated files stay,
        same-named files are overwritten. A target that does not exist is
        skipped, never created. The Steam Cloud slot is backup-only.
        """
        snapshot = title_backup_dir(self._root, title_name) / timestamp
        if not snapshot.is_dir():
            logger.warning(f"Snapshot not found: {snapshot}")
            return RestoreResult(RestoreStatus.SNAPSHOT_MISSING, title_name, timestamp)

        notify(progress, t("progress.restore", title=title_name, timestamp=timestamp))

        restored = 0
        failed = 0
        for source in by_priority(sources):
            # Steam_Cloud merges every user folder; Steam re-syncs those itself
            if source.kind is SourceKind.CLOUD:
                continue
            for slot, target in resolve_slots(source, title_id, self._resolver):
                stored = snapshot / slot
                if not stored.is_dir() or not is_present(target):
                    continue
                try:
                    if merge_into(stored, target):
                        restored += 1
                        logger.debug(f"[{title_name}] Restored {slot} → {target}")
                except (OSError, shutil.Error) as e:
                    failed += 1
                    logger.error(f"[{title_name}] Restore error for {target}: {e}")

        status = RestoreStatus.SUCCESS if restored else RestoreStatus.NOTHING_RESTORED
        logger.info(
            f"Restored {restored} location(s) of {title_name} from {timestamp}, {failed} failed"
        )
        return RestoreResult(status, title_name, timestamp, restored=restored, failed=failed)
