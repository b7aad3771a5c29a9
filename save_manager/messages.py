"""Human-readable ``Kind:Detail`` outcome strings for the user-facing boundary."""

from __future__ import annotations

from save_manager.i18n import t
from save_manager.models.backup_record import ArchiveResult, BackupResult, RestoreResult


def describe_backup(result: BackupResult) -> str:
    return t(f"backup.{result.status}", timestamp=result.timestamp, error=result.error)


def describe_restore(result: RestoreResult) -> str:
    return t(f"restore.{result.status}")


def describe_archive(result: ArchiveResult) -> str:
    return t(f"archive.{result.status}", path=result.archive_path or "", error=result.error)
