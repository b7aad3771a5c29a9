"""Snapshot and operation result models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class BackupStatus(StrEnum):
    SUCCESS = "success"
    NO_SOURCE_FOUND = "no_source_found"  # nothing existed on disk
    COPY_FAILED = "copy_failed"  # something existed, every copy failed
    SNAPSHOT_EXISTS = "snapshot_exists"  # same title, same second
    IO_ERROR = "io_error"


class RestoreStatus(StrEnum):
    SUCCESS = "success"
    NOTHING_RESTORED = "nothing_restored"
    SNAPSHOT_MISSING = "snapshot_missing"


class ArchiveStatus(StrEnum):
    SUCCESS = "success"
    ALREADY_EXISTS = "already_exists"
    SOURCE_MISSING = "source_missing"
    FAILURE = "failure"


@dataclass
class SnapshotInfo:
    """One snapshot directory of a title, as listed on disk."""

    name: str  # timestamp
    path: Path
    has_archive: bool = False
    size: int = 0


@dataclass
class BackupResult:
    """Result of a backup operation."""

    status: BackupStatus
    title_name: str
    timestamp: str = ""
    copied: int = 0
    failed: int = 0
    error: str = ""

    @property
    def success(self) -> bool:
        return self.status is BackupStatus.SUCCESS


@dataclass
class RestoreResult:
    """Result of a restore operation."""

    status: RestoreStatus
    title_name: str
    timestamp: str
    restored: int = 0
    failed: int = 0

    @property
    def success(self) -> bool:
        return self.status is RestoreStatus.SUCCESS


@dataclass
class ArchiveResult:
    """Result of packing a snapshot into a ZIP."""

    status: ArchiveStatus
    archive_path: Path | None = None
    error: str = ""

    @property
    def success(self) -> bool:
        return self.status is ArchiveStatus.SUCCESS
