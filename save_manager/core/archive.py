"""Archive packer — pack a snapshot directory into a sibling ZIP."""

from __future__ import annotations

import os
import shutil
import time
import zipfile
from pathlib import Path

from loguru import logger

from save_manager.models.backup_record import ArchiveResult, ArchiveStatus

# Fixed permission bits so archives unpack the same on every host
_FILE_ATTR = (0o100644 << 16)
_DIR_ATTR = (0o040755 << 16) | 0x10  # 0x10 = MS-DOS directory flag


def archive_path_for(snapshot_dir: Path) -> Path:
    """``<title_dir>/<timestamp>.zip`` for ``<title_dir>/<timestamp>/``."""
    return snapshot_dir.parent / f"{snapshot_dir.name}.zip"


class ArchivePacker:
    """
    Serialize a snapshot tree into a deflate ZIP.

    Directories become explicit entries (even when empty) before their
    children. Entries follow filesystem enumeration order unless
    *sorted_walk* is set, which makes archives reproducible.
    """

    def __init__(self, sorted_walk: bool = False) -> None:
        self._sorted_walk = sorted_walk

    def pack(self, snapshot_dir: Path) -> ArchiveResult:
        """Create the archive for *snapshot_dir*; never overwrites an existing one.

        On a mid-walk error the partially written file is left in place.
        """
        if not snapshot_dir.is_dir():
            return ArchiveResult(ArchiveStatus.SOURCE_MISSING)

        zip_path = archive_path_for(snapshot_dir)
        if zip_path.exists():
            return ArchiveResult(ArchiveStatus.ALREADY_EXISTS, zip_path)

        try:
            with zipfile.ZipFile(zip_path, "x", zipfile.ZIP_DEFLATED) as zf:
                self._add_directory(zf, snapshot_dir, "")
        except FileExistsError:
            return ArchiveResult(ArchiveStatus.ALREADY_EXISTS, zip_path)
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            logger.error(f"Failed to pack {snapshot_dir}: {e}")
            return ArchiveResult(ArchiveStatus.FAILURE, zip_path, error=str(e))

        logger.info(f"Packed {snapshot_dir.name} → {zip_path.name} ({zip_path.stat().st_size} bytes)")
        return ArchiveResult(ArchiveStatus.SUCCESS, zip_path)

    def _entries(self, directory: Path) -> list[os.DirEntry[str]]:
        with os.scandir(directory) as it:
            entries = list(it)
        if self._sorted_walk:
            entries.sort(key=lambda e: e.name)
        return entries

    def _add_directory(self, zf: zipfile.ZipFile, directory: Path, prefix: str) -> None:
        """Recursively add *directory* to the zip archive (depth-first)."""
        for entry in self._entries(directory):
            arcname = f"{prefix}/{entry.name}" if prefix else entry.name
            path = Path(entry.path)
            if entry.is_dir():
                info = zipfile.ZipInfo(f"{arcname}/", _date_time(path))
                info.external_attr = _DIR_ATTR
                zf.writestr(info, b"")
                self._add_directory(zf, path, arcname)
            else:
                info = zipfile.ZipInfo.from_file(path, arcname, strict_timestamps=False)
                info.external_attr = _FILE_ATTR
                info.compress_type = zipfile.ZIP_DEFLATED
                with open(path, "rb") as src, zf.open(info, "w") as dst:
                    shutil.copyfileobj(src, dst, 1024 * 64)


def _date_time(path: Path) -> tuple[int, int, int, int, int, int]:
    """ZIP timestamp of *path* (ZIP cannot store dates before 1980)."""
    stamp = time.localtime(path.stat().st_mtime)
    if stamp.tm_year < 1980:
        return (1980, 1, 1, 0, 0, 0)
    return stamp[:6]  # type: ignore[return-value]
