"""Steam install locator — Steam root, Proton prefixes and local cloud folders."""

from __future__ import annotations

import os
import platform
from pathlib import Path

from loguru import logger


def _candidate_roots(system: str) -> list[Path]:
    """Well-known Steam install roots for *system*."""
    home = Path.home()
    if system == "Windows":
        return [
            Path(os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)")) / "Steam",
            Path(os.environ.get("ProgramFiles", r"C:\Program Files")) / "Steam",
        ]
    if system == "Darwin":
        return [home / "Library" / "Application Support" / "Steam"]
    return [
        home / ".steam" / "steam",
        home / ".local" / "share" / "Steam",
        home / ".steam" / "root",
        home / ".steam" / "debian-installation",
        home / ".var" / "app" / "com.valvesoftware.Steam" / ".local" / "share" / "Steam",
        home / "snap" / "steam" / "common" / ".local" / "share" / "Steam",
    ]


def locate_steam_root(override: Path | None = None, system: str | None = None) -> Path | None:
    """Return the first existing Steam root, preferring a configured *override*."""
    if override is not None:
        if override.is_dir():
            return override
        logger.warning(f"Configured Steam path does not exist: {override}")
    for root in _candidate_roots(system or platform.system()):
        if (root / "steamapps").is_dir() or (root / "userdata").is_dir():
            logger.debug(f"Steam root: {root}")
            return root
    return None


class SteamInstall:
    """Paths inside one Steam installation."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def compat_profile(self, app_id: int) -> Path:
        """Virtual Windows user profile of the title's Proton prefix (may not exist)."""
        return (
            self._root
            / "steamapps"
            / "compatdata"
            / str(app_id)
            / "pfx"
            / "drive_c"
            / "users"
            / "steamuser"
        )

    def cloud_dirs(self, app_id: int) -> list[Path]:
        """Existing ``userdata/<user>/<app_id>`` folders, sorted by user id."""
        userdata = self._root / "userdata"
        if not userdata.is_dir():
            return []
        found: list[Path] = []
        try:
            users = sorted(p for p in userdata.iterdir() if p.is_dir())
        except OSError as e:
            logger.warning(f"Cannot list Steam userdata: {e}")
            return []
        for user_dir in users:
            candidate = user_dir / str(app_id)
            if candidate.is_dir():
                found.append(candidate)
        return found
