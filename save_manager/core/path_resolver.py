"""Path resolver — turn manifest/override path templates into concrete paths.

Templates use Windows environment tokens (``%APPDATA%``) or Ludusavi tokens
(``<winAppData>``). Titles running under Proton on Linux keep their Windows
profile inside a per-title prefix, so AppData-style templates are rebased
there when the prefix exists.
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from save_manager.core.steam import SteamInstall

# Templates containing these are Windows profile locations
_PROFILE_MARKERS = ("appdata", "saved games")

# Glob / unsupported placeholder fragments end the usable part of a template
_STOP_CHARS = ("<", "*", "?")


def _get_documents_path(system: str) -> Path | None:
    """Get the real Documents path (handles relocated folders on Windows)."""
    if system == "Windows":
        try:
            import ctypes.wintypes

            buf = ctypes.create_unicode_buffer(ctypes.wintypes.MAX_PATH)
            # CSIDL_PERSONAL = 0x0005
            ctypes.windll.shell32.SHGetFolderPathW(None, 0x0005, None, 0, buf)  # type: ignore[attr-defined]
            if buf.value:
                return Path(buf.value)
        except (ImportError, AttributeError, OSError):
            pass
        return Path.home() / "Documents"

    xdg = os.environ.get("XDG_DOCUMENTS_DIR")
    if xdg:
        return Path(xdg)
    documents = Path.home() / "Documents"
    return documents if documents.is_dir() else None


@dataclass(frozen=True)
class HostDirs:
    """Native per-user directories of the host OS."""

    local_data: Path
    config: Path
    home: Path
    documents: Path | None = None

    @classmethod
    def detect(cls, system: str | None = None) -> HostDirs:
        system = system or platform.system()
        home = Path.home()
        if system == "Windows":
            return cls(
                local_data=Path(os.environ.get("LOCALAPPDATA", str(home / "AppData" / "Local"))),
                config=Path(os.environ.get("APPDATA", str(home / "AppData" / "Roaming"))),
                home=home,
                documents=_get_documents_path(system),
            )
        if system == "Darwin":
            support = home / "Library" / "Application Support"
            return cls(support, support, home, _get_documents_path(system))
        return cls(
            local_data=Path(os.environ.get("XDG_DATA_HOME") or home / ".local" / "share"),
            config=Path(os.environ.get("XDG_CONFIG_HOME") or home / ".config"),
            home=home,
            documents=_get_documents_path(system),
        )


class PathResolver:
    """Resolve path templates for one host.

    Pure for a fixed ``(template, title_id)``: the host directories and
    Steam install are captured at construction.
    """

    def __init__(
        self,
        host_dirs: HostDirs | None = None,
        steam: SteamInstall | None = None,
        system: str | None = None,
    ) -> None:
        self._system = system or platform.system()
        self._dirs = host_dirs or HostDirs.detect(self._system)
        self._steam = steam

    @property
    def steam(self) -> SteamInstall | None:
        return self._steam

    def resolve(self, template: str, title_id: int) -> Path:
        """Resolve *template* for *title_id*. The result may not exist."""
        lowered = template.lower()
        if self._system == "Linux" and any(m in lowered for m in _PROFILE_MARKERS):
            prefixed = self._resolve_in_prefix(template, title_id)
            if prefixed is not None:
                return prefixed

        resolved = template
        for token, value in self._host_tokens():
            resolved = resolved.replace(token, value)

        cut = min((i for i in (resolved.find(c) for c in _STOP_CHARS) if i >= 0), default=-1)
        if cut >= 0:
            resolved = resolved[:cut]

        if self._system == "Windows":
            resolved = resolved.replace("/", "\\")
        else:
            resolved = resolved.replace("\\", "/")
        return Path(resolved.rstrip("/\\"))

    def _host_tokens(self) -> list[tuple[str, str]]:
        dirs = self._dirs
        tokens = [
            ("%LOCALAPPDATA%", str(dirs.local_data)),
            ("<winLocalAppData>", str(dirs.local_data)),
            ("%APPDATA%", str(dirs.config)),
            ("<winAppData>", str(dirs.config)),
            ("%USERPROFILE%", str(dirs.home)),
            ("<home>", str(dirs.home)),
        ]
        # Documents may be absent; its tokens then stay literal
        if dirs.documents is not None:
            tokens += [
                ("%DOCUMENTS%", str(dirs.documents)),
                ("<winDocuments>", str(dirs.documents)),
            ]
        return tokens

    def _resolve_in_prefix(self, template: str, title_id: int) -> Path | None:
        """Rebase a Windows profile template onto the title's Proton prefix."""
        if self._steam is None:
            return None
        profile = self._steam.compat_profile(title_id)
        if not profile.exists():
            return None

        roaming = profile / "AppData" / "Roaming"
        local = profile / "AppData" / "Local"
        documents = profile / "Documents"
        resolved = template
        for token, value in (
            ("%USERPROFILE%", profile),
            ("<home>", profile),
            ("%LOCALAPPDATA%", local),
            ("<winLocalAppData>", local),
            ("%APPDATA%", roaming),
            ("<winAppData>", roaming),
            ("%DOCUMENTS%", documents),
            ("<winDocuments>", documents),
        ):
            resolved = resolved.replace(token, str(value))

        resolved = resolved.replace("\\", "/")
        if resolved.startswith(("C:", "c:")):
            resolved = resolved[2:]
        return Path(resolved)
