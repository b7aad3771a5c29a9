"""Custom override store — user-defined save locations keyed by Steam app id."""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger


class CustomManifest:
    """
    Reads/writes custom_manifest.json.

    File structure::

        {"1086940": {"win": "%LOCALAPPDATA%/Larian Studios/Baldur's Gate 3/PlayerProfiles"}}
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def _load(self) -> dict[str, dict[str, str]]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load custom manifest: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, app_id: int) -> str | None:
        """Windows-style template for *app_id*, if the user set one."""
        entry = self._load().get(str(app_id))
        if isinstance(entry, dict) and entry.get("win"):
            return str(entry["win"])
        return None

    def set(self, app_id: int, template: str) -> None:
        data = self._load()
        data[str(app_id)] = {"win": template}
        self._write(data)

    def remove(self, app_id: int) -> None:
        data = self._load()
        if data.pop(str(app_id), None) is not None:
            self._write(data)

    def _write(self, data: dict[str, dict[str, str]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            tmp.replace(self._path)
        except OSError as e:
            logger.error(f"Failed to save custom manifest: {e}")
            tmp.unlink(missing_ok=True)
