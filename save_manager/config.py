"""Application configuration — JSON-based, with file locking and batch update support."""

from __future__ import annotations

import json
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from loguru import logger

_instance: "Config | None" = None

MANIFEST_URL = (
    "https://raw.githubusercontent.com/mtkennerly/ludusavi-manifest/master/data/manifest.yaml"
)


def default_data_dir() -> Path:
    """Data directory for config, manifest cache and logs."""
    override = os.environ.get("STEAM_SAVE_MANAGER_HOME")
    if override:
        return Path(override)
    return Path.home() / ".steam-save-manager"


def get_config() -> Config:
    """Module-level factory — single global Config instance."""
    global _instance
    if _instance is None:
        _instance = Config()
    return _instance


def reset_config() -> None:
    """Reset the global config instance (for testing)."""
    global _instance
    _instance = None


class Config:
    """JSON-based application configuration with file locking."""

    _DEFAULTS: dict[str, Any] = {
        "language": "en_US",
        "backup_path": "",
        "steam_path": "",
        # Snapshots kept after a manual backup
        "retention_limit": 10,
        # Snapshots kept after a watcher-triggered backup
        "auto_backup_limit": 10,
        "debounce_seconds": 5.0,
        "worker_threads": 4,
        "manifest_url": MANIFEST_URL,
        # app_id (str) -> title name, restored on start
        "auto_backup_titles": {},
    }

    def __init__(self, data_dir: Path | None = None) -> None:
        self._data: dict[str, Any] = {}
        self._dir = data_dir or default_data_dir()
        self._path = self._dir / "config.json"
        self._lock = threading.Lock()
        self._defer_save = False
        self._load()

    def _load(self) -> None:
        """Load config from disk, merging with defaults."""
        self._data = json.loads(json.dumps(self._DEFAULTS))  # deep copy defaults
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as f:
                    user_data = json.load(f)
                self._deep_merge(self._data, user_data)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Failed to load config, using defaults: {e}")

    def _deep_merge(self, base: dict, override: dict) -> None:
        """Recursively merge override into base."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save(self) -> None:
        """Persist config to disk with file locking."""
        if self._defer_save:
            return
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(self._data, f, ensure_ascii=False, indent=2)
                tmp_path.replace(self._path)
            except OSError as e:
                logger.error(f"Failed to save config: {e}")
                if tmp_path.exists():
                    tmp_path.unlink(missing_ok=True)

    @contextmanager
    def batch_update(self) -> Iterator[None]:
        """Context manager for batching multiple config changes into a single write."""
        self._defer_save = True
        try:
            yield
        finally:
            self._defer_save = False
            self._save()

    # ── Generic access ──

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-separated key path."""
        parts = key.split(".")
        node = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a config value by dot-separated key path."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    # ── Typed properties ──

    @property
    def data_dir(self) -> Path:
        return self._dir

    @property
    def manifest_path(self) -> Path:
        return self._dir / "manifest.yaml"

    @property
    def custom_manifest_path(self) -> Path:
        return self._dir / "custom_manifest.json"

    @property
    def language(self) -> str:
        return self._data.get("language", "en_US")

    @language.setter
    def language(self, value: str) -> None:
        self.set("language", value)

    @property
    def backup_path(self) -> Path | None:
        raw = self._data.get("backup_path", "")
        return Path(raw) if raw else None

    @backup_path.setter
    def backup_path(self, value: Path | None) -> None:
        self.set("backup_path", str(value) if value else "")

    @property
    def steam_path(self) -> Path | None:
        raw = self._data.get("steam_path", "")
        return Path(raw) if raw else None

    @steam_path.setter
    def steam_path(self, value: Path | None) -> None:
        self.set("steam_path", str(value) if value else "")

    @property
    def retention_limit(self) -> int:
        return max(0, int(self._data.get("retention_limit", 10)))

    @retention_limit.setter
    def retention_limit(self, value: int) -> None:
        self.set("retention_limit", value)

    @property
    def auto_backup_limit(self) -> int:
        return max(0, int(self._data.get("auto_backup_limit", 10)))

    @property
    def debounce_seconds(self) -> float:
        return float(self._data.get("debounce_seconds", 5.0))

    @property
    def worker_threads(self) -> int:
        return max(1, int(self._data.get("worker_threads", 4)))

    @property
    def manifest_url(self) -> str:
        return self._data.get("manifest_url") or MANIFEST_URL

    @property
    def auto_backup_titles(self) -> dict[str, str]:
        return self._data.get("auto_backup_titles", {})

    @auto_backup_titles.setter
    def auto_backup_titles(self, value: dict[str, str]) -> None:
        self.set("auto_backup_titles", value)
