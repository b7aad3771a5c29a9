"""Manifest store — Ludusavi-format YAML mapping title names to save path templates."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import yaml
from loguru import logger

_Loader = getattr(yaml, "CSafeLoader", yaml.SafeLoader)


class ManifestError(Exception):
    """Manifest could not be fetched or is not a valid manifest."""


@dataclass
class ManifestEntry:
    """Save locations of one title."""

    title_name: str
    platform_id: int  # Steam app id
    templates: list[str] = field(default_factory=list)


def _parse(text: str) -> dict[str, Any]:
    try:
        data = yaml.load(text, Loader=_Loader)
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid manifest YAML: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError("Manifest root is not a mapping")
    return data


def _index(data: dict[str, Any]) -> dict[int, ManifestEntry]:
    """Index manifest titles by Steam app id; templates sorted for stable slot numbers."""
    entries: dict[int, ManifestEntry] = {}
    for name, game in data.items():
        if not isinstance(game, dict):
            continue
        steam = game.get("steam")
        if not isinstance(steam, dict):
            continue
        try:
            app_id = int(steam.get("id"))
        except (TypeError, ValueError):
            continue
        if app_id in entries:
            continue  # first declaration wins
        files = game.get("files")
        templates = sorted(str(key) for key in files) if isinstance(files, dict) else []
        entries[app_id] = ManifestEntry(title_name=str(name), platform_id=app_id, templates=templates)
    return entries


class ManifestStore:
    """
    Cached manifest reader.

    The YAML file is parsed lazily and re-parsed when its modification time
    changes (e.g. after :meth:`refresh`).
    """

    def __init__(
        self, path: Path, url: str = "", transport: httpx.BaseTransport | None = None
    ) -> None:
        self._path = path
        self._url = url
        self._transport = transport
        self._entries: dict[int, ManifestEntry] = {}
        self._mtime: float | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_loaded(self) -> None:
        try:
            mtime = self._path.stat().st_mtime
        except OSError:
            self._entries = {}
            self._mtime = None
            return
        if mtime == self._mtime:
            return
        try:
            text = self._path.read_text(encoding="utf-8")
            self._entries = _index(_parse(text))
            logger.debug(f"Loaded manifest with {len(self._entries)} Steam titles")
        except (OSError, ManifestError) as e:
            logger.warning(f"Failed to load manifest {self._path}: {e}")
            self._entries = {}
        self._mtime = mtime

    def get(self, app_id: int) -> ManifestEntry | None:
        with self._lock:
            self._ensure_loaded()
            return self._entries.get(app_id)

    def templates_for(self, app_id: int) -> list[str]:
        """Ordered path templates for *app_id* (empty when unknown)."""
        entry = self.get(app_id)
        return list(entry.templates) if entry else []

    def refresh(self, url: str | None = None) -> int:
        """Download, validate and atomically replace the cached manifest.

        Returns the number of Steam titles in the new manifest.
        """
        source = url or self._url
        if not source:
            raise ManifestError("No manifest URL configured")

        logger.info(f"Fetching manifest from {source}")
        try:
            with httpx.Client(
                timeout=60, follow_redirects=True, transport=self._transport
            ) as client:
                resp = client.get(source)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise ManifestError(f"Manifest download failed: {e}") from e

        entries = _index(_parse(resp.text))

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        try:
            tmp.write_text(resp.text, encoding="utf-8")
            tmp.replace(self._path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise ManifestError(f"Failed to write manifest: {e}") from e

        with self._lock:
            self._entries = entries
            self._mtime = self._path.stat().st_mtime
        logger.info(f"Manifest updated: {len(entries)} Steam titles")
        return len(entries)
