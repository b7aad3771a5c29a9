"""Application context — service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from save_manager.config import Config
    from save_manager.core.path_resolver import PathResolver
    from save_manager.core.service import SaveService
    from save_manager.core.sources import SourceCatalog
    from save_manager.data.custom_manifest import CustomManifest
    from save_manager.data.manifest import ManifestStore


@dataclass
class AppContext:
    """
    Central service container.

    The command-line front end receives this at start-up; every operation
    goes through ``service`` so per-title serialization always applies.
    """

    config: Config
    resolver: PathResolver

    # Save location data
    manifest: ManifestStore
    custom_manifest: CustomManifest
    catalog: SourceCatalog

    service: SaveService
