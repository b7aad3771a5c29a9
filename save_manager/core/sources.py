"""Save source catalog — which locations belong to a title, and where they resolve."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from save_manager.models.save_source import SaveSource, SourceKind

if TYPE_CHECKING:
    from save_manager.core.path_resolver import PathResolver
    from save_manager.data.custom_manifest import CustomManifest
    from save_manager.data.manifest import ManifestStore


def resolve_slots(
    source: SaveSource, title_id: int, resolver: PathResolver
) -> list[tuple[str, Path]]:
    """Pair every location of *source* with its snapshot slot name."""
    if source.kind is SourceKind.CLOUD:
        steam = resolver.steam
        if steam is None:
            return []
        return [(source.slot_name(), path) for path in steam.cloud_dirs(title_id)]
    return [
        (source.slot_name(index), resolver.resolve(template, title_id))
        for index, template in enumerate(source.templates)
    ]


class SourceCatalog:
    """Builds the ordered source list of a title from the override and manifest stores."""

    def __init__(self, manifest: ManifestStore, custom: CustomManifest) -> None:
        self._manifest = manifest
        self._custom = custom

    def sources_for(self, title_id: int) -> list[SaveSource]:
        sources: list[SaveSource] = []
        template = self._custom.get(title_id)
        if template:
            sources.append(SaveSource.custom(template))
        templates = self._manifest.templates_for(title_id)
        if templates:
            sources.append(SaveSource.manifest(templates))
        sources.append(SaveSource.cloud())
        return sources

    def watch_paths(self, title_id: int, resolver: PathResolver) -> list[Path]:
        """Resolved manifest and override locations to observe for changes."""
        paths = [
            resolver.resolve(template, title_id)
            for template in self._manifest.templates_for(title_id)
        ]
        template = self._custom.get(title_id)
        if template:
            paths.append(resolver.resolve(template, title_id))
        return paths
