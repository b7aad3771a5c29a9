"""Save source models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

CUSTOM_SLOT = "Custom_Saves"
MANIFEST_SLOT_PREFIX = "Game_Data_"
CLOUD_SLOT = "Steam_Cloud"


class SourceKind(StrEnum):
    """Where a save location came from. Declaration order is processing priority."""

    CUSTOM = "custom"
    MANIFEST = "manifest"
    CLOUD = "cloud"


_PRIORITY = {kind: index for index, kind in enumerate(SourceKind)}


@dataclass(frozen=True)
class SaveSource:
    """One save source of a title.

    ``custom`` carries a single template, ``manifest`` an ordered tuple of
    templates, ``cloud`` none (its directories come from the Steam install).
    """

    kind: SourceKind
    templates: tuple[str, ...] = ()

    @classmethod
    def custom(cls, template: str) -> SaveSource:
        return cls(SourceKind.CUSTOM, (template,))

    @classmethod
    def manifest(cls, templates: list[str] | tuple[str, ...]) -> SaveSource:
        return cls(SourceKind.MANIFEST, tuple(templates))

    @classmethod
    def cloud(cls) -> SaveSource:
        return cls(SourceKind.CLOUD)

    def slot_name(self, index: int = 0) -> str:
        """Snapshot subdirectory for the *index*-th template of this source."""
        if self.kind is SourceKind.CUSTOM:
            return CUSTOM_SLOT
        if self.kind is SourceKind.MANIFEST:
            return f"{MANIFEST_SLOT_PREFIX}{index}"
        return CLOUD_SLOT


def by_priority(sources: list[SaveSource]) -> list[SaveSource]:
    """Stable sort: custom, then manifest, then cloud."""
    return sorted(sources, key=lambda s: _PRIORITY[s.kind])
