"""Shared utility functions."""

from __future__ import annotations

import shutil
from pathlib import Path


def format_size(size_bytes: int) -> str:
    """Format byte count to human-readable string."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def sanitize_title_name(name: str) -> str:
    """Replace every character that is neither alphanumeric nor a space with ``_``.

    "Baldur's Gate 3" → "Baldur_s Gate 3"
    """
    return "".join(ch if ch.isalnum() or ch == " " else "_" for ch in name)


def is_present(path: Path) -> bool:
    """True for absolute paths that exist on disk.

    Empty or relative resolver output (unresolved templates) must never match
    the current working directory.
    """
    return path.is_absolute() and path.exists()


def copy_contents(source: Path, dest: Path) -> None:
    """Copy *source* into *dest*, overwriting files with the same name.

    A directory contributes its contents; a single file is copied by name.
    """
    dest.mkdir(parents=True, exist_ok=True)
    if source.is_dir():
        shutil.copytree(source, dest, dirs_exist_ok=True)
    else:
        shutil.copy2(source, dest / source.name)


def merge_into(stored: Path, target: Path) -> bool:
    """Merge a snapshot slot back into an existing *target*.

    Returns False when there is nothing in *stored* for a file target.
    """
    if target.is_dir():
        shutil.copytree(stored, target, dirs_exist_ok=True)
        return True
    candidate = stored / target.name
    if not candidate.is_file():
        return False
    shutil.copy2(candidate, target)
    return True


def dir_size(path: Path) -> int:
    """Total size in bytes of all files below *path*."""
    total = 0
    for child in path.rglob("*"):
        try:
            if child.is_file():
                total += child.stat().st_size
        except OSError:
            continue
    return total
