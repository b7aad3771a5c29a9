"""Internationalization support — outcome and progress strings for en_US and pt_BR.

Keys are grouped by family: ``progress.*`` for backup/restore progress
messages, ``backup.*``, ``restore.*`` and ``archive.*`` for one string per
result status (``Kind:Detail``), and ``retention.*``, ``watch.*``,
``manifest.*`` and ``list.*`` for the command-line front end.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

_current_lang: str = "en_US"
_SUPPORTED = ("en_US", "pt_BR")
_I18N_DIR = Path(__file__).parent

# Lazy-loaded translation cache: lang → dict
_cache: dict[str, dict[str, str]] = {}


def _load(lang: str) -> dict[str, str]:
    """Load and cache a language JSON file."""
    if lang not in _cache:
        fp = _I18N_DIR / f"{lang}.json"
        if fp.exists():
            with open(fp, "r", encoding="utf-8") as f:
                _cache[lang] = json.load(f)
        else:
            _cache[lang] = {}
    return _cache[lang]


def set_language(lang: str) -> None:
    """Set the active language.  Falls back to en_US if unsupported."""
    global _current_lang
    _current_lang = lang if lang in _SUPPORTED else "en_US"


def current_language() -> str:
    """Return the current active language code."""
    return _current_lang


def supported_languages() -> tuple[str, ...]:
    """Return tuple of supported language codes."""
    return _SUPPORTED


def t(key: str, **kwargs: Any) -> str:
    """Translate *key* to the current language.

    Supports ``{name}``-style placeholders via keyword arguments::

        t("backup.success", timestamp="2026-10-19_21-04-11")
        # → "Success:2026-10-19_21-04-11" (en_US)
        # → "Sucesso:2026-10-19_21-04-11" (pt_BR)

        t(f"archive.{ArchiveStatus.FAILURE}", error="disk full")
        # → "Error: disk full"

        t("progress.restore", title="Portal 2", timestamp="2026-10-19_21-04-11")
        # → "Restoring Portal 2 (2026-10-19_21-04-11)..."

    Placeholders missing from *kwargs* leave the text unformatted.
    """
    table = _load(_current_lang)
    text = table.get(key)
    if text is None:
        # Fall back to en_US, then raw key
        text = _load("en_US").get(key, key)
    if kwargs:
        try:
            text = text.format(**kwargs)
        except (KeyError, IndexError):
            pass
    return text
