"""Loguru-based logging setup."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger


def setup_logger(log_dir: Path | None = None, verbose: bool = False) -> None:
    """Configure loguru with console + rotating file output."""
    logger.remove()

    # Console
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format="<green>{time:HH:mm:ss}</green> | <level>{level:<7}</level> | {message}",
        colorize=True,
    )

    # File
    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / "steam-save-manager.log"),
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level:<7} | {thread.name} | {name}:{line} | {message}",
            rotation="5 MB",
            retention="7 days",
            encoding="utf-8",
            enqueue=True,
        )
