"""Change watcher — automatic backups when a title's save folders change.

Each watched title owns a :class:`WatchSession`: a watchdog observer feeding
a single-slot trigger, and a worker thread that waits for a quiet period
before running the backup. Events arriving during the quiet period re-arm
the same trigger, so one burst of writes produces one backup.
"""

from __future__ import annotations

import threading
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from loguru import logger
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

if TYPE_CHECKING:
    from save_manager.models.backup_record import BackupResult

_CHANGE_EVENTS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED, EVENT_TYPE_DELETED}
)

BackupFn = Callable[[int, str], "BackupResult"]
PruneFn = Callable[[str, int], int]


class WatchState(StrEnum):
    IDLE = "idle"
    WATCHING = "watching"
    DEBOUNCING = "debouncing"
    BACKING_UP = "backing_up"
    STOPPED = "stopped"
    FAILED = "failed"


class _SaveChangeHandler(FileSystemEventHandler):
    """Forwards modification-class events to the owning session."""

    def __init__(self, session: WatchSession) -> None:
        super().__init__()
        self._session = session

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in _CHANGE_EVENTS:
            self._session.notify_change(str(event.src_path))


class WatchSession:
    """Live subscription over the save folders of one title."""

    def __init__(
        self,
        title_id: int,
        title_name: str,
        paths: list[Path],
        on_trigger: Callable[[], None],
        debounce_seconds: float = 5.0,
    ) -> None:
        self.title_id = title_id
        self.title_name = title_name
        self._paths = paths
        self._on_trigger = on_trigger
        self._debounce = debounce_seconds
        self._pending = threading.Event()
        self._stop = threading.Event()
        self._observer: Observer | None = None
        self._worker: threading.Thread | None = None
        self._state = WatchState.IDLE
        self.watched: list[Path] = []

    @property
    def state(self) -> WatchState:
        return self._state

    def start(self) -> bool:
        """Register the observer on every existing path and start the worker."""
        observer = Observer()
        handler = _SaveChangeHandler(self)
        try:
            for path in self._paths:
                if not path.is_absolute() or not path.is_dir():
                    logger.debug(f"[{self.title_name}] Not watching missing path: {path}")
                    continue
                observer.schedule(handler, str(path), recursive=True)
                self.watched.append(path)
            if not self.watched:
                logger.warning(f"[{self.title_name}] No existing save folder to watch")
                self._state = WatchState.FAILED
                return False
            observer.start()
        except OSError as e:
            logger.error(f"[{self.title_name}] Failed to start watcher: {e}")
            self._state = WatchState.FAILED
            return False

        self._observer = observer
        self._worker = threading.Thread(
            target=self._run, name=f"watch-{self.title_id}", daemon=True
        )
        self._state = WatchState.WATCHING
        self._worker.start()
        logger.info(f"Watcher started for {self.title_name}: {len(self.watched)} folder(s)")
        return True

    def notify_change(self, path: str) -> None:
        """Arm (or re-arm) the pending backup trigger."""
        logger.trace(f"[{self.title_name}] change: {path}")
        self._pending.set()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        self._pending.set()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout)
        if self._worker is not None and self._worker is not threading.current_thread():
            self._worker.join(timeout)
        self._state = WatchState.STOPPED
        logger.info(f"Watcher stopped for {self.title_name}")

    def _run(self) -> None:
        while not self._stop.is_set():
            self._pending.wait()
            if self._stop.is_set():
                break

            # Quiet period: restart the window while events keep arriving
            self._state = WatchState.DEBOUNCING
            while True:
                self._pending.clear()
                if self._stop.wait(self._debounce):
                    return
                if not self._pending.is_set():
                    break

            self._state = WatchState.BACKING_UP
            try:
                self._on_trigger()
            except Exception:
                logger.exception(f"[{self.title_name}] Automatic backup failed")
            if not self._stop.is_set():
                self._state = WatchState.WATCHING


class ChangeWatcher:
    """At most one :class:`WatchSession` per title."""

    def __init__(
        self,
        backup: BackupFn,
        prune: PruneFn,
        retention_limit: int = 10,
        debounce_seconds: float = 5.0,
    ) -> None:
        self._backup = backup
        self._prune = prune
        self._limit = retention_limit
        self._debounce = debounce_seconds
        self._sessions: dict[int, WatchSession] = {}
        self._lock = threading.Lock()

    def start(self, title_id: int, title_name: str, paths: list[Path]) -> bool:
        """Start watching *paths*; replaces a running session of the same title."""
        self.stop(title_id)
        session = WatchSession(
            title_id,
            title_name,
            paths,
            on_trigger=lambda: self._auto_backup(title_id, title_name),
            debounce_seconds=self._debounce,
        )
        if not session.start():
            return False
        with self._lock:
            self._sessions[title_id] = session
        return True

    def stop(self, title_id: int) -> bool:
        with self._lock:
            session = self._sessions.pop(title_id, None)
        if session is None:
            return False
        session.stop()
        return True

    def stop_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.stop()

    def is_watching(self, title_id: int) -> bool:
        with self._lock:
            return title_id in self._sessions

    def session(self, title_id: int) -> WatchSession | None:
        with self._lock:
            return self._sessions.get(title_id)

    def _auto_backup(self, title_id: int, title_name: str) -> None:
        """Backup then retention with the automatic limit; errors are logged only."""
        try:
            result = self._backup(title_id, title_name)
            logger.info(f"[{title_name}] Automatic backup: {result.status} {result.timestamp}")
        except Exception:
            logger.exception(f"[{title_name}] Automatic backup raised")
        try:
            self._prune(title_name, self._limit)
        except Exception:
            logger.exception(f"[{title_name}] Automatic retention raised")
