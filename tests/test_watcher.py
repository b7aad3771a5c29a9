"""Tests for the change watcher and its debounce."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from save_manager.core.watcher import ChangeWatcher, WatchSession, WatchState

DEBOUNCE = 0.2


class TriggerCounter:
    def __init__(self) -> None:
        self.count = 0
        self.fired = threading.Event()

    def __call__(self) -> None:
        self.count += 1
        self.fired.set()


@pytest.fixture
def save_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "saves"
    folder.mkdir()
    return folder


@pytest.fixture
def counter() -> TriggerCounter:
    return TriggerCounter()


@pytest.fixture
def session(save_dir: Path, counter: TriggerCounter):
    session = WatchSession(1, "Game", [save_dir], counter, debounce_seconds=DEBOUNCE)
    assert session.start()
    yield session
    session.stop()


class TestWatchSession:
    def test_burst_produces_one_trigger(self, session: WatchSession, counter: TriggerCounter) -> None:
        for i in range(20):
            session.notify_change(f"save{i}.dat")
            time.sleep(DEBOUNCE / 10)

        assert counter.fired.wait(5)
        time.sleep(DEBOUNCE * 3)
        assert counter.count == 1
        assert session.state is WatchState.WATCHING

    def test_separate_bursts_trigger_separately(
        self, session: WatchSession, counter: TriggerCounter
    ) -> None:
        session.notify_change("a")
        assert counter.fired.wait(5)
        counter.fired.clear()
        session.notify_change("b")
        assert counter.fired.wait(5)
        assert counter.count == 2

    def test_stop_during_quiet_period_cancels(
        self, save_dir: Path, counter: TriggerCounter
    ) -> None:
        session = WatchSession(1, "Game", [save_dir], counter, debounce_seconds=1.0)
        assert session.start()
        session.notify_change("a")
        session.stop()

        time.sleep(1.2)
        assert counter.count == 0
        assert session.state is WatchState.STOPPED

    def test_file_write_triggers_backup(
        self, session: WatchSession, save_dir: Path, counter: TriggerCounter
    ) -> None:
        (save_dir / "slot1.sav").write_bytes(b"progress")
        assert counter.fired.wait(5)

    def test_trigger_error_keeps_watching(self, save_dir: Path) -> None:
        calls = threading.Event()

        def broken() -> None:
            calls.set()
            raise RuntimeError("backup exploded")

        session = WatchSession(1, "Game", [save_dir], broken, debounce_seconds=DEBOUNCE)
        assert session.start()
        try:
            session.notify_change("a")
            assert calls.wait(5)
            time.sleep(DEBOUNCE)
            assert session.state is WatchState.WATCHING
        finally:
            session.stop()

    def test_no_existing_path_fails(self, tmp_path: Path, counter: TriggerCounter) -> None:
        session = WatchSession(
            1, "Game", [tmp_path / "missing", Path("relative")], counter, debounce_seconds=DEBOUNCE
        )
        assert session.start() is False
        assert session.state is WatchState.FAILED
        assert session.watched == []

    def test_only_existing_paths_watched(
        self, tmp_path: Path, save_dir: Path, counter: TriggerCounter
    ) -> None:
        session = WatchSession(1, "Game", [tmp_path / "missing", save_dir], counter)
        assert session.start()
        try:
            assert session.watched == [save_dir]
        finally:
            session.stop()


class TestChangeWatcher:
    def test_backup_then_prune_with_auto_limit(self, save_dir: Path) -> None:
        order: list[str] = []
        pruned = threading.Event()
        def record_backup(title_id: int, title_name: str) -> MagicMock:
            order.append("backup")
            return MagicMock(status="success", timestamp="2026-01-01_00-00-00")

        backup = MagicMock(side_effect=record_backup)

        def prune(title_name: str, limit: int) -> int:
            order.append(f"prune:{title_name}:{limit}")
            pruned.set()
            return 0

        watcher = ChangeWatcher(backup, prune, retention_limit=3, debounce_seconds=DEBOUNCE)
        assert watcher.start(7, "Game", [save_dir])
        try:
            watcher.session(7).notify_change("x")
            assert pruned.wait(5)
        finally:
            watcher.stop_all()

        backup.assert_called_once_with(7, "Game")
        assert order == ["backup", "prune:Game:3"]

    def test_prune_runs_even_when_backup_raises(self, save_dir: Path) -> None:
        pruned = threading.Event()
        backup = MagicMock(side_effect=OSError("disk gone"))
        prune = MagicMock(side_effect=lambda *_: pruned.set())

        watcher = ChangeWatcher(backup, prune, retention_limit=2, debounce_seconds=DEBOUNCE)
        assert watcher.start(7, "Game", [save_dir])
        try:
            watcher.session(7).notify_change("x")
            assert pruned.wait(5)
        finally:
            watcher.stop_all()
        prune.assert_called_once_with("Game", 2)

    def test_start_replaces_existing_session(self, save_dir: Path) -> None:
        watcher = ChangeWatcher(MagicMock(), MagicMock(), debounce_seconds=DEBOUNCE)
        assert watcher.start(7, "Game", [save_dir])
        first = watcher.session(7)
        assert watcher.start(7, "Game", [save_dir])
        try:
            assert first.state is WatchState.STOPPED
            assert watcher.session(7) is not first
        finally:
            watcher.stop_all()

    def test_stop(self, save_dir: Path) -> None:
        watcher = ChangeWatcher(MagicMock(), MagicMock())
        assert watcher.start(7, "Game", [save_dir])
        assert watcher.is_watching(7)
        assert watcher.stop(7)
        assert not watcher.is_watching(7)
        assert watcher.stop(7) is False

    def test_failed_start_not_registered(self, tmp_path: Path) -> None:
        watcher = ChangeWatcher(MagicMock(), MagicMock())
        assert watcher.start(7, "Game", [tmp_path / "nope"]) is False
        assert not watcher.is_watching(7)
