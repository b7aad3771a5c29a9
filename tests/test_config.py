"""Tests for the Config system."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from save_manager.config import MANIFEST_URL, Config, default_data_dir, get_config, reset_config


@pytest.fixture(autouse=True)
def _clean_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(data_dir=tmp_path)


class TestConfig:
    def test_default_values(self, config: Config) -> None:
        assert config.retention_limit == 10
        assert config.auto_backup_limit == 10
        assert config.debounce_seconds == 5.0
        assert config.language == "en_US"
        assert config.manifest_url == MANIFEST_URL
        assert config.auto_backup_titles == {}

    def test_set_and_get(self, config: Config) -> None:
        with config.batch_update():
            config.set("backup_path", "/some/path")
        assert config.backup_path == Path("/some/path")

    def test_batch_update_atomic(self, config: Config) -> None:
        with config.batch_update():
            config.set("retention_limit", 20)
            config.set("backup_path", "/new/path")
            assert not (config.data_dir / "config.json").exists()
        assert config.retention_limit == 20
        assert (config.data_dir / "config.json").exists()

    def test_paths_none_when_empty(self, config: Config) -> None:
        assert config.backup_path is None
        assert config.steam_path is None

    def test_persisted_and_reloaded(self, tmp_path: Path, config: Config) -> None:
        config.auto_backup_titles = {"1086940": "Baldur's Gate 3"}
        config.steam_path = Path("/opt/steam")

        reloaded = Config(data_dir=tmp_path)
        assert reloaded.auto_backup_titles == {"1086940": "Baldur's Gate 3"}
        assert reloaded.steam_path == Path("/opt/steam")

    def test_partial_file_merged_with_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "config.json").write_text(json.dumps({"retention_limit": 3}))
        config = Config(data_dir=tmp_path)
        assert config.retention_limit == 3
        assert config.worker_threads == 4

    def test_corrupt_file_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "config.json").write_text("{not json")
        assert Config(data_dir=tmp_path).retention_limit == 10

    def test_limits_clamped(self, config: Config) -> None:
        with config.batch_update():
            config.set("retention_limit", -4)
            config.set("worker_threads", 0)
        assert config.retention_limit == 0
        assert config.worker_threads == 1

    def test_dotted_keys(self, config: Config) -> None:
        config.set("auto_backup_titles.620", "Portal 2")
        assert config.get("auto_backup_titles.620") == "Portal 2"
        assert config.get("missing.key", "fallback") == "fallback"

    def test_data_dir_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STEAM_SAVE_MANAGER_HOME", str(tmp_path / "data"))
        assert default_data_dir() == tmp_path / "data"
        assert get_config().manifest_path == tmp_path / "data" / "manifest.yaml"
        assert get_config() is get_config()
