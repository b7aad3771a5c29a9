"""Tests for the save path template resolver."""

from __future__ import annotations

from pathlib import Path

import pytest

from save_manager.core.path_resolver import HostDirs, PathResolver
from save_manager.core.steam import SteamInstall

APP_ID = 1086940


@pytest.fixture
def host_dirs(tmp_path: Path) -> HostDirs:
    home = tmp_path / "home"
    return HostDirs(
        local_data=home / ".local" / "share",
        config=home / ".config",
        home=home,
        documents=home / "Documents",
    )


@pytest.fixture
def steam(tmp_path: Path) -> SteamInstall:
    return SteamInstall(tmp_path / "steam")


@pytest.fixture
def resolver(host_dirs: HostDirs, steam: SteamInstall) -> PathResolver:
    return PathResolver(host_dirs, steam, system="Linux")


class TestHostResolution:
    def test_truncates_at_glob_and_placeholder(self, resolver: PathResolver, host_dirs: HostDirs) -> None:
        result = resolver.resolve("%APPDATA%/Save/<slot>*", APP_ID)
        assert result == host_dirs.config / "Save"
        assert not str(result).endswith("/")

    def test_recognized_tokens_leave_no_literal_text(self, resolver: PathResolver) -> None:
        for template in (
            "%LOCALAPPDATA%/Game",
            "%APPDATA%/Game",
            "%USERPROFILE%/Game",
            "%DOCUMENTS%/Game",
            "<home>/Game",
            "<winAppData>/Game",
            "<winLocalAppData>/Game",
            "<winDocuments>/Game",
        ):
            result = str(resolver.resolve(template, APP_ID))
            assert "%" not in result
            assert "<" not in result
            assert result.endswith("/Game")

    def test_token_targets(self, resolver: PathResolver, host_dirs: HostDirs) -> None:
        assert resolver.resolve("%LOCALAPPDATA%/A", APP_ID) == host_dirs.local_data / "A"
        assert resolver.resolve("<winAppData>/A", APP_ID) == host_dirs.config / "A"
        assert resolver.resolve("<home>/A", APP_ID) == host_dirs.home / "A"
        assert resolver.resolve("<winDocuments>/A", APP_ID) == host_dirs.documents / "A"

    def test_backslashes_normalized_and_trailing_stripped(
        self, resolver: PathResolver, host_dirs: HostDirs
    ) -> None:
        result = resolver.resolve("%APPDATA%\\Studio\\Game\\Saves\\", APP_ID)
        assert result == host_dirs.config / "Studio" / "Game" / "Saves"

    def test_unknown_token_left_literal(self, resolver: PathResolver) -> None:
        assert resolver.resolve("%WHATEVER%/saves", APP_ID) == Path("%WHATEVER%/saves")

    def test_missing_documents_left_unresolved(self, tmp_path: Path) -> None:
        dirs = HostDirs(tmp_path / "l", tmp_path / "c", tmp_path / "h", documents=None)
        resolver = PathResolver(dirs, None, system="Linux")
        assert str(resolver.resolve("%DOCUMENTS%/My Games", APP_ID)) == "%DOCUMENTS%/My Games"

    def test_fully_truncated_template_is_not_absolute(self, resolver: PathResolver) -> None:
        result = resolver.resolve("<base>/saves", APP_ID)
        assert not result.is_absolute()

    def test_deterministic(self, resolver: PathResolver) -> None:
        template = "%LOCALAPPDATA%/Larian Studios/Baldur's Gate 3/PlayerProfiles/*"
        assert resolver.resolve(template, APP_ID) == resolver.resolve(template, APP_ID)

    def test_windows_separators(self) -> None:
        dirs = HostDirs(
            local_data=Path("C:/Users/me/AppData/Local"),
            config=Path("C:/Users/me/AppData/Roaming"),
            home=Path("C:/Users/me"),
        )
        resolver = PathResolver(dirs, None, system="Windows")
        result = resolver.resolve("%APPDATA%/Game/Saves/", APP_ID)
        assert str(result) == r"C:\Users\me\AppData\Roaming\Game\Saves"


class TestProtonPrefix:
    @pytest.fixture
    def profile(self, steam: SteamInstall) -> Path:
        profile = steam.compat_profile(APP_ID)
        profile.mkdir(parents=True)
        return profile

    def test_appdata_rebased_into_prefix(self, resolver: PathResolver, profile: Path) -> None:
        result = resolver.resolve("%APPDATA%\\Studio\\Game", APP_ID)
        assert result == profile / "AppData" / "Roaming" / "Studio" / "Game"

    def test_uppercase_tokens_rebased_into_prefix(self, resolver: PathResolver, profile: Path) -> None:
        assert resolver.resolve("%LOCALAPPDATA%/Studio/Saves", APP_ID) == (
            profile / "AppData" / "Local" / "Studio" / "Saves"
        )
        assert resolver.resolve("%APPDATA%/Studio", APP_ID) == profile / "AppData" / "Roaming" / "Studio"

    def test_local_appdata_rebased_into_prefix(self, resolver: PathResolver, profile: Path) -> None:
        result = resolver.resolve("<winLocalAppData>/Game/Saved", APP_ID)
        assert result == profile / "AppData" / "Local" / "Game" / "Saved"

    def test_saved_games_marker(self, resolver: PathResolver, profile: Path) -> None:
        result = resolver.resolve("%USERPROFILE%/Saved Games/Game", APP_ID)
        assert result == profile / "Saved Games" / "Game"

    def test_drive_letter_stripped(self, resolver: PathResolver, profile: Path) -> None:
        result = resolver.resolve("C:\\Users\\Public\\AppData\\Game", APP_ID)
        assert result == Path("/Users/Public/AppData/Game")

    def test_prefix_branch_does_not_truncate(self, resolver: PathResolver, profile: Path) -> None:
        result = resolver.resolve("%APPDATA%/Game/<storeUserId>", APP_ID)
        assert str(result).endswith("/Game/<storeUserId>")

    def test_missing_prefix_falls_back_to_host(
        self, resolver: PathResolver, host_dirs: HostDirs
    ) -> None:
        assert resolver.resolve("%APPDATA%/Game", APP_ID) == host_dirs.config / "Game"

    def test_non_profile_template_ignores_prefix(
        self, resolver: PathResolver, host_dirs: HostDirs, profile: Path
    ) -> None:
        assert resolver.resolve("<home>/.config/Game", APP_ID) == host_dirs.home / ".config" / "Game"

    def test_only_on_linux(self, host_dirs: HostDirs, steam: SteamInstall, profile: Path) -> None:
        resolver = PathResolver(host_dirs, steam, system="Darwin")
        assert resolver.resolve("%APPDATA%/Game", APP_ID) == host_dirs.config / "Game"


class TestSteamInstall:
    def test_cloud_dirs_per_user(self, steam: SteamInstall) -> None:
        (steam.root / "userdata" / "222" / str(APP_ID)).mkdir(parents=True)
        (steam.root / "userdata" / "111" / str(APP_ID)).mkdir(parents=True)
        (steam.root / "userdata" / "333" / "999").mkdir(parents=True)
        dirs = steam.cloud_dirs(APP_ID)
        assert [d.parent.name for d in dirs] == ["111", "222"]

    def test_cloud_dirs_without_userdata(self, steam: SteamInstall) -> None:
        assert steam.cloud_dirs(APP_ID) == []
