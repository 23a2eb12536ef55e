"""Tests for configuration module."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from nba_fantasy.config import (
    Settings,
    get_settings,
    reset_settings,
    validate_run_config,
)
from nba_fantasy.exceptions import ConfigError


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self) -> None:
        """Settings should have sensible defaults."""
        settings = Settings()

        assert settings.base_url == "https://www.basketball-reference.com"
        assert settings.season == 2019
        assert settings.min_minutes == 25.0
        assert settings.request_delay == 5.0
        assert settings.max_retries == 3
        assert settings.directory_table_index == 0
        assert settings.gamelog_table_index == 7
        assert settings.directory_disambiguator == "Age"
        assert settings.log_level == "INFO"

    def test_path_properties(self) -> None:
        """Path properties should return Path objects."""
        settings = Settings()

        assert isinstance(settings.output_dir_obj, Path)
        assert isinstance(settings.checkpoint_dir_obj, Path)
        assert isinstance(settings.log_dir_obj, Path)

    def test_validation_rejects_empty_path(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Empty paths should be rejected."""
        # pydantic_settings uses aliases as env var names
        monkeypatch.setenv("NBA_FANTASY_OUTPUT_DIR", "   ")
        with pytest.raises(ValueError, match="cannot be empty"):
            Settings()

    def test_base_url_trailing_slash_removed(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NBA_FANTASY_BASE_URL", "https://mirror.test/")
        assert Settings().base_url == "https://mirror.test"

    @pytest.mark.parametrize(
        "name,value",
        [
            ("NBA_FANTASY_MIN_MINUTES", "49"),
            ("NBA_FANTASY_REQUEST_DELAY", "-1"),
            ("NBA_FANTASY_MAX_RETRIES", "11"),
            ("NBA_FANTASY_GAMELOG_TABLE_INDEX", "-1"),
            ("LOG_LEVEL", "CHATTY"),
        ],
    )
    def test_validation_rejects_out_of_range(
        self, monkeypatch: pytest.MonkeyPatch, name: str, value: str
    ) -> None:
        monkeypatch.setenv(name, value)
        with pytest.raises(ValueError):
            Settings()

    def test_name_collisions_from_json_env(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NBA_FANTASY_NAME_COLLISIONS", '["Marcus Morris"]')
        assert Settings().name_collisions == ["Marcus Morris"]

    def test_field_names_accepted(self) -> None:
        settings = Settings(request_delay=0.5, season=2005)
        assert settings.request_delay == 0.5
        assert settings.season == 2005

    def test_ensure_directories_creates_dirs(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """ensure_directories should create required directories."""
        monkeypatch.setenv("NBA_FANTASY_OUTPUT_DIR", str(tmp_path / "output"))
        monkeypatch.setenv("NBA_FANTASY_CHECKPOINT_DIR", str(tmp_path / "checkpoints"))
        monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))

        settings = Settings()
        settings.ensure_directories()

        assert (tmp_path / "output").exists()
        assert (tmp_path / "checkpoints").exists()
        assert (tmp_path / "logs").exists()


class TestValidateRunConfig:
    """Tests for run parameter validation."""

    def test_accepts_plausible_values(self) -> None:
        validate_run_config(2019, 25.0)
        validate_run_config(1947, 0.0)
        validate_run_config(date.today().year + 1, 48.0)

    @pytest.mark.parametrize("season", [1946, date.today().year + 2])
    def test_rejects_season(self, season: int) -> None:
        with pytest.raises(ConfigError, match="Season"):
            validate_run_config(season, 25.0)

    @pytest.mark.parametrize("minutes", [-0.1, 48.5])
    def test_rejects_minutes(self, minutes: float) -> None:
        with pytest.raises(ConfigError, match="Minutes threshold"):
            validate_run_config(2019, minutes)


class TestGetSettings:
    """Tests for get_settings function."""

    def setup_method(self) -> None:
        """Reset settings before each test."""
        reset_settings()

    def teardown_method(self) -> None:
        """Reset settings after each test."""
        reset_settings()

    def test_returns_singleton(self) -> None:
        """get_settings should return the same instance."""
        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2

    def test_loads_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Settings should load from environment variables."""
        monkeypatch.setenv("NBA_FANTASY_SEASON", "2021")
        monkeypatch.setenv("NBA_FANTASY_REQUEST_DELAY", "1.5")

        reset_settings()
        settings = get_settings()

        assert settings.season == 2021
        assert settings.request_delay == 1.5


class TestResetSettings:
    """Tests for reset_settings function."""

    def test_reset_clears_singleton(self) -> None:
        """reset_settings should clear the cached instance."""
        settings1 = get_settings()
        reset_settings()
        settings2 = get_settings()

        # They should be equal but not the same object
        assert settings1 is not settings2
        assert settings1.season == settings2.season
        reset_settings()
