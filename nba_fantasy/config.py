"""Configuration management using Pydantic Settings.

This module provides centralized configuration for the fantasy pipeline,
supporting environment variables and .env file loading. Everything that is
likely to break when Basketball-Reference changes its pages (URLs, table
positions, request pacing) lives here rather than in the collectors.

Example:
    >>> from nba_fantasy.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.request_delay)
    5.0
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nba_fantasy.exceptions import ConfigError

# First season with a Basketball-Reference per-game page
FIRST_SEASON = 1947


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Environment variables take precedence over .env file values.

    Attributes:
        base_url: Root URL of the statistics site.
        season: Season to process, named by its ending year (2019 = 2018-19).
        min_minutes: Directory filter, players must average more minutes.
        request_delay: Minimum seconds between successive requests.
        request_timeout: Per-request timeout in seconds.
        max_retries: Retry attempts for transient request failures.
        retry_backoff: Base backoff in seconds, doubled on every retry.
        directory_table_index: 0-based table position on the per-game page.
        gamelog_table_index: 0-based table position on a game log page.
        directory_disambiguator: Column whose empty value marks an artifact row.
        name_collisions: Names shared by distinct players in the directory.
        scoring_path: Optional JSON file with fantasy multipliers.
        output_dir: Directory for exported tables.
        checkpoint_dir: Directory for aggregation checkpoints.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Directory for log files.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Source site
    base_url: str = Field(
        default="https://www.basketball-reference.com",
        alias="NBA_FANTASY_BASE_URL",
        description="Root URL of the statistics site",
    )
    season: int = Field(
        default=2019,
        alias="NBA_FANTASY_SEASON",
        description="Season ending year",
    )
    min_minutes: float = Field(
        default=25.0,
        alias="NBA_FANTASY_MIN_MINUTES",
        ge=0.0,
        le=48.0,
        description="Minimum average minutes for a player to be kept",
    )

    # Request pacing
    request_delay: float = Field(
        default=5.0,
        alias="NBA_FANTASY_REQUEST_DELAY",
        ge=0.0,
        description="Minimum delay between requests in seconds",
    )
    request_timeout: float = Field(
        default=30.0,
        alias="NBA_FANTASY_REQUEST_TIMEOUT",
        gt=0.0,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        alias="NBA_FANTASY_MAX_RETRIES",
        ge=0,
        le=10,
        description="Maximum retry attempts for transient failures",
    )
    retry_backoff: float = Field(
        default=10.0,
        alias="NBA_FANTASY_RETRY_BACKOFF",
        ge=0.0,
        description="Base retry backoff in seconds",
    )

    # Page layout
    directory_table_index: int = Field(
        default=0,
        alias="NBA_FANTASY_DIRECTORY_TABLE_INDEX",
        ge=0,
        description="Position of the per-game table on the season page",
    )
    gamelog_table_index: int = Field(
        default=7,
        alias="NBA_FANTASY_GAMELOG_TABLE_INDEX",
        ge=0,
        description="Position of the regular season table on a game log page",
    )
    directory_disambiguator: str = Field(
        default="Age",
        alias="NBA_FANTASY_DIRECTORY_DISAMBIGUATOR",
        description="Column that must be filled for a directory row to count",
    )
    name_collisions: list[str] = Field(
        default_factory=list,
        alias="NBA_FANTASY_NAME_COLLISIONS",
        description="Player names known to be shared by distinct players",
    )

    # Files
    scoring_path: str | None = Field(
        default=None,
        alias="NBA_FANTASY_SCORING_PATH",
        description="JSON file with fantasy multipliers",
    )
    output_dir: str = Field(
        default="data/output",
        alias="NBA_FANTASY_OUTPUT_DIR",
        description="Directory for exported tables",
    )
    checkpoint_dir: str = Field(
        default="data/checkpoints",
        alias="NBA_FANTASY_CHECKPOINT_DIR",
        description="Directory for aggregation checkpoints",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    log_dir: str = Field(
        default="logs",
        alias="LOG_DIR",
        description="Directory for log files",
    )

    @field_validator("output_dir", "checkpoint_dir", "log_dir", "base_url")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Ensure path and URL strings are usable."""
        if not v or v.isspace():
            raise ValueError("Value cannot be empty or whitespace")
        return v.rstrip("/") if v.startswith("http") else v

    @property
    def output_dir_obj(self) -> Path:
        """Return output directory as Path object."""
        return Path(self.output_dir)

    @property
    def checkpoint_dir_obj(self) -> Path:
        """Return checkpoint directory as Path object."""
        return Path(self.checkpoint_dir)

    @property
    def log_dir_obj(self) -> Path:
        """Return log directory as Path object."""
        return Path(self.log_dir)

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.output_dir_obj.mkdir(parents=True, exist_ok=True)
        self.checkpoint_dir_obj.mkdir(parents=True, exist_ok=True)
        self.log_dir_obj.mkdir(parents=True, exist_ok=True)


def validate_run_config(season: int, min_minutes: float) -> None:
    """Reject implausible season or minutes threshold values.

    Args:
        season: Season ending year.
        min_minutes: Average minutes threshold.

    Raises:
        ConfigError: If either value is out of range.
    """
    last_season = date.today().year + 1
    if not FIRST_SEASON <= season <= last_season:
        raise ConfigError(
            f"Season {season} outside plausible range {FIRST_SEASON}-{last_season}"
        )
    if not 0.0 <= min_minutes <= 48.0:
        raise ConfigError(f"Minutes threshold {min_minutes} outside 0-48")


# Singleton pattern for settings
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> print(settings.gamelog_table_index)
        7
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (useful for testing)."""
    global _settings
    _settings = None
