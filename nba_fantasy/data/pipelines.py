"""Pipeline orchestration for a season's fantasy dataset.

This module provides the FantasyPipeline class, which runs the stages in
order for one season:

1. build the player directory
2. aggregate every directory player's game log
3. clean the merged table
4. score and summarize per player

Directory and cleaning failures end the run. Players whose game log could
not be fetched are skipped and reported in the result.

Example:
    >>> from nba_fantasy.data.pipelines import FantasyPipeline
    >>> from nba_fantasy.data import HtmlTableClient
    >>> pipeline = FantasyPipeline(HtmlTableClient())
    >>> result = pipeline.run(season=2019)
    >>> result.summary.head()
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Mapping

import pandas as pd

from nba_fantasy.config import get_settings, validate_run_config
from nba_fantasy.logging import FAIL, SUCCESS, WARN

if TYPE_CHECKING:
    from nba_fantasy.config import Settings
    from nba_fantasy.data.checkpoint import CheckpointManager
    from nba_fantasy.data.fetcher import HtmlTableClient
    from nba_fantasy.types import PlayerRecord

logger = logging.getLogger(__name__)


class PipelineStatus(Enum):
    """Status of a pipeline execution."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Results from a pipeline run.

    Attributes:
        status: Final pipeline status.
        season: Season processed.
        players_attempted: Players whose game logs were requested.
        players_aggregated: Players whose game logs were collected.
        skipped: (player_id, reason) for players left out of the dataset.
        directory: Player directory used for the run.
        raw: Merged game logs as text.
        cleaned: Cleaned game logs.
        summary: Per-player fantasy summary, the run's output artifact.
        errors: Fatal error messages.
        duration_seconds: Total execution time in seconds.
    """

    status: PipelineStatus
    season: int
    players_attempted: int = 0
    players_aggregated: int = 0
    skipped: list[tuple[str, str]] = field(default_factory=list)
    directory: list[PlayerRecord] = field(default_factory=list)
    raw: pd.DataFrame | None = None
    cleaned: pd.DataFrame | None = None
    summary: pd.DataFrame | None = None
    errors: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def players_skipped(self) -> int:
        """Number of players left out of the dataset."""
        return len(self.skipped)


class FantasyPipeline:
    """Runs directory, aggregation, cleaning and scoring for one season."""

    def __init__(
        self,
        client: HtmlTableClient,
        settings: Settings | None = None,
        checkpoint_manager: CheckpointManager | None = None,
    ) -> None:
        """Initialize pipeline.

        Args:
            client: HTML table client shared by every request of the run.
            settings: Optional settings, the global settings if omitted.
            checkpoint_manager: Enables resumable game log aggregation.
        """
        self.client = client
        self.settings = settings if settings is not None else get_settings()
        self.logger = logging.getLogger(self.__class__.__name__)

        # Import collectors here to avoid circular imports
        from nba_fantasy.data.collectors import DirectoryCollector, GameLogCollector

        self.directory_collector = DirectoryCollector(client, self.settings)
        self.gamelog_collector = GameLogCollector(
            client, self.settings, checkpoint_manager
        )

    def run(
        self,
        season: int | None = None,
        multipliers: Mapping[str, float] | None = None,
        min_minutes: float | None = None,
        resume: bool = True,
    ) -> PipelineResult:
        """Build the season's per-player fantasy summary.

        Args:
            season: Season ending year (default from settings).
            multipliers: Fantasy multiplier table (default multipliers if None).
            min_minutes: Directory minutes threshold (default from settings).
            resume: Resume game log aggregation from a checkpoint.

        Returns:
            PipelineResult with the tables and the per-player outcome.

        Raises:
            ConfigError: If season, threshold or multipliers are invalid.
            FetchError: If the directory page cannot be fetched.
            DirectoryError: If the directory page cannot be read.
            CleanError: If the merged game logs are malformed.
        """
        from nba_fantasy.data.cleaning import clean
        from nba_fantasy.features.scoring import FantasyScorer

        season = season if season is not None else self.settings.season
        min_minutes = (
            min_minutes if min_minutes is not None else self.settings.min_minutes
        )
        validate_run_config(season, min_minutes)
        scorer = FantasyScorer(multipliers)

        start_time = time.time()
        result = PipelineResult(status=PipelineStatus.RUNNING, season=season)

        try:
            directory = self.directory_collector.build_directory(season, min_minutes)
            result.directory = directory

            aggregation = self.gamelog_collector.aggregate_gamelogs(
                [record.player_id for record in directory],
                season,
                resume=resume,
            )
            result.raw = aggregation.frame
            result.players_attempted = aggregation.attempted
            result.players_aggregated = len(aggregation.succeeded)
            result.skipped = list(aggregation.skipped)

            result.cleaned = clean(aggregation.frame, directory)
            result.summary = scorer.score(result.cleaned, directory)
        except Exception as e:
            result.status = PipelineStatus.FAILED
            result.errors.append(str(e))
            result.duration_seconds = time.time() - start_time
            self.logger.error(f"{FAIL} Pipeline failed for {season}: {e}")
            raise

        result.status = PipelineStatus.COMPLETED
        result.duration_seconds = time.time() - start_time

        if result.skipped:
            self.logger.warning(
                f"{WARN} {result.players_skipped} players skipped: "
                f"{[player_id for player_id, _ in result.skipped]}"
            )
        self.logger.info(
            f"{SUCCESS} Season {season}: {result.players_aggregated}/"
            f"{result.players_attempted} players aggregated in "
            f"{result.duration_seconds:.1f}s"
        )
        return result
