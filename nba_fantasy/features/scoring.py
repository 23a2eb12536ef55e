"""Fantasy scoring of cleaned game logs.

Each game is scored as a weighted sum of its statistics using a league's
multiplier table. Games are then summarized per player twice:

- season-wide: over every scheduled game, unplayed games scoring 0
- per game played: over played games only

Formula: weighted_score = sum(stat_value * multiplier), a missing stat
contributing 0.

Example:
    >>> from nba_fantasy.features.scoring import FantasyScorer, DEFAULT_MULTIPLIERS
    >>> scorer = FantasyScorer(DEFAULT_MULTIPLIERS)
    >>> summary = scorer.score(cleaned, directory)
    >>> summary[["player_id", "season_median", "games_played_median"]].head()
"""

from __future__ import annotations

import json
import numbers
from pathlib import Path
from typing import Iterable

import pandas as pd

from nba_fantasy.data.cleaning import (
    DERIVED_COLUMNS,
    GAMES_PLAYED_COLUMN,
    NUMERIC_COLUMNS,
)
from nba_fantasy.data.collectors.directory import directory_frame
from nba_fantasy.exceptions import CleanError, ConfigError
from nba_fantasy.logging import get_logger
from nba_fantasy.types import Multipliers, PlayerRecord

logger = get_logger(__name__)


# Statistics a multiplier may refer to
SCORABLE_COLUMNS: list[str] = [*NUMERIC_COLUMNS, *DERIVED_COLUMNS]

# Points league defaults: made shots +1, missed shots -1, bonuses for
# multi-category games
DEFAULT_MULTIPLIERS: dict[str, float] = {
    "PTS": 1.0,
    "3P": 1.0,
    "FG": 1.0,
    "FG_MISS": -1.0,
    "FT_MISS": -1.0,
    "TRB": 1.0,
    "AST": 2.0,
    "STL": 4.0,
    "BLK": 4.0,
    "TOV": -2.0,
    "DD": 2.0,
    "TD": 3.0,
    "QD": 5.0,
}

GAME_SCORE_COLUMNS = ["weighted_score", "weighted_score_or_missing"]

SUMMARY_COLUMNS: list[str] = [
    "player_id",
    "player_name",
    "season_total_score",
    "n_games_played",
    "season_mean",
    "season_median",
    "season_stdev",
    "games_played_mean",
    "games_played_median",
    "games_played_stdev",
    "position",
    "minutes_played",
]


def validate_multipliers(multipliers: Multipliers) -> dict[str, float]:
    """Check a multiplier table against the scorable statistics.

    Args:
        multipliers: Statistic name to multiplier.

    Returns:
        The table as a plain dict of floats.

    Raises:
        ConfigError: If the table is empty, names an unknown statistic, or
            has a non-numeric multiplier.
    """
    if not multipliers:
        raise ConfigError("Multiplier table is empty")

    unknown = sorted(set(multipliers) - set(SCORABLE_COLUMNS))
    if unknown:
        raise ConfigError(
            f"Unknown statistics in multiplier table: {unknown}. "
            f"Valid keys: {SCORABLE_COLUMNS}"
        )

    validated = {}
    for key, value in multipliers.items():
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise ConfigError(f"Multiplier for {key} is not a number: {value!r}")
        validated[key] = float(value)
    return validated


def load_multipliers(path: str | Path) -> dict[str, float]:
    """Read and validate a multiplier table from a JSON object file.

    Raises:
        ConfigError: If the file cannot be read or holds an invalid table.
    """
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read multipliers from {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Multipliers in {path} must be a JSON object")
    return validate_multipliers(data)


class FantasyScorer:
    """Scores cleaned game logs and summarizes them per player.

    Attributes:
        multipliers: Validated statistic name to multiplier table.
    """

    def __init__(self, multipliers: Multipliers | None = None) -> None:
        """Initialize scorer.

        Args:
            multipliers: Statistic name to multiplier. Uses
                DEFAULT_MULTIPLIERS if None.

        Raises:
            ConfigError: If the table is invalid.
        """
        self.multipliers = validate_multipliers(
            multipliers if multipliers is not None else DEFAULT_MULTIPLIERS
        )

    def score_games(self, cleaned: pd.DataFrame) -> pd.DataFrame:
        """Score every game row.

        Args:
            cleaned: Output of the cleaner.

        Returns:
            One row per game: ``player_id``, ``Rk`` when present, ``GP``,
            ``weighted_score`` (unplayed games score 0) and
            ``weighted_score_or_missing`` (NaN for unplayed games).

        Raises:
            CleanError: If a multiplier column or GP is absent.
        """
        required = ["player_id", GAMES_PLAYED_COLUMN, *self.multipliers]
        missing = [col for col in required if col not in cleaned.columns]
        if missing:
            raise CleanError(f"Cleaned table is missing columns: {missing}")

        weighted = pd.Series(0.0, index=cleaned.index)
        for stat, multiplier in self.multipliers.items():
            weighted = weighted + cleaned[stat].astype(float).fillna(0.0) * multiplier

        played = cleaned[GAMES_PLAYED_COLUMN].astype(bool)
        keys = [col for col in ("player_id", "Rk") if col in cleaned.columns]

        return cleaned[keys].assign(
            GP=played,
            weighted_score=weighted,
            weighted_score_or_missing=weighted.where(played),
        )

    def summarize(
        self,
        games: pd.DataFrame,
        directory: Iterable[PlayerRecord] | pd.DataFrame | None = None,
    ) -> pd.DataFrame:
        """Aggregate scored games per player.

        Season statistics include unplayed games as 0; games-played
        statistics skip them, so a player who never played has NaN there.
        Standard deviations are sample standard deviations.

        Args:
            games: Output of :meth:`score_games`.
            directory: Player directory supplying name, position and minutes.

        Returns:
            One row per player sorted by ``season_median`` descending, ties
            kept in first-appearance order.
        """
        grouped = games.groupby("player_id", sort=False)
        season = grouped["weighted_score"]
        per_game = grouped["weighted_score_or_missing"]

        summary = pd.DataFrame(
            {
                "season_total_score": season.sum(),
                "n_games_played": grouped[GAMES_PLAYED_COLUMN].sum().astype(int),
                "season_mean": season.mean(),
                "season_median": season.median(),
                "season_stdev": season.std(),
                "games_played_mean": per_game.mean(),
                "games_played_median": per_game.median(),
                "games_played_stdev": per_game.std(),
            }
        ).rename_axis("player_id").reset_index()

        summary = summary.sort_values(
            "season_median", ascending=False, kind="stable"
        ).reset_index(drop=True)

        if directory is not None:
            players = (
                directory
                if isinstance(directory, pd.DataFrame)
                else directory_frame(directory)
            )
            summary = summary.merge(
                players.drop_duplicates("player_id"), on="player_id", how="left"
            )

        return summary[[col for col in SUMMARY_COLUMNS if col in summary.columns]]

    def score(
        self,
        cleaned: pd.DataFrame,
        directory: Iterable[PlayerRecord] | pd.DataFrame | None = None,
    ) -> pd.DataFrame:
        """Score games and summarize per player in one step."""
        summary = self.summarize(self.score_games(cleaned), directory)
        logger.info(
            "Scored {} players with {} multipliers", len(summary), len(self.multipliers)
        )
        return summary


def score(
    cleaned: pd.DataFrame,
    multipliers: Multipliers,
    directory: Iterable[PlayerRecord] | pd.DataFrame | None = None,
) -> pd.DataFrame:
    """Score cleaned game logs with ``multipliers``.

    Convenience wrapper around :class:`FantasyScorer`.
    """
    return FantasyScorer(multipliers).score(cleaned, directory)
