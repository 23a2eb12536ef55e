"""Cleaning of the merged game log table.

The raw table is all text: played games hold numbers, unplayed games hold a
reason such as "Inactive" spread across the stat columns. Cleaning turns it
into a typed table in a fixed order of steps:

1. join the player's display name from the directory
2. replace "did not play" sentinels with missing values, in every column
3. coerce the stat columns to numbers (unparseable cells become missing)
4. flag double, triple and quadruple doubles
5. flag games played (games started is filled only for played games)
6. count missed field goals, free throws and three pointers

Every step returns a new frame. Cleaning a cleaned table is a no-op.

Example:
    >>> from nba_fantasy.data.cleaning import clean
    >>> cleaned = clean(aggregation.frame, directory)
    >>> cleaned[["player_id", "PTS", "DD", "GP"]].head()
"""
from __future__ import annotations

import logging
from typing import Iterable

import numpy as np
import pandas as pd

from nba_fantasy.data.collectors.directory import directory_frame
from nba_fantasy.exceptions import CleanError
from nba_fantasy.types import PlayerRecord

logger = logging.getLogger(__name__)


# =============================================================================
# Column Definitions
# =============================================================================

# Cell values the site uses in place of stats for games a player missed
DID_NOT_PLAY_SENTINELS: tuple[str, ...] = (
    "Inactive",
    "Did Not Dress",
    "Did Not Play",
    "Not With Team",
    "Player Suspended",
)

NUMERIC_COLUMNS: list[str] = [
    "GS",
    "FG",
    "FGA",
    "FG%",
    "3P",
    "3PA",
    "3P%",
    "FT",
    "FTA",
    "FT%",
    "ORB",
    "DRB",
    "TRB",
    "AST",
    "BLK",
    "TOV",
    "STL",
    "PTS",
]

# Categories counted towards double/triple/quadruple doubles
MULTI_DOUBLE_CATEGORIES: list[str] = ["TRB", "AST", "BLK", "STL", "PTS"]
MULTI_DOUBLE_THRESHOLD = 9

# Derived flag -> minimum number of categories above the threshold
MULTI_DOUBLE_FLAGS: dict[str, int] = {"DD": 2, "TD": 3, "QD": 4}

# Derived column -> (attempted, made)
MISSED_SHOT_COLUMNS: dict[str, tuple[str, str]] = {
    "FG_MISS": ("FGA", "FG"),
    "FT_MISS": ("FTA", "FT"),
    "3P_MISS": ("3PA", "3P"),
}

GAMES_PLAYED_COLUMN = "GP"

DERIVED_COLUMNS: list[str] = [
    *MULTI_DOUBLE_FLAGS,
    GAMES_PLAYED_COLUMN,
    *MISSED_SHOT_COLUMNS,
]


# =============================================================================
# Cleaning Steps
# =============================================================================


def join_player_names(
    raw: pd.DataFrame,
    directory: Iterable[PlayerRecord] | pd.DataFrame,
) -> pd.DataFrame:
    """Add ``player_name`` after ``player_id``.

    Rows whose id is not in the directory keep a missing name. An existing
    ``player_name`` column is replaced.
    """
    players = directory if isinstance(directory, pd.DataFrame) else directory_frame(directory)
    names = players[["player_id", "player_name"]].drop_duplicates("player_id")

    joined = raw.drop(columns="player_name", errors="ignore").merge(
        names, on="player_id", how="left"
    )
    unmatched = joined["player_name"].isna() & joined["player_id"].notna()
    if unmatched.any():
        ids = sorted(joined.loc[unmatched, "player_id"].unique())
        logger.warning(f"{len(ids)} player ids not in directory: {ids}")

    columns = list(joined.columns)
    columns.remove("player_name")
    columns.insert(columns.index("player_id") + 1, "player_name")
    return joined[columns]


def replace_sentinels(
    frame: pd.DataFrame,
    sentinels: Iterable[str] = DID_NOT_PLAY_SENTINELS,
) -> pd.DataFrame:
    """Replace "did not play" sentinel cells with NaN in every text column."""
    sentinels = list(sentinels)
    replaced = {}
    for col in frame.columns:
        if not (
            pd.api.types.is_object_dtype(frame[col])
            or pd.api.types.is_string_dtype(frame[col])
        ):
            continue
        values = frame[col].copy()
        values[values.isin(sentinels)] = np.nan
        replaced[col] = values
    return frame.assign(**replaced)


def coerce_numeric(
    frame: pd.DataFrame,
    columns: Iterable[str] = NUMERIC_COLUMNS,
) -> pd.DataFrame:
    """Convert stat columns to numbers; cells that do not parse become NaN."""
    return frame.assign(
        **{col: pd.to_numeric(frame[col], errors="coerce") for col in columns}
    )


def add_multi_double_flags(frame: pd.DataFrame) -> pd.DataFrame:
    """Flag double, triple and quadruple doubles.

    A category counts when its value is strictly above 9; missing values
    never count. The flags are cumulative, a triple double is also a double
    double.
    """
    above = frame[MULTI_DOUBLE_CATEGORIES].gt(MULTI_DOUBLE_THRESHOLD).sum(axis=1)
    return frame.assign(
        **{flag: above >= needed for flag, needed in MULTI_DOUBLE_FLAGS.items()}
    )


def add_games_played(frame: pd.DataFrame) -> pd.DataFrame:
    """Flag played games: games started is missing for every unplayed game."""
    return frame.assign(**{GAMES_PLAYED_COLUMN: frame["GS"].notna()})


def add_missed_shots(frame: pd.DataFrame) -> pd.DataFrame:
    """Attempts minus makes, missing when either side is missing."""
    return frame.assign(
        **{
            name: frame[attempted] - frame[made]
            for name, (attempted, made) in MISSED_SHOT_COLUMNS.items()
        }
    )


def check_structure(raw: pd.DataFrame) -> None:
    """Raise CleanError when columns the cleaner relies on are absent.

    A table without rows only needs ``player_id``.
    """
    required = ["player_id", *NUMERIC_COLUMNS] if len(raw) else ["player_id"]
    missing = [col for col in required if col not in raw.columns]
    if missing:
        raise CleanError(f"Game log table is missing columns: {missing}")


def clean(
    raw: pd.DataFrame,
    directory: Iterable[PlayerRecord] | pd.DataFrame,
) -> pd.DataFrame:
    """Clean the merged game log table.

    Args:
        raw: Merged game logs from the aggregator.
        directory: Player directory, as records or a directory frame.

    Returns:
        New DataFrame with player names, numeric stat columns and the
        derived columns DD, TD, QD, GP, FG_MISS, FT_MISS and 3P_MISS.

    Raises:
        CleanError: If ``player_id`` or a stat column is absent
            from a table that has rows.
    """
    check_structure(raw)
    if not len(raw):
        # Every player skipped, or none above the minutes threshold
        raw = raw.reindex(
            columns=[*raw.columns, *(c for c in NUMERIC_COLUMNS if c not in raw.columns)]
        )

    cleaned = add_missed_shots(
        add_games_played(
            add_multi_double_flags(
                coerce_numeric(replace_sentinels(join_player_names(raw, directory)))
            )
        )
    )

    logger.info(
        f"Cleaned {len(cleaned)} game rows: {int(cleaned[GAMES_PLAYED_COLUMN].sum())} "
        f"played, {int(cleaned['DD'].sum())} double doubles"
    )
    return cleaned
