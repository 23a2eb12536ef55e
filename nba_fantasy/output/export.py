"""CSV export of the run's tables.

The summary table is written with the columns the plotting notebooks read
first, so the file opens sensibly in a spreadsheet as well.

Example:
    >>> from nba_fantasy.output.export import export_summary
    >>> export_summary(result.summary, "data/output/summary_2019.csv")
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from nba_fantasy.logging import get_logger

logger = get_logger(__name__)

# Columns consumed by the visualization layer, in this order
VISUALIZATION_COLUMNS: list[str] = [
    "player_id",
    "player_name",
    "season_total_score",
    "season_median",
    "games_played_median",
    "position",
    "minutes_played",
]


def order_summary_columns(summary: pd.DataFrame) -> pd.DataFrame:
    """Put the visualization columns first, the remaining ones after."""
    first = [col for col in VISUALIZATION_COLUMNS if col in summary.columns]
    rest = [col for col in summary.columns if col not in first]
    return summary[first + rest]


def export_summary(summary: pd.DataFrame, path: str | Path) -> Path:
    """Write the per-player summary to CSV.

    Args:
        summary: Output of the fantasy scorer.
        path: Destination file, parent directories created if needed.

    Returns:
        The path written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    order_summary_columns(summary).to_csv(path, index=False)
    logger.info("Wrote summary of {} players to {}", len(summary), path)
    return path


def export_frames(
    frames: dict[str, pd.DataFrame | None],
    output_dir: str | Path,
    season: int,
) -> list[Path]:
    """Write intermediate tables as ``<name>_<season>.csv``.

    Args:
        frames: Table name to DataFrame; None entries are skipped.
        output_dir: Destination directory.
        season: Season used in file names.

    Returns:
        Paths written, in ``frames`` order.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for name, frame in frames.items():
        if frame is None:
            continue
        path = output_dir / f"{name}_{season}.csv"
        frame.to_csv(path, index=False)
        logger.debug("Wrote {} rows to {}", len(frame), path)
        written.append(path)
    return written
