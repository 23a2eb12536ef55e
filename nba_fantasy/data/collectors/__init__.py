"""Collectors for Basketball-Reference pages.

- DirectoryCollector: season player directory from the per-game page
- GameLogCollector: per-player game logs merged into one table

Both share one HtmlTableClient, which paces every request of a run.

Example:
    >>> from nba_fantasy.data.collectors import DirectoryCollector, GameLogCollector
    >>> from nba_fantasy.data.fetcher import HtmlTableClient
    >>> client = HtmlTableClient()
    >>> directory = DirectoryCollector(client).build_directory(2019)
    >>> result = GameLogCollector(client).aggregate_gamelogs(
    ...     [p.player_id for p in directory], 2019
    ... )
"""
from __future__ import annotations

from nba_fantasy.data.collectors.base import BaseCollector
from nba_fantasy.data.collectors.directory import (
    DirectoryCollector,
    directory_frame,
    player_id_from_href,
)
from nba_fantasy.data.collectors.gamelogs import (
    AggregationResult,
    GameLogCollector,
    merge_gamelogs,
)

__all__ = [
    "AggregationResult",
    "BaseCollector",
    "DirectoryCollector",
    "GameLogCollector",
    "directory_frame",
    "merge_gamelogs",
    "player_id_from_href",
]
