"""Data layer for the fantasy pipeline.

Submodules:
    fetcher: HTML table client with rate limiting and retry logic
    collectors: Player directory and game log collectors
    checkpoint: Resumable aggregation checkpoints
    cleaning: Cleaning of the merged game log table
    pipelines: End-to-end run orchestration

Example:
    >>> from nba_fantasy.data import HtmlTableClient, DirectoryCollector
    >>> client = HtmlTableClient()
    >>> directory = DirectoryCollector(client).build_directory(2019)
"""
from __future__ import annotations

from nba_fantasy.data.checkpoint import Checkpoint, CheckpointManager
from nba_fantasy.data.cleaning import (
    DERIVED_COLUMNS,
    DID_NOT_PLAY_SENTINELS,
    NUMERIC_COLUMNS,
    clean,
)
from nba_fantasy.data.collectors import (
    AggregationResult,
    BaseCollector,
    DirectoryCollector,
    GameLogCollector,
    directory_frame,
)
from nba_fantasy.data.fetcher import HtmlTableClient
from nba_fantasy.data.pipelines import FantasyPipeline, PipelineResult, PipelineStatus

__all__ = [
    # Fetching
    "HtmlTableClient",
    # Collectors
    "AggregationResult",
    "BaseCollector",
    "DirectoryCollector",
    "GameLogCollector",
    "directory_frame",
    # Checkpoint management
    "Checkpoint",
    "CheckpointManager",
    # Cleaning
    "DERIVED_COLUMNS",
    "DID_NOT_PLAY_SENTINELS",
    "NUMERIC_COLUMNS",
    "clean",
    # Pipelines
    "FantasyPipeline",
    "PipelineResult",
    "PipelineStatus",
]
