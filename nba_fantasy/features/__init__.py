"""Derived metrics for the fantasy dataset.

Submodules:
    scoring: Per-game fantasy scores and per-player summaries
"""
from __future__ import annotations

from nba_fantasy.features.scoring import (
    DEFAULT_MULTIPLIERS,
    SCORABLE_COLUMNS,
    FantasyScorer,
    load_multipliers,
    score,
    validate_multipliers,
)

__all__ = [
    "DEFAULT_MULTIPLIERS",
    "SCORABLE_COLUMNS",
    "FantasyScorer",
    "load_multipliers",
    "score",
    "validate_multipliers",
]
