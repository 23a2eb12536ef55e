"""NBA fantasy draft dataset builder.

Scrapes a season of player game logs from Basketball-Reference, cleans them,
and scores every game with a league's fantasy multipliers to produce one
summary row per player for draft preparation.

Example:
    >>> from nba_fantasy.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.season)
"""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "NBA Fantasy Team"

# Public API exports
from nba_fantasy.config import Settings, get_settings

__all__ = [
    "Settings",
    "__author__",
    "__version__",
    "get_settings",
]
