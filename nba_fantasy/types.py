"""Type definitions shared across the fantasy pipeline.

Tables travel between stages as pandas DataFrames; the only record type is
the directory entry, which is small, immutable and handy to pass around
outside of a frame.

Example:
    >>> from nba_fantasy.types import PlayerRecord
    >>> record = PlayerRecord("jamesle01", "LeBron James", "SF", 35.2)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol

# =============================================================================
# Type Aliases
# =============================================================================

PlayerId = str
Season = int
Multipliers = Mapping[str, float]


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class PlayerRecord:
    """One player in a season's directory.

    Attributes:
        player_id: Site identifier taken from the player's profile link.
        player_name: Display name.
        position: Position label, possibly multi-valued (e.g. "PF-C").
        minutes_played: Average minutes per game over the season.
    """

    player_id: PlayerId
    player_name: str
    position: str
    minutes_played: float


# =============================================================================
# Protocols
# =============================================================================


class HttpResponse(Protocol):
    """Subset of ``requests.Response`` used by the fetcher."""

    status_code: int
    content: bytes


class HttpSession(Protocol):
    """Subset of ``requests.Session`` used by the fetcher."""

    def get(self, url: str, **kwargs: object) -> HttpResponse:
        """Issue a GET request."""
        ...


__all__ = [
    "HttpResponse",
    "HttpSession",
    "Multipliers",
    "PlayerId",
    "PlayerRecord",
    "Season",
]
