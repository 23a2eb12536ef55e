"""Exception hierarchy for the fantasy pipeline.

Fatal and recoverable failures are told apart by type, not by message:

- FetchError / ParseError: one page could not be retrieved or read. The
  game log aggregator recovers from these per player.
- DirectoryError / CleanError: the run has nothing meaningful to produce.
- ConfigError: bad multipliers, season or threshold.
"""
from __future__ import annotations


class NBAFantasyError(Exception):
    """Base exception for all pipeline errors."""

    pass


class FetchError(NBAFantasyError):
    """Network failure, timeout, or non-success HTTP status."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ParseError(NBAFantasyError):
    """Expected table or structure missing from a fetched document."""

    pass


class DirectoryError(NBAFantasyError):
    """Player directory page violated an extraction invariant."""

    pass


class CleanError(NBAFantasyError):
    """Merged game log table is structurally malformed."""

    pass


class ConfigError(NBAFantasyError):
    """Invalid multipliers, season, or threshold configuration."""

    pass


__all__ = [
    "CleanError",
    "ConfigError",
    "DirectoryError",
    "FetchError",
    "NBAFantasyError",
    "ParseError",
]
