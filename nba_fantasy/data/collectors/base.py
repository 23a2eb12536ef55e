"""Base collector class for Basketball-Reference scraping.

This module provides the abstract base class that the directory and game log
collectors inherit from: client and settings injection, URL building,
progress logging and error handling strategies.

Example:
    >>> class MyCollector(BaseCollector):
    ...     def collect(self, season: int) -> pd.DataFrame:
    ...         # Implementation here
    ...         pass
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Literal

from nba_fantasy.config import get_settings
from nba_fantasy.logging import FAIL

if TYPE_CHECKING:
    from nba_fantasy.config import Settings
    from nba_fantasy.data.fetcher import HtmlTableClient


class BaseCollector(ABC):
    """Base class for all collectors.

    Attributes:
        client: HTML table client instance.
        settings: Settings providing URLs and table positions.
        logger: Logger instance for this collector.
    """

    def __init__(
        self,
        client: HtmlTableClient,
        settings: Settings | None = None,
    ) -> None:
        """Initialize collector.

        Args:
            client: HTML table client used for every request.
            settings: Optional settings, the global settings if omitted.
        """
        self.client = client
        self.settings = settings if settings is not None else get_settings()
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def collect(self, season: int) -> Any:
        """Collect data for a season.

        Args:
            season: Season ending year.

        Returns:
            Collected data (type depends on collector).
        """
        pass

    def url(self, path: str) -> str:
        """Join a site-relative path onto the configured base URL."""
        return f"{self.settings.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _log_progress(
        self,
        current: int,
        total: int,
        item_id: str,
    ) -> None:
        """Log collection progress.

        Args:
            current: Current item number (1-indexed).
            total: Total number of items.
            item_id: ID of current item being processed.
        """
        pct = (current / total * 100) if total > 0 else 0
        self.logger.info(f"Progress: {current}/{total} ({pct:.1f}%) - {item_id}")

    def _handle_error(
        self,
        error: Exception,
        item_id: str,
        on_error: Literal["raise", "skip", "log"],
    ) -> None:
        """Handle a per-item error based on strategy.

        Args:
            error: The exception that occurred.
            item_id: ID of the item that failed.
            on_error: Error handling strategy:
                - "raise": Re-raise the exception
                - "skip": Continue without logging
                - "log": Log the error and continue
        """
        if on_error == "raise":
            raise error
        elif on_error == "log":
            self.logger.error(f"{FAIL} Error collecting {item_id}: {error}")
