"""Player directory collector.

This module builds the season's player directory from the per-game averages
page: one record per player with the site identifier parsed from the
player's profile link, position and average minutes.

Example:
    >>> from nba_fantasy.data.collectors import DirectoryCollector
    >>> collector = DirectoryCollector(client)
    >>> players = collector.build_directory(2019)
    >>> players[0].player_id
    'adamsst01'
"""
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable
from urllib.parse import urlparse

import pandas as pd

from nba_fantasy.data.collectors.base import BaseCollector
from nba_fantasy.data.fetcher import (
    body_rows,
    drop_header_rows,
    select_table,
    table_to_frame,
    validate_columns,
)
from nba_fantasy.exceptions import DirectoryError, ParseError
from nba_fantasy.types import PlayerRecord

if TYPE_CHECKING:
    from bs4 import BeautifulSoup, Tag

PER_GAME_PATH = "leagues/NBA_{season}_per_game.html"

NAME_COLUMN = "Player"
POSITION_COLUMN = "Pos"
MINUTES_COLUMN = "MP"

PLAYER_HREF = re.compile(r"/players/")

DIRECTORY_COLUMNS = ["player_id", "player_name", "position", "minutes_played"]


def player_id_from_href(href: str) -> str:
    """Parse the player identifier out of a profile link.

    The identifier is the path segment after the third ``/`` with the
    ``.html`` suffix removed: ``/players/j/jamesle01.html`` gives
    ``jamesle01``. Absolute URLs are reduced to their path first.

    Raises:
        DirectoryError: If the link does not have that shape.
    """
    segments = urlparse(href).path.split("/")
    if len(segments) < 4 or not segments[3]:
        raise DirectoryError(f"Unexpected player link: {href!r}")
    return segments[3].removesuffix(".html")


def _row_link(row: Tag) -> str | None:
    anchor = row.find("a", href=PLAYER_HREF)
    return anchor["href"] if anchor is not None else None


def directory_frame(records: Iterable[PlayerRecord]) -> pd.DataFrame:
    """Convert directory records to a DataFrame for joins."""
    return pd.DataFrame(
        [
            (r.player_id, r.player_name, r.position, r.minutes_played)
            for r in records
        ],
        columns=DIRECTORY_COLUMNS,
    )


class DirectoryCollector(BaseCollector):
    """Builds the player directory for a season.

    The row-to-player table and the player links come from the same table
    element, so every kept row must carry exactly one link. Rows with an
    empty disambiguator (``Age`` by default) are site artifacts, such as the
    league average footer or the duplicated line the site emits for some
    same-named players, and are dropped before that check.
    """

    def collect(self, season: int) -> list[PlayerRecord]:
        """Alias of :meth:`build_directory`."""
        return self.build_directory(season)

    def directory_url(self, season: int) -> str:
        """URL of the season per-game averages page."""
        return self.url(PER_GAME_PATH.format(season=season))

    def build_directory(
        self,
        season: int,
        min_minutes: float | None = None,
    ) -> list[PlayerRecord]:
        """Build the season's directory.

        Args:
            season: Season ending year.
            min_minutes: Keep players averaging strictly more minutes than
                this (default from settings).

        Returns:
            Records sorted by player_id, unique by player_id.

        Raises:
            FetchError: If the page cannot be retrieved.
            DirectoryError: If the table, its columns, or its links are not
                as expected.
        """
        threshold = (
            min_minutes if min_minutes is not None else self.settings.min_minutes
        )
        url = self.directory_url(season)
        self.logger.info(f"Building player directory for {season} from {url}")

        soup = self.client.fetch_document(url)
        frame = self.extract_players(soup, source=url)

        records = self._to_records(frame)
        kept = [r for r in records if r.minutes_played > threshold]
        self.logger.info(
            f"Directory for {season}: {len(records)} players, "
            f"{len(kept)} above {threshold} minutes"
        )
        return kept

    def extract_players(
        self,
        soup: BeautifulSoup,
        source: str = "document",
    ) -> pd.DataFrame:
        """Extract player rows and their links from a parsed per-game page.

        Returns:
            Frame of the table's columns plus ``player_id``, one row per
            table row that survived header and artifact removal.

        Raises:
            DirectoryError: If the table, its columns, or its links are missing.
        """
        disambiguator = self.settings.directory_disambiguator
        expected = [NAME_COLUMN, POSITION_COLUMN, MINUTES_COLUMN, disambiguator]

        try:
            table = select_table(soup, self.settings.directory_table_index, source)
            frame = validate_columns(table_to_frame(table), expected, source)
        except ParseError as e:
            raise DirectoryError(f"Player table not found: {e}") from e

        # Rows and links line up one to one before any row is removed
        frame = frame.assign(_href=[_row_link(row) for row in body_rows(table)])
        frame = drop_header_rows(frame)

        artifacts = frame[disambiguator].str.strip() == ""
        if artifacts.any():
            dropped = frame.loc[artifacts, NAME_COLUMN].tolist()
            self.logger.debug(f"Dropping rows with empty {disambiguator}: {dropped}")
            frame = frame.loc[~artifacts].reset_index(drop=True)

        n_links = int(frame["_href"].notna().sum())
        if n_links == 0:
            raise DirectoryError(f"No player links found in {source}")
        if n_links != len(frame):
            raise DirectoryError(
                f"{len(frame)} player rows but {n_links} player links in {source}"
            )

        frame = frame.assign(player_id=frame["_href"].map(player_id_from_href))
        return frame.drop(columns="_href")

    def _to_records(self, frame: pd.DataFrame) -> list[PlayerRecord]:
        """De-duplicate by player_id (first row wins) and sort by player_id."""
        minutes = pd.to_numeric(frame[MINUTES_COLUMN], errors="coerce")
        names = frame[NAME_COLUMN].str.rstrip("*").str.strip()

        unique = (
            frame.assign(clean_name=names, minutes_num=minutes)
            .drop_duplicates(subset="player_id", keep="first")
            .sort_values("player_id", kind="stable")
        )

        self._report_collisions(unique)

        return [
            PlayerRecord(
                player_id=row["player_id"],
                player_name=row["clean_name"],
                position=row[POSITION_COLUMN],
                minutes_played=float(row["minutes_num"]),
            )
            for _, row in unique.iterrows()
        ]

    def _report_collisions(self, unique: pd.DataFrame) -> None:
        """Log names that map to more than one player_id."""
        counts = unique.groupby("clean_name")["player_id"].nunique()
        shared = counts[counts > 1].index.tolist()
        known = set(self.settings.name_collisions)
        for name in shared:
            if name in known:
                self.logger.info(f"Known name collision kept apart by id: {name}")
            else:
                self.logger.warning(f"Name shared by several player ids: {name}")
