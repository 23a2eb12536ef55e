"""Shared pytest fixtures for nba_fantasy tests.

This module contains fixtures used across multiple test modules:
- Configuration fixtures (test settings with temporary directories)
- A fake HTTP session serving canned pages, recording request times
- Sample HTML pages (season per-game page, player game log pages)
- Sample raw and cleaned game log frames

Example:
    def test_something(fake_session, per_game_html):
        fake_session.add_page(url, per_game_html)
        ...
"""
from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Generator

import pandas as pd
import pytest

from nba_fantasy.config import Settings, reset_settings
from nba_fantasy.data.fetcher import HtmlTableClient
from nba_fantasy.types import PlayerRecord


# =============================================================================
# Fake HTTP
# =============================================================================


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int, content: bytes) -> None:
        self.status_code = status_code
        self.content = content


class FakeSession:
    """Serves canned pages by URL and records every request.

    Unknown URLs answer 404. A page may be given a list of statuses to
    return on successive requests before succeeding.
    """

    def __init__(self) -> None:
        self.pages: dict[str, str] = {}
        self.failures: dict[str, list[int | Exception]] = {}
        self.calls: list[tuple[str, float]] = []
        self.kwargs: list[dict] = []

    def add_page(self, url: str, html: str) -> None:
        self.pages[url] = html

    def fail(self, url: str, *outcomes: int | Exception) -> None:
        self.failures[url] = list(outcomes)

    def get(self, url: str, **kwargs: object) -> FakeResponse:
        self.calls.append((url, time.monotonic()))
        self.kwargs.append(kwargs)

        pending = self.failures.get(url)
        if pending:
            outcome = pending.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return FakeResponse(outcome, b"")

        if url not in self.pages:
            return FakeResponse(404, b"Not Found")
        return FakeResponse(200, self.pages[url].encode("utf-8"))

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


@pytest.fixture
def fake_session() -> FakeSession:
    """Return an empty fake HTTP session."""
    return FakeSession()


@pytest.fixture
def client(test_settings: Settings, fake_session: FakeSession) -> HtmlTableClient:
    """HTML table client using test settings and the fake session."""
    return HtmlTableClient(session=fake_session)


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """Create and return temporary data directory."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def test_settings(
    tmp_data_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[Settings, None, None]:
    """Provide fast test settings with temporary directories.

    Requests are not paced or backed off, and the game log table is the
    second table on the page. Automatically resets the settings singleton.
    """
    monkeypatch.setenv("NBA_FANTASY_REQUEST_DELAY", "0")
    monkeypatch.setenv("NBA_FANTASY_RETRY_BACKOFF", "0")
    monkeypatch.setenv("NBA_FANTASY_MAX_RETRIES", "1")
    monkeypatch.setenv("NBA_FANTASY_GAMELOG_TABLE_INDEX", "1")
    monkeypatch.setenv("NBA_FANTASY_OUTPUT_DIR", str(tmp_data_dir / "output"))
    monkeypatch.setenv("NBA_FANTASY_CHECKPOINT_DIR", str(tmp_data_dir / "checkpoints"))
    monkeypatch.setenv("LOG_DIR", str(tmp_data_dir / "logs"))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    reset_settings()
    from nba_fantasy.config import get_settings

    settings = get_settings()
    settings.ensure_directories()

    yield settings

    reset_settings()


# =============================================================================
# HTML Pages
# =============================================================================

GAMELOG_HEADER = [
    "Rk", "G", "Date", "Age", "Tm", "", "Opp", "", "GS", "MP",
    "FG", "FGA", "FG%", "3P", "3PA", "3P%", "FT", "FTA", "FT%",
    "ORB", "DRB", "TRB", "AST", "STL", "BLK", "TOV", "PF", "PTS",
]
# Cells from GS to PTS, which a "did not play" reason spans
STAT_SPAN = len(GAMELOG_HEADER) - GAMELOG_HEADER.index("GS")


def _cells(values: list[str], tag: str = "td") -> str:
    return "".join(f"<{tag}>{v}</{tag}>" for v in values)


def _played_row(rk: int, game: int, stats: dict[str, float | int]) -> str:
    """A played game; stats default to 0 when not given."""
    prefix = [str(rk), str(game), f"2018-10-{10 + rk:02d}", "30-100", "HOU", "@", "NOP", "W (+5)"]
    stat_values = []
    for col in GAMELOG_HEADER[GAMELOG_HEADER.index("GS"):]:
        if col == "MP":
            stat_values.append("34:12")
        elif col.endswith("%"):
            stat_values.append(".500")
        else:
            stat_values.append(str(stats.get(col, 0)))
    return f"<tr>{_cells(prefix)}{_cells(stat_values)}</tr>"


def _unplayed_row(rk: int, reason: str) -> str:
    prefix = [str(rk), "", f"2018-10-{10 + rk:02d}", "30-100", "HOU", "", "UTA", "L (-3)"]
    return f'<tr>{_cells(prefix)}<td colspan="{STAT_SPAN}">{reason}</td></tr>'


def gamelog_page(games: list[dict | str], leading_tables: int = 1) -> str:
    """Build a game log page.

    Args:
        games: Stats dict for a played game, or a reason string for an
            unplayed one.
        leading_tables: Unrelated tables placed before the game log table.
    """
    rows = []
    game_number = 0
    for rk, game in enumerate(games, start=1):
        if isinstance(game, str):
            rows.append(_unplayed_row(rk, game))
        else:
            game_number += 1
            rows.append(_played_row(rk, game_number, game))
        if rk == 2:
            rows.append(f'<tr class="thead">{_cells(GAMELOG_HEADER, "th")}</tr>')

    filler = "<table><tr><th>Season</th></tr><tr><td>2018-19</td></tr></table>"
    return (
        "<html><body>"
        + filler * leading_tables
        + '<table id="pgl_basic">'
        + f"<thead><tr>{_cells(GAMELOG_HEADER, 'th')}</tr></thead>"
        + f"<tbody>{''.join(rows)}</tbody>"
        + f"<tfoot><tr>{_cells(['', 'Totals'])}</tr></tfoot>"
        + "</table></body></html>"
    )


PER_GAME_HEADER = ["Rk", "Player", "Age", "Tm", "Pos", "G", "GS", "MP", "PTS"]


def _player_row(rk: str, name: str, player_id: str | None, values: list[str]) -> str:
    if player_id is None:
        name_cell = f"<td>{name}</td>"
    else:
        href = f"/players/{player_id[0]}/{player_id}.html"
        name_cell = f'<td><a href="{href}">{name}</a></td>'
    team_cell = f'<td><a href="/teams/{values[1]}/2019.html">{values[1]}</a></td>'
    return (
        f"<tr><th>{rk}</th>{name_cell}<td>{values[0]}</td>{team_cell}"
        f"{_cells(values[2:])}</tr>"
    )


@pytest.fixture
def per_game_html() -> str:
    """A season per-game page.

    Contains: four regular players, one low-minutes player, a traded player
    listed three times, a repeated header row, a same-name artifact row with
    no age and a league average row without a player link.
    """
    rows = [
        _player_row("1", "Steven Adams", "adamsst01", ["25", "OKC", "C", "80", "80", "33.4", "13.9"]),
        _player_row("2", "LeBron James*", "jamesle01", ["34", "LAL", "SF", "55", "55", "35.2", "27.4"]),
        f'<tr class="thead">{_cells(PER_GAME_HEADER, "th")}</tr>',
        _player_row("3", "James Harden", "hardeja01", ["29", "HOU", "PG", "78", "78", "36.8", "36.1"]),
        _player_row("4", "Bench Guy", "benchgu01", ["24", "MIL", "SG", "20", "0", "12.0", "4.0"]),
        _player_row("5", "Traded Player", "tradepl01", ["28", "TOT", "PF", "60", "60", "30.0", "15.0"]),
        _player_row("5", "Traded Player", "tradepl01", ["28", "ATL", "PF", "30", "30", "29.0", "14.0"]),
        _player_row("5", "Traded Player", "tradepl01", ["28", "BOS", "PF", "30", "30", "31.0", "16.0"]),
        _player_row("6", "Marcus Morris", "morrima03", ["", "BOS", "PF", "75", "53", "27.9", "13.9"]),
        _player_row("7", "Marcus Morris", "morrima02", ["29", "BOS", "PF", "75", "53", "27.9", "13.9"]),
        _player_row("", "League Average", None, ["", "", "", "", "", "", ""]),
    ]
    return (
        "<html><body>"
        '<table id="per_game_stats">'
        f"<thead><tr>{_cells(PER_GAME_HEADER, 'th')}</tr></thead>"
        f"<tbody>{''.join(rows)}</tbody>"
        "</table>"
        "<table><tr><th>Other</th></tr><tr><td>x</td></tr></table>"
        "</body></html>"
    )


@pytest.fixture
def make_gamelog_page() -> Callable[..., str]:
    """Return the game log page builder."""
    return gamelog_page


# =============================================================================
# Sample Data
# =============================================================================


@pytest.fixture
def sample_directory() -> list[PlayerRecord]:
    """Return a small player directory."""
    return [
        PlayerRecord("hardeja01", "James Harden", "PG", 36.8),
        PlayerRecord("jamesle01", "LeBron James", "SF", 35.2),
    ]


def _raw_row(player_id: str, rk: str, stats: dict[str, str] | str) -> dict[str, str]:
    """One raw game log row; a string marks a spanned "did not play" reason."""
    row = {"player_id": player_id, "Rk": rk, "Date": f"2018-10-{10 + int(rk):02d}", "Opp": "NOP"}
    for col in GAMELOG_HEADER[GAMELOG_HEADER.index("GS"):]:
        row[col] = stats if isinstance(stats, str) else stats.get(col, "0")
    return row


@pytest.fixture
def raw_gamelogs() -> pd.DataFrame:
    """Raw merged game logs for two players, all text.

    jamesle01: triple double, ordinary game, inactive game.
    hardeja01: quadruple double, did-not-dress game.
    """
    rows = [
        _raw_row("jamesle01", "1", {
            "GS": "1", "FG": "10", "FGA": "20", "3P": "2", "3PA": "6",
            "FT": "3", "FTA": "4", "TRB": "12", "AST": "11", "STL": "1",
            "BLK": "0", "TOV": "4", "PTS": "25",
        }),
        _raw_row("jamesle01", "2", {
            "GS": "1", "FG": "8", "FGA": "15", "3P": "1", "3PA": "4",
            "FT": "2", "FTA": "2", "TRB": "6", "AST": "7", "STL": "2",
            "BLK": "1", "TOV": "3", "PTS": "19",
        }),
        _raw_row("jamesle01", "3", "Inactive"),
        _raw_row("hardeja01", "1", {
            "GS": "1", "FG": "12", "FGA": "25", "3P": "5", "3PA": "12",
            "FT": "11", "FTA": "12", "TRB": "10", "AST": "12", "STL": "10",
            "BLK": "1", "TOV": "6", "PTS": "40",
        }),
        _raw_row("hardeja01", "2", "Did Not Dress"),
    ]
    return pd.DataFrame(rows).astype(str)
