"""Integration tests for the season pipeline.

Tests a full run against a fake site: directory, aggregation, cleaning,
scoring, export, rescoring of the exported table and resuming an
interrupted run from its checkpoint.
"""
from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pandas as pd
import pytest
from loguru import logger
from typer.testing import CliRunner

from nba_fantasy.cli import app
from nba_fantasy.config import Settings
from nba_fantasy.data.checkpoint import CheckpointManager
from nba_fantasy.data.fetcher import HtmlTableClient
from nba_fantasy.data.pipelines import FantasyPipeline, PipelineStatus
from nba_fantasy.output import export_frames, export_summary

SITE = "https://www.basketball-reference.com"
PER_GAME_URL = f"{SITE}/leagues/NBA_2019_per_game.html"

GAMES = {
    "adamsst01": [
        {"GS": 1, "FG": 6, "FGA": 10, "PTS": 14, "TRB": 10, "BLK": 2},
        "Inactive",
        {"GS": 1, "FG": 4, "FGA": 9, "PTS": 9, "TRB": 8},
    ],
    "hardeja01": [
        {"GS": 1, "FG": 12, "FGA": 25, "3P": 5, "3PA": 12, "FT": 11, "FTA": 12,
         "PTS": 40, "TRB": 10, "AST": 12, "STL": 10, "TOV": 6},
        {"GS": 1, "FG": 10, "FGA": 22, "PTS": 30, "AST": 8, "TOV": 5},
        "Did Not Dress",
    ],
    "jamesle01": ["Inactive", "Inactive", "Inactive"],
    "morrima02": [{"GS": 0, "FG": 5, "FGA": 11, "PTS": 12, "TRB": 7}],
    "tradepl01": [{"GS": 1, "FG": 6, "FGA": 13, "PTS": 15}, "Not With Team"],
}


def gamelog_url(player_id: str) -> str:
    return f"{SITE}/players/{player_id[0]}/{player_id}/gamelog/2019"


@pytest.fixture
def site(fake_session, per_game_html: str, make_gamelog_page):
    """Fake site serving the per-game page and every game log page."""
    fake_session.add_page(PER_GAME_URL, per_game_html)
    for player_id, games in GAMES.items():
        fake_session.add_page(gamelog_url(player_id), make_gamelog_page(games))
    return fake_session


@pytest.fixture
def checkpoints(test_settings: Settings) -> CheckpointManager:
    return CheckpointManager(test_settings.checkpoint_dir_obj)


class TestFullRun:
    """A clean season run."""

    def test_every_directory_player_summarized(
        self, client: HtmlTableClient, test_settings: Settings, site, checkpoints
    ) -> None:
        result = FantasyPipeline(client, test_settings, checkpoints).run(season=2019)

        assert result.status == PipelineStatus.COMPLETED
        assert result.skipped == []
        assert sorted(result.summary["player_id"]) == sorted(GAMES)
        assert len(result.cleaned) == sum(len(g) for g in GAMES.values())

    def test_summary_matches_games(
        self, client: HtmlTableClient, test_settings: Settings, site, checkpoints
    ) -> None:
        result = FantasyPipeline(client, test_settings, checkpoints).run(
            season=2019, multipliers={"PTS": 1, "GP": 1}
        )
        summary = result.summary.set_index("player_id")

        # 14 + 1, 0, 9 + 1
        assert summary.loc["adamsst01", "season_total_score"] == 25.0
        assert summary.loc["adamsst01", "season_median"] == 10.0
        assert summary.loc["adamsst01", "games_played_median"] == 12.5
        assert summary.loc["jamesle01", "n_games_played"] == 0
        assert pd.isna(summary.loc["jamesle01", "games_played_median"])
        assert summary.loc["hardeja01", "position"] == "PG"

    def test_export_then_rescore_matches(
        self,
        client: HtmlTableClient,
        test_settings: Settings,
        site,
        checkpoints,
        tmp_path: Path,
    ) -> None:
        """Scoring an exported cleaned table reproduces the run's totals."""
        result = FantasyPipeline(client, test_settings, checkpoints).run(season=2019)
        export_frames({"cleaned": result.cleaned}, tmp_path, 2019)
        export_summary(result.summary, tmp_path / "summary_2019.csv")

        runner = CliRunner()
        rescored_path = tmp_path / "rescored.csv"
        outcome = runner.invoke(
            app, ["rescore", str(tmp_path / "cleaned_2019.csv"), "-o", str(rescored_path)]
        )
        logger.remove()

        assert outcome.exit_code == 0, outcome.output
        original = pd.read_csv(tmp_path / "summary_2019.csv").set_index("player_id")
        rescored = pd.read_csv(rescored_path).set_index("player_id")
        pd.testing.assert_series_equal(
            original["season_total_score"].sort_index(),
            rescored["season_total_score"].sort_index(),
        )


class TestSkippedPlayers:
    def test_unavailable_player_skipped(
        self, client: HtmlTableClient, test_settings: Settings, site, checkpoints
    ) -> None:
        site.fail(gamelog_url("morrima02"), 503, 503)

        result = FantasyPipeline(client, test_settings, checkpoints).run(season=2019)

        assert result.status == PipelineStatus.COMPLETED
        assert [pid for pid, _ in result.skipped] == ["morrima02"]
        assert "morrima02" not in result.summary["player_id"].tolist()
        assert result.players_aggregated == 4


class TestResume:
    def test_interrupted_run_resumes(
        self, client: HtmlTableClient, test_settings: Settings, site, checkpoints
    ) -> None:
        site.fail(gamelog_url("jamesle01"), RuntimeError("connection dropped"))
        pipeline = FantasyPipeline(client, test_settings, checkpoints)

        with pytest.raises(RuntimeError, match="connection dropped"):
            pipeline.run(season=2019)

        assert checkpoints.load("gamelogs_2019").processed_ids == [
            "adamsst01",
            "hardeja01",
        ]

        site.calls.clear()
        result = pipeline.run(season=2019)

        fetched = [url for url in site.urls if url != PER_GAME_URL]
        assert fetched == [
            gamelog_url("jamesle01"),
            gamelog_url("morrima02"),
            gamelog_url("tradepl01"),
        ]
        assert sorted(result.summary["player_id"]) == sorted(GAMES)
        assert len(result.raw) == sum(len(g) for g in GAMES.values())


class TestCommandLine:
    def test_run_command_end_to_end(
        self, test_settings: Settings, site, fake_session
    ) -> None:
        def make_client(**kwargs):
            return HtmlTableClient(session=fake_session, **kwargs)

        runner = CliRunner()
        with patch("nba_fantasy.data.HtmlTableClient", side_effect=make_client):
            outcome = runner.invoke(app, ["run", "--season", "2019", "--save-intermediate"])
        logger.remove()

        assert outcome.exit_code == 0, outcome.output
        output_dir = test_settings.output_dir_obj
        summary = pd.read_csv(output_dir / "summary_2019.csv")
        assert sorted(summary["player_id"]) == sorted(GAMES)
        assert (output_dir / "raw_2019.csv").exists()
        assert (output_dir / "cleaned_2019.csv").exists()
