"""CLI entrypoint using Typer.

This module defines the command-line interface for building a season's
fantasy dataset and inspecting its inputs.

Example:
    $ nba-fantasy --help
    $ nba-fantasy run --season 2019 --scoring league.json
    $ nba-fantasy directory --season 2019
    $ nba-fantasy rescore data/output/cleaned_2019.csv --scoring league.json
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from nba_fantasy import __version__
from nba_fantasy.config import get_settings
from nba_fantasy.exceptions import NBAFantasyError
from nba_fantasy.logging import setup_logging

# Initialize console for rich output
console = Console()

app = typer.Typer(
    name="nba-fantasy",
    help="NBA fantasy draft dataset builder",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]nba-fantasy[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-V",
            help="Enable verbose output",
        ),
    ] = False,
) -> None:
    """NBA fantasy draft dataset builder.

    Scrapes a season of game logs, scores them with your league's
    multipliers and summarizes every player.
    """
    settings = get_settings()
    log_level = "DEBUG" if verbose else settings.log_level
    setup_logging(level=log_level, log_dir=settings.log_dir_obj)


def _resolve_multipliers(scoring: Path | None) -> dict[str, float]:
    """Multipliers from --scoring, else the settings file, else the defaults."""
    from nba_fantasy.features.scoring import DEFAULT_MULTIPLIERS, load_multipliers

    settings = get_settings()
    if scoring is not None:
        return load_multipliers(scoring)
    if settings.scoring_path:
        return load_multipliers(settings.scoring_path)
    return dict(DEFAULT_MULTIPLIERS)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(1)


# =============================================================================
# Commands
# =============================================================================


@app.command("run")
def run(
    season: Annotated[
        int | None,
        typer.Option("--season", "-s", help="Season ending year (e.g., 2019)"),
    ] = None,
    min_minutes: Annotated[
        float | None,
        typer.Option("--min-minutes", "-m", help="Minimum average minutes"),
    ] = None,
    scoring: Annotated[
        Path | None,
        typer.Option("--scoring", help="JSON file of fantasy multipliers"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Summary CSV path"),
    ] = None,
    save_intermediate: Annotated[
        bool,
        typer.Option(
            "--save-intermediate",
            help="Also write the directory and the raw and cleaned game logs",
        ),
    ] = False,
    resume: Annotated[
        bool,
        typer.Option("--resume/--no-resume", help="Resume from checkpoint"),
    ] = True,
) -> None:
    """Build the season's per-player fantasy summary.

    Fetches the player directory and every player's game log, then cleans,
    scores and exports the result.
    """
    from nba_fantasy.data import (
        CheckpointManager,
        FantasyPipeline,
        HtmlTableClient,
        directory_frame,
    )
    from nba_fantasy.output import export_frames, export_summary

    settings = get_settings()
    settings.ensure_directories()
    season = season if season is not None else settings.season

    try:
        multipliers = _resolve_multipliers(scoring)
    except NBAFantasyError as e:
        _fail(e)

    console.print(
        Panel(
            f"[bold]Season:[/bold] {season}\n"
            f"[bold]Request delay:[/bold] {settings.request_delay}s\n"
            f"[bold]Resume:[/bold] {resume}",
            title="Fantasy Dataset",
        )
    )

    client = HtmlTableClient(
        delay=settings.request_delay,
        max_retries=settings.max_retries,
        timeout=settings.request_timeout,
        backoff=settings.retry_backoff,
    )
    pipeline = FantasyPipeline(
        client,
        settings=settings,
        checkpoint_manager=CheckpointManager(settings.checkpoint_dir_obj),
    )

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task("Collecting game logs...", total=None)
            result = pipeline.run(
                season=season,
                multipliers=multipliers,
                min_minutes=min_minutes,
                resume=resume,
            )
    except NBAFantasyError as e:
        _fail(e)

    summary_path = output or settings.output_dir_obj / f"summary_{season}.csv"
    export_summary(result.summary, summary_path)
    if save_intermediate:
        export_frames(
            {
                "directory": directory_frame(result.directory),
                "raw": result.raw,
                "cleaned": result.cleaned,
            },
            settings.output_dir_obj,
            season,
        )

    _display_pipeline_result(result)
    _display_summary(result.summary)
    console.print(f"\nSummary written to [cyan]{summary_path}[/cyan]")


@app.command("directory")
def directory(
    season: Annotated[
        int | None,
        typer.Option("--season", "-s", help="Season ending year (e.g., 2019)"),
    ] = None,
    min_minutes: Annotated[
        float | None,
        typer.Option("--min-minutes", "-m", help="Minimum average minutes"),
    ] = None,
) -> None:
    """Show the season's player directory."""
    from nba_fantasy.config import validate_run_config
    from nba_fantasy.data import DirectoryCollector, HtmlTableClient

    settings = get_settings()
    season = season if season is not None else settings.season
    threshold = min_minutes if min_minutes is not None else settings.min_minutes

    try:
        validate_run_config(season, threshold)
        players = DirectoryCollector(HtmlTableClient(), settings).build_directory(
            season, threshold
        )
    except NBAFantasyError as e:
        _fail(e)

    table = Table(title=f"Player Directory {season} (MP > {threshold})")
    table.add_column("Player ID", style="cyan")
    table.add_column("Name")
    table.add_column("Pos")
    table.add_column("MP", justify="right")

    for player in players:
        table.add_row(
            player.player_id,
            player.player_name,
            player.position,
            f"{player.minutes_played:.1f}",
        )

    console.print(table)
    console.print(f"{len(players)} players")


@app.command("rescore")
def rescore(
    cleaned_path: Annotated[
        Path,
        typer.Argument(help="Cleaned game log CSV from 'run --save-intermediate'"),
    ],
    scoring: Annotated[
        Path | None,
        typer.Option("--scoring", help="JSON file of fantasy multipliers"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Summary CSV path"),
    ] = None,
    directory: Annotated[
        Path | None,
        typer.Option(
            "--directory",
            "-d",
            help="Directory CSV from 'run --save-intermediate'",
        ),
    ] = None,
) -> None:
    """Score an exported cleaned game log table without fetching anything.

    Position and minutes come from the directory CSV; without one the
    summary carries only the names found in the cleaned table.
    """
    import pandas as pd

    from nba_fantasy.data.collectors.directory import DIRECTORY_COLUMNS
    from nba_fantasy.features.scoring import FantasyScorer
    from nba_fantasy.output import export_summary

    for path in (cleaned_path, directory):
        if path is not None and not path.exists():
            console.print(f"[red]Error: {escape(str(path))} not found[/red]")
            raise typer.Exit(1)

    players = None
    if directory is not None:
        players = pd.read_csv(directory, dtype={"player_id": str})
        missing = [col for col in DIRECTORY_COLUMNS if col not in players.columns]
        if missing:
            console.print(
                f"[red]Error: {escape(str(directory))} is missing columns: "
                f"{escape(str(missing))}[/red]"
            )
            raise typer.Exit(1)

    cleaned = pd.read_csv(cleaned_path)
    try:
        scorer = FantasyScorer(_resolve_multipliers(scoring))
        games = scorer.score_games(cleaned)
        summary = scorer.summarize(games, players)
    except NBAFantasyError as e:
        _fail(e)

    if players is None and "player_name" in cleaned.columns:
        names = cleaned[["player_id", "player_name"]].drop_duplicates("player_id")
        summary = summary.merge(names, on="player_id", how="left")

    _display_summary(summary)
    if output is not None:
        export_summary(summary, output)
        console.print(f"\nSummary written to [cyan]{output}[/cyan]")


@app.command("scoring")
def scoring_show(
    scoring: Annotated[
        Path | None,
        typer.Option("--scoring", help="JSON file of fantasy multipliers"),
    ] = None,
) -> None:
    """Show the active fantasy multiplier table."""
    try:
        multipliers = _resolve_multipliers(scoring)
    except NBAFantasyError as e:
        _fail(e)

    table = Table(title="Fantasy Multipliers")
    table.add_column("Statistic", style="cyan")
    table.add_column("Multiplier", justify="right")
    for stat, value in multipliers.items():
        table.add_row(stat, f"{value:g}")
    console.print(table)


# =============================================================================
# Display Helpers
# =============================================================================


def _display_pipeline_result(result) -> None:
    """Display the run report: attempted, aggregated and skipped players."""
    from nba_fantasy.data.pipelines import PipelineStatus

    status_color = {
        PipelineStatus.COMPLETED: "green",
        PipelineStatus.FAILED: "red",
        PipelineStatus.RUNNING: "yellow",
        PipelineStatus.PENDING: "white",
    }.get(result.status, "white")

    console.print(f"\n[{status_color}]Status: {result.status.value}[/{status_color}]")
    console.print(f"Players attempted: {result.players_attempted}")
    console.print(f"Players aggregated: {result.players_aggregated}")
    console.print(f"Players skipped: {result.players_skipped}")
    console.print(f"Duration: {result.duration_seconds:.1f}s")

    if result.skipped:
        console.print(f"\n[red]Skipped ({len(result.skipped)}):[/red]")
        for player_id, reason in result.skipped[:10]:
            console.print(f"  - {player_id}: {escape(reason)}")
        if len(result.skipped) > 10:
            console.print(f"  ... and {len(result.skipped) - 10} more")


def _display_summary(summary, limit: int = 15) -> None:
    """Display the top of the summary table."""
    table = Table(title=f"Top {min(limit, len(summary))} by Season Median")
    table.add_column("Player", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("GP", justify="right")
    table.add_column("Season Median", justify="right")
    table.add_column("GP Median", justify="right")

    for _, row in summary.head(limit).iterrows():
        name = row.get("player_name")
        table.add_row(
            name if isinstance(name, str) else row["player_id"],
            f"{row['season_total_score']:.1f}",
            str(int(row["n_games_played"])),
            f"{row['season_median']:.1f}",
            f"{row['games_played_median']:.1f}",
        )

    console.print(table)
