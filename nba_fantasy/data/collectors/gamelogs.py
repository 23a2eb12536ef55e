"""Game log collector.

This module fetches every directory player's regular season game log and
merges them into one raw table. Rows stay text at this stage: played and
unplayed games carry different cell contents and are reconciled by the
cleaner.

Requests are sequential. The shared HtmlTableClient paces them, so a run
over N players takes at least (N - 1) * request_delay seconds.

Example:
    >>> from nba_fantasy.data.collectors import GameLogCollector
    >>> collector = GameLogCollector(client)
    >>> result = collector.aggregate_gamelogs(["hardeja01", "jamesle01"], 2019)
    >>> result.frame.head()
    >>> result.skipped
    []
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Sequence

import pandas as pd

from nba_fantasy.data.collectors.base import BaseCollector
from nba_fantasy.data.fetcher import drop_header_rows
from nba_fantasy.exceptions import FetchError, ParseError
from nba_fantasy.logging import SUCCESS, WARN

if TYPE_CHECKING:
    from nba_fantasy.config import Settings
    from nba_fantasy.data.checkpoint import Checkpoint, CheckpointManager
    from nba_fantasy.data.fetcher import HtmlTableClient

GAMELOG_PATH = "players/{letter}/{player_id}/gamelog/{season}"

# Columns that identify the regular season game log table
GAMELOG_COLUMNS = ["Rk", "GS"]


@dataclass
class AggregationResult:
    """Outcome of a game log aggregation.

    Attributes:
        frame: Merged raw game logs, ``player_id`` first, all cells text.
        attempted: Number of players requested.
        succeeded: Players whose game logs are in ``frame``, in order.
        skipped: (player_id, reason) for players that failed.
    """

    frame: pd.DataFrame
    attempted: int = 0
    succeeded: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)

    @property
    def skipped_ids(self) -> list[str]:
        """Ids of the skipped players."""
        return [player_id for player_id, _ in self.skipped]


def merge_gamelogs(frames: Sequence[pd.DataFrame]) -> pd.DataFrame:
    """Concatenate per-player game logs, preserving order, as text.

    Columns present for only some players are filled with empty strings.
    """
    frames = [f for f in frames if not f.empty]
    if not frames:
        return pd.DataFrame(columns=["player_id"])
    return pd.concat(frames, ignore_index=True).fillna("").astype(str)


class GameLogCollector(BaseCollector):
    """Collects and merges per-player game logs for a season.

    Attributes:
        checkpoint: Optional checkpoint storage for resumable runs.
    """

    def __init__(
        self,
        client: HtmlTableClient,
        settings: Settings | None = None,
        checkpoint_manager: CheckpointManager | None = None,
    ) -> None:
        """Initialize collector.

        Args:
            client: HTML table client used for every request.
            settings: Optional settings, the global settings if omitted.
            checkpoint_manager: Enables checkpointing after every player.
        """
        super().__init__(client, settings)
        self.checkpoint = checkpoint_manager

    def collect(self, season: int, player_ids: Sequence[str] = ()) -> AggregationResult:
        """Alias of :meth:`aggregate_gamelogs`."""
        return self.aggregate_gamelogs(player_ids, season)

    def gamelog_url(self, player_id: str, season: int) -> str:
        """URL of a player's game log page for a season."""
        return self.url(
            GAMELOG_PATH.format(
                letter=player_id[0], player_id=player_id, season=season
            )
        )

    def collect_player(self, player_id: str, season: int) -> pd.DataFrame:
        """Fetch one player's game log.

        Args:
            player_id: Site player identifier.
            season: Season ending year.

        Returns:
            Game log rows as text with ``player_id`` as the first column and
            repeated header rows removed.

        Raises:
            FetchError: If the page cannot be retrieved.
            ParseError: If the game log table is missing or malformed.
        """
        table = self.client.fetch_table(
            self.gamelog_url(player_id, season),
            table_index=self.settings.gamelog_table_index,
            expected_columns=GAMELOG_COLUMNS,
        )
        rows = drop_header_rows(table).astype(str)
        rows.insert(0, "player_id", player_id)
        return rows

    def aggregate_gamelogs(
        self,
        player_ids: Sequence[str],
        season: int,
        on_error: Literal["raise", "skip", "log"] = "log",
        resume: bool = False,
    ) -> AggregationResult:
        """Collect and merge game logs for ``player_ids`` in order.

        A player whose page cannot be fetched or parsed is recorded in
        ``skipped`` and the run continues, unless ``on_error`` is "raise".

        Args:
            player_ids: Players to collect, in request order.
            season: Season ending year.
            on_error: Strategy for per-player fetch and parse failures.
            resume: Continue from this season's checkpoint if one exists.
                Checkpointed players absent from ``player_ids`` are dropped.

        Returns:
            AggregationResult with the merged frame and per-player outcome.
        """
        pipeline_name = f"gamelogs_{season}"
        frames: list[pd.DataFrame] = []
        succeeded: list[str] = []
        skipped: list[tuple[str, str]] = []
        done: set[str] = set()

        checkpoint = self._start_checkpoint(pipeline_name, season, resume)
        if checkpoint is not None and checkpoint.processed_ids:
            # Players dropped from the directory since the checkpoint are discarded
            wanted = set(player_ids)
            kept = [pid for pid in checkpoint.processed_ids if pid in wanted]
            if len(kept) < len(checkpoint.processed_ids):
                self.logger.info(
                    f"Discarding {len(checkpoint.processed_ids) - len(kept)} "
                    f"checkpointed players not requested in this run"
                )
            restored = self.checkpoint.load_rows(pipeline_name)
            if restored is not None and not restored.empty:
                frames.append(restored[restored["player_id"].isin(kept)])
            succeeded.extend(kept)
            done = set(kept)
            self.logger.info(
                f"Resuming {pipeline_name}: {len(done)} players already collected"
            )

        total = len(player_ids)
        try:
            for i, player_id in enumerate(player_ids, start=1):
                if player_id in done:
                    continue
                self._log_progress(i, total, player_id)

                try:
                    rows = self.collect_player(player_id, season)
                except (FetchError, ParseError) as e:
                    skipped.append((player_id, str(e)))
                    self._handle_error(e, player_id, on_error)
                else:
                    frames.append(rows)
                    succeeded.append(player_id)
                    if rows.empty:
                        self.logger.warning(f"{WARN} {player_id} has no game rows")
                    else:
                        self.logger.info(
                            f"{SUCCESS} {player_id} aggregated ({len(rows)} rows)"
                        )

                if checkpoint is not None:
                    checkpoint.processed_ids = list(succeeded)
                    checkpoint.skipped = [[pid, reason] for pid, reason in skipped]
                    self.checkpoint.save(checkpoint, merge_gamelogs(frames))
        except Exception as e:
            if checkpoint is not None:
                checkpoint.status = "failed"
                checkpoint.error_message = str(e)
                self.checkpoint.save(checkpoint)
            raise

        if checkpoint is not None:
            checkpoint.status = "completed"
            self.checkpoint.save(checkpoint)

        merged = merge_gamelogs(frames)
        self.logger.info(
            f"Aggregated {len(succeeded)}/{total} players "
            f"({len(merged)} rows, {len(skipped)} skipped)"
        )
        return AggregationResult(
            frame=merged,
            attempted=total,
            succeeded=succeeded,
            skipped=skipped,
        )

    def _start_checkpoint(
        self,
        pipeline_name: str,
        season: int,
        resume: bool,
    ) -> Checkpoint | None:
        """Load a resumable checkpoint or start a new one (None if disabled)."""
        if self.checkpoint is None:
            return None

        from nba_fantasy.data.checkpoint import Checkpoint

        if resume:
            existing = self.checkpoint.load(pipeline_name)
            if existing is not None and existing.status != "completed":
                return existing
            if existing is not None:
                self.logger.info("Previous run completed, starting fresh")

        self.checkpoint.clear(pipeline_name)
        checkpoint = Checkpoint(pipeline_name=pipeline_name, season=season)
        self.checkpoint.save(checkpoint)
        return checkpoint
