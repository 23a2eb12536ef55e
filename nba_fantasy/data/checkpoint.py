"""Checkpoint management for resumable game log aggregation.

Aggregating a full season takes one paced request per player, which adds
up to tens of minutes. A checkpoint records which players are done (or were
skipped) together with the rows collected so far, so an interrupted run can
resume instead of starting over.

Example:
    >>> from nba_fantasy.data.checkpoint import CheckpointManager, Checkpoint
    >>> manager = CheckpointManager()
    >>> checkpoint = Checkpoint(pipeline_name="gamelogs_2019", season=2019)
    >>> manager.save(checkpoint, rows)
    >>> loaded = manager.load("gamelogs_2019")
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path

import pandas as pd

from nba_fantasy.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class Checkpoint:
    """Represents aggregation progress.

    Attributes:
        pipeline_name: Unique identifier for the run.
        season: Season being aggregated.
        processed_ids: Players whose game logs were collected.
        skipped: [player_id, reason] pairs for players that failed.
        status: Current status ('running', 'completed', 'failed').
        last_updated: Timestamp of last update.
        error_message: Error message if status is 'failed'.
    """

    pipeline_name: str
    season: int | None = None
    processed_ids: list[str] = field(default_factory=list)
    skipped: list[list[str]] = field(default_factory=list)
    status: str = "running"
    last_updated: datetime = field(default_factory=datetime.now)
    error_message: str | None = None

    def to_dict(self) -> dict:
        """Convert checkpoint to dictionary for serialization."""
        data = asdict(self)
        data["last_updated"] = self.last_updated.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Checkpoint:
        """Create checkpoint from dictionary.

        Args:
            data: Dictionary with checkpoint fields.

        Returns:
            Checkpoint instance.
        """
        data = dict(data)
        if isinstance(data.get("last_updated"), str):
            data["last_updated"] = datetime.fromisoformat(data["last_updated"])
        return cls(**data)


class CheckpointManager:
    """Stores checkpoints as JSON files with the collected rows as CSV beside them.

    Attributes:
        storage_path: Path to checkpoint storage directory.
    """

    def __init__(self, storage_path: Path | None = None) -> None:
        """Initialize checkpoint manager.

        Args:
            storage_path: Directory for checkpoint files. Defaults to the
                configured checkpoint directory.
        """
        if storage_path is None:
            storage_path = get_settings().checkpoint_dir_obj

        self.storage_path = Path(storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)

        logger.debug(f"CheckpointManager initialized: {self.storage_path}")

    def _safe_name(self, pipeline_name: str) -> str:
        return pipeline_name.replace("/", "_").replace("\\", "_")

    def _get_checkpoint_path(self, pipeline_name: str) -> Path:
        return self.storage_path / f"{self._safe_name(pipeline_name)}.json"

    def _get_rows_path(self, pipeline_name: str) -> Path:
        return self.storage_path / f"{self._safe_name(pipeline_name)}_rows.csv"

    def save(self, checkpoint: Checkpoint, rows: pd.DataFrame | None = None) -> None:
        """Save checkpoint state, and the rows collected so far if given.

        Args:
            checkpoint: Checkpoint to save.
            rows: Accumulated raw game log rows.
        """
        checkpoint.last_updated = datetime.now()
        path = self._get_checkpoint_path(checkpoint.pipeline_name)

        if rows is not None:
            rows.to_csv(self._get_rows_path(checkpoint.pipeline_name), index=False)

        with open(path, "w") as f:
            json.dump(checkpoint.to_dict(), f, indent=2)
        logger.debug(
            f"Saved checkpoint for {checkpoint.pipeline_name}: "
            f"{len(checkpoint.processed_ids)} processed, "
            f"{len(checkpoint.skipped)} skipped"
        )

    def load(self, pipeline_name: str) -> Checkpoint | None:
        """Load checkpoint for a run.

        Returns:
            Checkpoint if found and readable, None otherwise.
        """
        path = self._get_checkpoint_path(pipeline_name)

        if not path.exists():
            logger.debug(f"No checkpoint found for {pipeline_name}")
            return None

        try:
            with open(path) as f:
                data = json.load(f)
            checkpoint = Checkpoint.from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to load checkpoint for {pipeline_name}: {e}")
            return None

        logger.debug(
            f"Loaded checkpoint for {pipeline_name}: "
            f"{len(checkpoint.processed_ids)} processed, status={checkpoint.status}"
        )
        return checkpoint

    def load_rows(self, pipeline_name: str) -> pd.DataFrame | None:
        """Load the rows saved with a checkpoint, every cell as a string."""
        path = self._get_rows_path(pipeline_name)
        if not path.exists():
            return None
        return pd.read_csv(path, dtype=str, keep_default_na=False)

    def clear(self, pipeline_name: str) -> None:
        """Remove a run's checkpoint and rows (for a fresh start)."""
        removed = False
        for path in (
            self._get_checkpoint_path(pipeline_name),
            self._get_rows_path(pipeline_name),
        ):
            if path.exists():
                path.unlink()
                removed = True

        if removed:
            logger.info(f"Cleared checkpoint for {pipeline_name}")
        else:
            logger.debug(f"No checkpoint to clear for {pipeline_name}")

    def list_all(self) -> list[Checkpoint]:
        """List all checkpoints, most recently updated first."""
        checkpoints = []
        for path in self.storage_path.glob("*.json"):
            try:
                with open(path) as f:
                    checkpoints.append(Checkpoint.from_dict(json.load(f)))
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Failed to load checkpoint from {path}: {e}")

        checkpoints.sort(key=lambda c: c.last_updated, reverse=True)
        return checkpoints
