"""Export of the fantasy dataset."""
from __future__ import annotations

from nba_fantasy.output.export import (
    VISUALIZATION_COLUMNS,
    export_frames,
    export_summary,
)

__all__ = ["VISUALIZATION_COLUMNS", "export_frames", "export_summary"]
