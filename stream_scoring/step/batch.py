# stream_scoring/step/batch.py
from __future__ import annotations

"""
BatchAccumulator

EMPTY -> FILLING on the first row, FILLING -> FLUSHING when the buffer
reaches batch_size (or at end of stream), FLUSHING -> EMPTY after drain().
"""

from enum import Enum
from typing import Any, List, Optional, Sequence, Union

from stream_scoring import logs
from stream_scoring.config.scoring_config import DEFAULT_BATCH_SCORING_SIZE


class BatchState(str, Enum):
    EMPTY = "empty"
    FILLING = "filling"
    FLUSHING = "flushing"


def _parse_size(raw: Union[int, str, None]) -> Optional[int]:
    if raw is None:
        return None
    try:
        size = int(str(raw).strip())
    except ValueError:
        return None
    return size if size >= 1 else None


def resolve_batch_size(
    configured: Union[int, str, None],
    preferred: Union[int, str, None] = None,
) -> int:
    """
    configured -> model preferred size -> DEFAULT_BATCH_SCORING_SIZE
    """
    size = _parse_size(configured)
    if size is not None:
        return size

    if configured not in (None, ""):
        logs.info(f"[BatchAccumulator] unable to parse batch size {configured!r}")

    size = _parse_size(preferred)
    if size is not None:
        logs.info(f"[BatchAccumulator] using the model's preferred batch size {size}")
        return size

    logs.info(f"[BatchAccumulator] using default batch size {DEFAULT_BATCH_SCORING_SIZE}")
    return DEFAULT_BATCH_SCORING_SIZE


class BatchAccumulator:
    def __init__(self, batch_size: int):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.batch_size = batch_size
        self._rows: List[Sequence[Any]] = []
        self.state = BatchState.EMPTY

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def pending(self) -> bool:
        return bool(self._rows)

    def add(self, row: Sequence[Any]) -> bool:
        """Buffer ``row``; True when the batch is full and must be flushed."""
        self._rows.append(row)
        if len(self._rows) >= self.batch_size:
            self.state = BatchState.FLUSHING
            return True
        self.state = BatchState.FILLING
        return False

    def drain(self) -> List[Sequence[Any]]:
        """Buffered rows in arrival order; the buffer is left empty."""
        self.state = BatchState.FLUSHING
        rows, self._rows = self._rows, []
        self.state = BatchState.EMPTY
        return rows
