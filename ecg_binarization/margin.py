"""Left margin detection and trimming for ink masks."""

import numpy as np
from typing import Optional, Tuple

from .config import get_config


def find_left_margin(mask: np.ndarray, min_column_ink: Optional[int] = None) -> int:
    """
    Find the first column containing at least `min_column_ink` ink pixels.

    Args:
        mask: Boolean ink mask (H, W)
        min_column_ink: Ink count marking content start

    Returns:
        Column index where content starts, or 0 if no column qualifies
    """
    if min_column_ink is None:
        min_column_ink = get_config().margin.min_column_ink

    counts = np.count_nonzero(mask, axis=0)
    columns = np.flatnonzero(counts >= min_column_ink)

    if columns.size == 0:
        return 0

    return int(columns[0])


def trim_left_margin(
    mask: np.ndarray,
    min_column_ink: Optional[int] = None
) -> Tuple[np.ndarray, int]:
    """
    Crop the empty left margin of a mask.

    Args:
        mask: Boolean ink mask (H, W)
        min_column_ink: Ink count marking content start

    Returns:
        (trimmed read-only mask, margin width)
    """
    margin = find_left_margin(mask, min_column_ink)

    if margin == 0:
        return mask, 0

    trimmed = np.array(mask[:, margin:], dtype=bool)
    trimmed.flags.writeable = False

    return trimmed, margin
