"""
Horizontal separator detection.

Finds the whitespace bands between the rows of an ECG strip and places one
cut line inside each of them.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import get_config
from .convergence import converge, target_range, TOO_FEW, TOO_MANY
from .exceptions import SeparatorDetectionFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchThresholds:
    """Cooperating thresholds of the separator search."""

    row_threshold: float
    min_block_height: float


def find_runs(flags: np.ndarray) -> List[Tuple[int, int]]:
    """
    Find runs of consecutive True values.

    Args:
        flags: 1D boolean array

    Returns:
        List of (start, end) pairs, end inclusive
    """
    padded = np.concatenate(([0], np.asarray(flags, dtype=np.int8), [0]))
    edges = np.diff(padded)
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1) - 1

    return [(int(s), int(e)) for s, e in zip(starts, ends)]


class SeparatorFinder:
    """Adaptive finder of the horizontal whitespace bands of an ECG strip."""

    def __init__(self, config=None):
        """
        Initialize the separator finder.

        Args:
            config: Configuration object. If None, uses default config.
        """
        self.config = config or get_config()
        self.sep_config = self.config.separators

    def find_blocks(
        self,
        row_counts: np.ndarray,
        thresholds: SearchThresholds
    ) -> List[Tuple[int, int]]:
        """
        Find whitespace blocks for one threshold setting.

        Args:
            row_counts: Ink pixels per row
            thresholds: Current search thresholds

        Returns:
            Retained (start, end) blocks, top to bottom
        """
        sparse = row_counts < thresholds.row_threshold

        return [
            (start, end) for start, end in find_runs(sparse)
            if end - start + 1 >= thresholds.min_block_height
        ]

    def _adjust(self, width: int, height: int):
        cfg = self.sep_config

        def adjust(thresholds: SearchThresholds, direction: int) -> Optional[SearchThresholds]:
            if direction == TOO_MANY:
                # Nothing can be retained once blocks must be taller than the mask
                if thresholds.min_block_height > height:
                    return None
                return SearchThresholds(
                    row_threshold=thresholds.row_threshold * cfg.tighten_row_factor,
                    min_block_height=thresholds.min_block_height * cfg.tighten_block_factor,
                )

            if direction == TOO_FEW:
                # Every row is already sparse
                if thresholds.row_threshold > width:
                    return None
                return SearchThresholds(
                    row_threshold=thresholds.row_threshold * cfg.relax_row_factor,
                    min_block_height=thresholds.min_block_height * cfg.relax_block_factor,
                )

            return thresholds

        return adjust

    def cut_lines(self, blocks: List[Tuple[int, int]]) -> List[int]:
        """
        Place one cut line inside each block.

        The first cut sits at `first_cut_ratio` of its block, the last at
        `last_cut_ratio`, the others at `inner_cut_ratio`, so the outer cuts
        lean away from header and footer content.

        Args:
            blocks: Whitespace blocks, top to bottom

        Returns:
            Cut y-coordinates, sorted ascending
        """
        cfg = self.sep_config
        last = len(blocks) - 1
        lines = []

        for i, (start, end) in enumerate(blocks):
            block_height = end - start + 1

            if i == 0:
                ratio = cfg.first_cut_ratio
            elif i == last:
                ratio = cfg.last_cut_ratio
            else:
                ratio = cfg.inner_cut_ratio

            lines.append(int(start + ratio * block_height))

        return sorted(lines)

    def find_separators(self, mask: np.ndarray) -> List[int]:
        """
        Find the separator cut lines of an ink mask.

        Args:
            mask: Boolean ink mask (H, W)

        Returns:
            `num_separators` ascending y-coordinates

        Raises:
            SeparatorDetectionFailure: If the search is exhausted without
                finding exactly `num_separators` blocks
        """
        cfg = self.sep_config
        height, width = mask.shape
        row_counts = np.count_nonzero(mask, axis=1)

        result = converge(
            initial=SearchThresholds(
                row_threshold=width * cfg.row_threshold_ratio,
                min_block_height=height * cfg.min_block_height_ratio,
            ),
            evaluate=lambda thresholds: self.find_blocks(row_counts, thresholds),
            count=len,
            classify=target_range(cfg.num_separators, cfg.num_separators),
            adjust=self._adjust(width, height),
            max_iterations=cfg.max_iterations,
            name="separators"
        )

        if not result.converged:
            raise SeparatorDetectionFailure(
                f"Expected {cfg.num_separators} whitespace blocks, "
                f"found {result.count} after {result.iterations} iterations",
                iterations=result.iterations,
                count=result.count,
            )

        return self.cut_lines(result.features)

    def find(self, mask: np.ndarray) -> Optional[List[int]]:
        """
        Like find_separators, but returns None when detection fails.

        Args:
            mask: Boolean ink mask (H, W)

        Returns:
            Sorted cut lines, or None
        """
        try:
            return self.find_separators(mask)
        except SeparatorDetectionFailure as e:
            logger.warning("Separator detection failed: %s", e)
            return None


def find_separators(mask: np.ndarray, config=None) -> Optional[List[int]]:
    """
    Convenience function to find separators, None on failure.

    Args:
        mask: Boolean ink mask
        config: Configuration object

    Returns:
        Sorted cut lines, or None
    """
    finder = SeparatorFinder(config)
    return finder.find(mask)
