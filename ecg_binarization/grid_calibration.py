"""
Ruled grid calibration for ECG strip images.

This module detects the red ruled reference lines of the ECG paper in the
raw pixel grid and derives a pixel-to-grid calibration unit from their
spacing.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import get_config
from .convergence import converge, target_range, TOO_FEW, TOO_MANY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridCalibration:
    """Detected ruled lines and the derived calibration unit."""

    horizontal_lines: Tuple[int, ...]
    vertical_lines: Tuple[int, ...]
    red_threshold: int
    iterations: int
    converged: bool
    base_unit: int
    calibration_unit: int  # scaled by unit_scale


def min_positive_gap(lines) -> Optional[int]:
    """
    Smallest positive difference between consecutive sorted coordinates.

    Args:
        lines: Line coordinates

    Returns:
        Minimum positive gap, or None if fewer than two distinct lines
    """
    coords = np.unique(np.asarray(lines, dtype=np.int64))
    if coords.size < 2:
        return None

    gaps = np.diff(coords)
    gaps = gaps[gaps > 0]
    if gaps.size == 0:
        return None

    return int(gaps.min())


def calibration_units_from_gaps(
    horizontal_gap: Optional[int],
    vertical_gap: Optional[int],
    fine_divisions: int = 5,
    unit_scale: int = 1_000_000
) -> Tuple[int, int]:
    """
    Derive the base and fine calibration units from minimal line gaps.

    Args:
        horizontal_gap: Minimal gap between horizontal lines (None if undefined)
        vertical_gap: Minimal gap between vertical lines (None if undefined)
        fine_divisions: Fine divisions per coarse ruled square
        unit_scale: Fixed-point scale of the fine unit

    Returns:
        (base_unit, calibration_unit); base_unit is always >= 1
    """
    gaps = [g for g in (horizontal_gap, vertical_gap) if g is not None]
    base_unit = max(gaps) if gaps else 0

    if base_unit < 1:
        logger.debug("Degenerate grid spacing %s, clamping base unit to 1", gaps)
        base_unit = 1

    return base_unit, base_unit * unit_scale // fine_divisions


class GridCalibrator:
    """Calibrator detecting ruled reference lines by color."""

    def __init__(self, config=None):
        """
        Initialize the calibrator.

        Args:
            config: Configuration object. If None, uses default config.
        """
        self.config = config or get_config()
        self.grid_config = self.config.grid

    def qualifying_pixels(self, image: np.ndarray, red_threshold: int) -> np.ndarray:
        """
        Mask of pixels colored like ruled grid ink.

        Args:
            image: RGB pixel grid (H, W, 3)
            red_threshold: Minimum red value

        Returns:
            Boolean mask (H, W)
        """
        cfg = self.grid_config
        r = image[:, :, 0].astype(np.int16)
        g = image[:, :, 1]
        b = image[:, :, 2]

        return (r >= red_threshold) & (g <= cfg.green_max) & (b <= cfg.blue_max)

    def detect_lines(
        self,
        image: np.ndarray,
        red_threshold: int
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Detect horizontal and vertical ruled lines.

        A row is a horizontal line when qualifying pixels cover at least
        `line_coverage_percent` of its width; columns likewise by height.

        Args:
            image: RGB pixel grid (H, W, 3)
            red_threshold: Minimum red value of a qualifying pixel

        Returns:
            (horizontal line y-coordinates, vertical line x-coordinates), sorted
        """
        height, width = image.shape[:2]
        percent = self.grid_config.line_coverage_percent
        qualifying = self.qualifying_pixels(image, red_threshold)

        row_counts = np.count_nonzero(qualifying, axis=1)
        col_counts = np.count_nonzero(qualifying, axis=0)

        horizontal = np.flatnonzero(row_counts * 100 >= percent * width)
        vertical = np.flatnonzero(col_counts * 100 >= percent * height)

        return horizontal, vertical

    def _adjust_threshold(self, red_threshold: int, direction: int) -> int:
        step = self.grid_config.threshold_step
        if direction == TOO_FEW:
            return red_threshold - step
        if direction == TOO_MANY:
            return red_threshold + step
        return red_threshold

    def calibrate(self, image: np.ndarray) -> GridCalibration:
        """
        Find ruled lines with an adaptive red threshold and derive the unit.

        The threshold is lowered while too few horizontal lines are found and
        raised while too many are found, until the count is in range or the
        iteration cap is reached. The last detected lines are used either way.

        Args:
            image: Raw RGB pixel grid (H, W, 3), before binarization

        Returns:
            GridCalibration
        """
        cfg = self.grid_config

        result = converge(
            initial=cfg.initial_red_threshold,
            evaluate=lambda threshold: self.detect_lines(image, threshold),
            count=lambda lines: len(lines[0]),
            classify=target_range(cfg.min_lines, cfg.max_lines),
            adjust=self._adjust_threshold,
            max_iterations=cfg.max_iterations,
            name="grid lines"
        )

        horizontal, vertical = result.features
        base_unit, unit = calibration_units_from_gaps(
            min_positive_gap(horizontal),
            min_positive_gap(vertical),
            fine_divisions=cfg.fine_divisions,
            unit_scale=cfg.unit_scale
        )

        logger.debug(
            "Grid calibration: %d horizontal, %d vertical lines at red>=%d "
            "(converged=%s), base unit %d",
            len(horizontal), len(vertical), result.params, result.converged, base_unit
        )

        return GridCalibration(
            horizontal_lines=tuple(int(y) for y in horizontal),
            vertical_lines=tuple(int(x) for x in vertical),
            red_threshold=int(result.params),
            iterations=result.iterations,
            converged=result.converged,
            base_unit=base_unit,
            calibration_unit=unit,
        )


def calibrate_grid(image: np.ndarray, config=None) -> GridCalibration:
    """
    Convenience function to calibrate a single image.

    Args:
        image: Raw RGB pixel grid
        config: Configuration object

    Returns:
        GridCalibration
    """
    calibrator = GridCalibrator(config)
    return calibrator.calibrate(image)
