"""
Lead panel segmentation.

Splits a trimmed ink mask into the 12 standard lead panels, using the
detected separators or, when detection failed, an equal partition.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import get_config
from .exceptions import EmptyResultError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Panel:
    """One segmented lead panel."""

    index: int
    lead: str
    mask: np.ndarray  # bool (H, W)
    calibration_unit: int = 1

    @property
    def height(self) -> int:
        return int(self.mask.shape[0])

    @property
    def width(self) -> int:
        return int(self.mask.shape[1])


@dataclass(frozen=True)
class SegmentationResult:
    """Panels together with the layout used to cut them."""

    panels: List[Panel]
    separators: Optional[Tuple[int, ...]]
    used_fallback: bool
    midline_x: int
    zone_bounds: Tuple[int, ...]


def center_crop(mask: np.ndarray, target_height: int, target_width: int) -> np.ndarray:
    """
    Crop a mask to the target size around its center.

    Args:
        mask: Boolean mask (H, W), at least target size
        target_height: Output height
        target_width: Output width

    Returns:
        Cropped mask
    """
    height, width = mask.shape
    start_y = max(0, (height - target_height) // 2)
    start_x = max(0, (width - target_width) // 2)

    return mask[start_y:start_y + target_height, start_x:start_x + target_width]


def trim_left_right(mask: np.ndarray, ratio: float) -> np.ndarray:
    """
    Remove `ratio` of the width from both the left and the right edge.

    Returns the mask unchanged if nothing would remain.
    """
    width = mask.shape[1]
    cut = int(width * ratio)
    new_width = width - 2 * cut

    if new_width <= 0:
        return mask

    return mask[:, cut:cut + new_width]


class Segmenter:
    """Segmenter producing the 12 lead panels of an ECG strip."""

    def __init__(self, config=None):
        """
        Initialize the segmenter.

        Args:
            config: Configuration object. If None, uses default config.
        """
        self.config = config or get_config()
        self.seg_config = self.config.segmentation

    def zone_bounds(
        self,
        height: int,
        separators: Optional[Sequence[int]]
    ) -> Tuple[int, ...]:
        """
        Horizontal zone boundaries.

        Args:
            height: Mask height
            separators: Sorted cut lines, or None for the equal partition

        Returns:
            num_zones + 1 ascending boundaries starting at 0 and ending at height
            (equal partition: multiples of height // num_zones)
        """
        num_zones = self.seg_config.num_zones

        if separators is None:
            row_height = height // num_zones
            return tuple(row * row_height for row in range(num_zones + 1))

        if len(separators) != num_zones - 1:
            raise ValueError(
                f"Expected {num_zones - 1} separators, got {len(separators)}"
            )

        return (0, *sorted(int(y) for y in separators), height)

    def split_zones(
        self,
        mask: np.ndarray,
        bounds: Sequence[int],
        midline_x: int
    ) -> List[np.ndarray]:
        """
        Cut the lead zones into left and right halves.

        The first and last zone (legend and footer) are discarded. Left
        halves come first, top to bottom, followed by the right halves.

        Args:
            mask: Boolean ink mask (H, W)
            bounds: Zone boundaries
            midline_x: Column splitting left and right halves

        Returns:
            Sub-masks in lead order
        """
        left, right = [], []

        for y1, y2 in zip(bounds[1:-2], bounds[2:-1]):
            zone = mask[y1:y2]
            left.append(zone[:, :midline_x])
            right.append(zone[:, midline_x:])

        return left + right

    def segment(
        self,
        mask: np.ndarray,
        separators: Optional[Sequence[int]] = None,
        calibration_unit: int = 1
    ) -> SegmentationResult:
        """
        Segment an ink mask into lead panels of a common size.

        Every panel is center-cropped to the smallest panel height and width,
        then trimmed by `edge_trim_ratio` on both sides.

        Args:
            mask: Boolean ink mask (H, W), margin already trimmed
            separators: Sorted cut lines, or None to use the equal partition
            calibration_unit: Calibration unit attached to every panel

        Returns:
            SegmentationResult with panels in lead order

        Raises:
            EmptyResultError: If no non-empty panels can be produced
        """
        mask = np.asarray(mask, dtype=bool)
        height, width = mask.shape

        if height == 0 or width == 0:
            raise EmptyResultError(f"Cannot segment an empty {width}x{height} mask")

        used_fallback = separators is None
        if used_fallback:
            logger.info("Segmenting %dx%d mask with equal partition", width, height)

        bounds = self.zone_bounds(height, separators)
        midline_x = width // 2
        subs = self.split_zones(mask, bounds, midline_x)

        if not subs:
            raise EmptyResultError("Segmentation produced no panels")

        min_height = min(sub.shape[0] for sub in subs)
        min_width = min(sub.shape[1] for sub in subs)

        if min_height == 0 or min_width == 0:
            raise EmptyResultError(
                f"Segmentation produced empty panels ({min_width}x{min_height})"
            )

        lead_names = self.seg_config.lead_names
        panels = []

        for index, sub in enumerate(subs):
            panel_mask = center_crop(sub, min_height, min_width)
            panel_mask = trim_left_right(panel_mask, self.seg_config.edge_trim_ratio)
            panel_mask = np.array(panel_mask, dtype=bool)
            panel_mask.flags.writeable = False

            panels.append(Panel(
                index=index,
                lead=lead_names[index],
                mask=panel_mask,
                calibration_unit=calibration_unit,
            ))

        return SegmentationResult(
            panels=panels,
            separators=None if used_fallback else tuple(int(y) for y in bounds[1:-1]),
            used_fallback=used_fallback,
            midline_x=midline_x,
            zone_bounds=tuple(bounds),
        )


def segment_leads(
    mask: np.ndarray,
    separators: Optional[Sequence[int]] = None,
    calibration_unit: int = 1,
    config=None
) -> SegmentationResult:
    """
    Convenience function to segment a single mask.

    Args:
        mask: Boolean ink mask
        separators: Sorted cut lines, or None for the equal partition
        calibration_unit: Calibration unit attached to every panel
        config: Configuration object

    Returns:
        SegmentationResult
    """
    segmenter = Segmenter(config)
    return segmenter.segment(mask, separators, calibration_unit)
