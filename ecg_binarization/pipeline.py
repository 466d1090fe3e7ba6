"""
Digitization pipeline for ECG strip images.

This module provides end-to-end processing from an ECG strip image to the
12 packed lead panels.
"""

import logging
import numpy as np
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from .config import get_config
from .binarization import ECGBinarizer
from .bitpacking import PackedPanel, pack_panel
from .exceptions import EmptyResultError
from .grid_calibration import GridCalibration, GridCalibrator
from .image_io import as_pixel_grid, decode_image, load_image
from .margin import trim_left_margin
from .segmentation import Segmenter
from .separators import SeparatorFinder

logger = logging.getLogger(__name__)

PanelSink = Callable[[PackedPanel], None]


@dataclass(frozen=True, eq=False)
class DigitizationResult:
    """Packed lead panels and the layout they were cut with."""

    panels: List[PackedPanel]
    calibration: Optional[GridCalibration]
    separators: Optional[Tuple[int, ...]]
    used_fallback: bool
    midline_x: int
    left_margin: int
    reference_image: np.ndarray  # RGB, margin trimmed

    @property
    def calibration_unit(self) -> int:
        if self.calibration is None:
            return 1
        return self.calibration.calibration_unit

    @property
    def lead_names(self) -> List[str]:
        return [panel.lead for panel in self.panels]


class ECGLeadPipeline:
    """Complete processing pipeline for ECG strip binarization."""

    def __init__(self, config=None):
        """
        Initialize the pipeline.

        Args:
            config: Configuration object
        """
        self.config = config or get_config()

        # Initialize components
        self.binarizer = ECGBinarizer(self.config)
        self.calibrator = GridCalibrator(self.config)
        self.separator_finder = SeparatorFinder(self.config)
        self.segmenter = Segmenter(self.config)

    def load(self, image: Union[str, Path, bytes, np.ndarray]) -> np.ndarray:
        """
        Turn any supported input into a read-only RGB pixel grid.

        Args:
            image: Image path, encoded image bytes or RGB array

        Returns:
            RGB pixel grid
        """
        if isinstance(image, (str, Path)):
            return load_image(image)
        if isinstance(image, (bytes, bytearray, memoryview)):
            return decode_image(bytes(image))
        return as_pixel_grid(image)

    def binarize(self, image: np.ndarray) -> Tuple[np.ndarray, int]:
        """
        Binarize, denoise and trim the left margin.

        Args:
            image: RGB pixel grid

        Returns:
            (trimmed ink mask, left margin)
        """
        mask = self.binarizer.process(image)

        if not self.config.pipeline.trim_left_margin:
            return mask, 0

        return trim_left_margin(mask, self.config.margin.min_column_ink)

    def process(
        self,
        image: Union[str, Path, bytes, np.ndarray],
        sink: Optional[PanelSink] = None
    ) -> DigitizationResult:
        """
        Complete pipeline: image -> 12 packed lead panels.

        Args:
            image: Image path, encoded image bytes or RGB array
            sink: Called with every packed panel, in lead order

        Returns:
            DigitizationResult

        Raises:
            DecodeError: If the input cannot be decoded
            EmptyResultError: If no panels could be produced
        """
        grid = self.load(image)
        height, width = grid.shape[:2]

        mask, left_margin = self.binarize(grid)
        logger.debug("Binarized %dx%d image, left margin %d", width, height, left_margin)

        calibration = None
        if self.config.pipeline.calibrate_grid:
            calibration = self.calibrator.calibrate(grid)
        calibration_unit = 1 if calibration is None else calibration.calibration_unit

        separators = self.separator_finder.find(mask)

        segmentation = self.segmenter.segment(mask, separators, calibration_unit)
        packed = [pack_panel(panel) for panel in segmentation.panels]

        if not packed:
            raise EmptyResultError("Processing produced no panels")

        if sink is not None:
            for panel in packed:
                sink(panel)

        result = DigitizationResult(
            panels=packed,
            calibration=calibration,
            separators=segmentation.separators,
            used_fallback=segmentation.used_fallback,
            midline_x=segmentation.midline_x,
            left_margin=left_margin,
            reference_image=grid[:, left_margin:],
        )

        logger.info(
            "Digitized %dx%d image into %d panels of %dx%d (fallback=%s, unit=%d)",
            width, height, len(packed), packed[0].width, packed[0].height,
            result.used_fallback, result.calibration_unit
        )

        return result


def process_image(
    image: Union[str, Path, bytes, np.ndarray],
    config=None,
    sink: Optional[PanelSink] = None
) -> DigitizationResult:
    """
    Convenience function for single image processing.

    Args:
        image: Image path, encoded image bytes or RGB array
        config: Configuration object
        sink: Called with every packed panel, in lead order

    Returns:
        DigitizationResult
    """
    pipeline = ECGLeadPipeline(config)
    return pipeline.process(image, sink=sink)


if __name__ == "__main__":
    import sys

    logging.basicConfig(level=logging.INFO)

    if len(sys.argv) < 2:
        print("Usage: python -m ecg_binarization.pipeline <image_path>")
        print("\nRunning in test mode with a blank image...")
        result = process_image(np.full((600, 800, 3), 255, dtype=np.uint8))
    else:
        result = process_image(sys.argv[1])

    print(f"Fallback: {result.used_fallback}, separators: {result.separators}")
    print(f"Calibration unit: {result.calibration_unit}")
    for panel in result.panels:
        print(f"  {panel.lead}: {panel.width}x{panel.height}, n={panel.n}")
