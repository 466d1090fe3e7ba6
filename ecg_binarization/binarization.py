"""
Binarization module for ECG strip images.

This module handles:
- Per-pixel ink/background classification of RGB pixel grids
- Single-pass removal of isolated ink pixels
"""

import numpy as np
from scipy.ndimage import convolve

from .config import get_config

# 8-neighbourhood, centre excluded
NEIGHBOUR_KERNEL = np.array([
    [1, 1, 1],
    [1, 0, 1],
    [1, 1, 1],
], dtype=np.uint8)


def _freeze(mask: np.ndarray) -> np.ndarray:
    mask.flags.writeable = False
    return mask


class ECGBinarizer:
    """Binarizer for ECG strip images."""

    def __init__(self, config=None):
        """
        Initialize the binarizer.

        Args:
            config: Configuration object. If None, uses default config.
        """
        self.config = config or get_config()
        self.bin_config = self.config.binarization

    def binarize(self, image: np.ndarray) -> np.ndarray:
        """
        Classify every pixel as ink or background.

        A pixel is ink when R and G are both below the ink thresholds,
        unless it is dark in all three channels (dark colored grid or
        background print), which is forced to background.

        Args:
            image: RGB pixel grid (H, W, 3)

        Returns:
            Read-only boolean ink mask (H, W)
        """
        if image.ndim != 3 or image.shape[2] < 3:
            raise ValueError(f"Expected an (H, W, 3) RGB image, got shape {image.shape}")

        cfg = self.bin_config
        r = image[:, :, 0]
        g = image[:, :, 1]
        b = image[:, :, 2]

        ink = (r < cfg.ink_red_max) & (g < cfg.ink_green_max)
        dark = (r < cfg.dark_red_max) & (g < cfg.dark_green_max) & (b < cfg.dark_blue_max)

        return _freeze(ink & ~dark)

    def remove_isolated_pixels(self, mask: np.ndarray) -> np.ndarray:
        """
        Clear ink pixels that have no ink among their 8 neighbours.

        Runs exactly one pass: neighbour counts come from the input mask, so
        clearing a pixel never isolates a neighbour within the same pass.
        Border pixels are never modified.

        Args:
            mask: Boolean ink mask (H, W)

        Returns:
            New read-only boolean mask
        """
        mask = np.asarray(mask, dtype=bool)
        height, width = mask.shape

        result = mask.copy()
        if height < 3 or width < 3:
            return _freeze(result)

        neighbours = convolve(
            mask.astype(np.uint8),
            NEIGHBOUR_KERNEL,
            mode="constant",
            cval=0
        )

        isolated = mask & (neighbours == 0)

        # Interior only
        interior = isolated[1:-1, 1:-1]
        result[1:-1, 1:-1][interior] = False

        return _freeze(result)

    def process(self, image: np.ndarray) -> np.ndarray:
        """
        Binarize an image and, if configured, remove isolated pixels.

        Args:
            image: RGB pixel grid

        Returns:
            Read-only boolean ink mask
        """
        mask = self.binarize(image)

        if self.bin_config.remove_isolated_pixels:
            mask = self.remove_isolated_pixels(mask)

        return mask


def binarize(image: np.ndarray, config=None) -> np.ndarray:
    """Convenience function to binarize a single image."""
    return ECGBinarizer(config).binarize(image)


def remove_isolated_pixels(mask: np.ndarray, config=None) -> np.ndarray:
    """Convenience function for a single denoising pass."""
    return ECGBinarizer(config).remove_isolated_pixels(mask)
