"""
Pytest configuration and fixtures for ecg_binarization tests.

Provides:
- A fresh configuration per test
- Synthetic ECG strip images (blank and banded)
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ecg_binarization.config import Config  # noqa: E402

WHITE = (255, 255, 255)
BLUE_INK = (0, 0, 255)


def make_blank_image(height=600, width=800):
    """Uniform white image: no ink, no grid lines."""
    return np.full((height, width, 3), 255, dtype=np.uint8)


def make_banded_image(width=800, zone_height=40, band_height=40, zones=8, seed=0):
    """
    Zones of dense deterministic noise separated by blank bands.

    Returns:
        (image, band starts)
    """
    rng = np.random.default_rng(seed)
    height = zones * zone_height + (zones - 1) * band_height
    image = np.full((height, width, 3), 255, dtype=np.uint8)

    band_starts = []
    for k in range(zones):
        y0 = k * (zone_height + band_height)
        noise = rng.random((zone_height, width)) < 0.5
        image[y0:y0 + zone_height][noise] = BLUE_INK
        if k < zones - 1:
            band_starts.append(y0 + zone_height)

    return image, band_starts


def make_banded_mask(height, width, bands):
    """
    Fully inked mask with blank bands.

    Args:
        bands: List of (start, height) pairs
    """
    mask = np.ones((height, width), dtype=bool)
    for start, band_height in bands:
        mask[start:start + band_height] = False
    return mask


def make_ruled_image(height=350, width=400, row_step=10, col_step=12, color=(255, 0, 0)):
    """White image ruled with full-length colored lines."""
    image = np.full((height, width, 3), 255, dtype=np.uint8)
    image[5::row_step, :] = color
    image[:, 6::col_step] = color
    return image


@pytest.fixture
def config():
    """Fresh default configuration."""
    return Config()


@pytest.fixture
def blank_image():
    return make_blank_image()


@pytest.fixture
def banded_image():
    return make_banded_image()
