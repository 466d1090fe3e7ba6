"""
Debug overlay rendering.

Draws the segmentation layout (separator lines and vertical midline) on the
margin-trimmed reference image.
"""

import cv2
import numpy as np
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from .config import get_config


def render_overlay(
    reference_image: np.ndarray,
    separators: Optional[Sequence[int]],
    midline_x: int,
    used_fallback: bool = False,
    color: Optional[Tuple[int, int, int]] = None,
    thickness: Optional[int] = None,
    config=None
) -> np.ndarray:
    """
    Draw separator lines and the midline on a copy of the reference image.

    Args:
        reference_image: RGB image (H, W, 3), margin trimmed
        separators: Separator y-coordinates (ignored in fallback mode)
        midline_x: Vertical midline x-coordinate
        used_fallback: If True, draw the equal-partition boundaries instead
        color: Line color (RGB), defaults to the configured overlay color
        thickness: Line thickness in pixels, defaults to the configured one
        config: Configuration object. If None, uses default config.

    Returns:
        Annotated RGB image
    """
    config = config or get_config()
    color = color or config.output.overlay_color
    thickness = thickness or config.output.overlay_thickness
    num_zones = config.segmentation.num_zones

    vis_image = np.array(reference_image, dtype=np.uint8, copy=True)
    height, width = vis_image.shape[:2]

    if used_fallback:
        row_height = height // num_zones
        rows = [i * row_height for i in range(1, num_zones)]
    else:
        rows = list(separators or [])

    for y in rows:
        cv2.line(vis_image, (0, int(y)), (width - 1, int(y)), color, thickness)

    cv2.line(vis_image, (int(midline_x), 0), (int(midline_x), height - 1), color, thickness)

    return vis_image


def save_overlay(result, output_path: Union[str, Path], config=None) -> Path:
    """
    Render the overlay of a pipeline result and write it to disk.

    Args:
        result: DigitizationResult
        output_path: Destination image path
        config: Configuration object. If None, uses default config.

    Returns:
        Path of the written image
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    vis_image = render_overlay(
        result.reference_image,
        result.separators,
        result.midline_x,
        used_fallback=result.used_fallback,
        config=config,
    )

    if not cv2.imwrite(str(output_path), cv2.cvtColor(vis_image, cv2.COLOR_RGB2BGR)):
        raise IOError(f"Failed to write overlay: {output_path}")

    return output_path
