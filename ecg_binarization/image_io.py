"""
Image input/output helpers for ECG strip binarization.

This module handles:
- Image loading and decoding (file paths, encoded bytes, raw RGB buffers)
- Pixel grid validation
- Export of packed lead panels as PNG images
"""

import logging
import cv2
import numpy as np
from pathlib import Path
from typing import Union, List, Optional, Sequence
from PIL import Image

from .bitpacking import PackedPanel, unpack_panel
from .exceptions import DecodeError

logger = logging.getLogger(__name__)


def as_pixel_grid(image: np.ndarray) -> np.ndarray:
    """
    Validate an RGB(A) image and return it as a read-only RGB pixel grid.

    Args:
        image: Input image (H, W, 3) or (H, W, 4); alpha is ignored

    Returns:
        Read-only uint8 array of shape (H, W, 3)

    Raises:
        ValueError: If the array is not an 8-bit RGB(A) image
    """
    image = np.asarray(image)

    if image.ndim != 3:
        raise ValueError(f"Expected an (H, W, C) RGB image, got shape {image.shape}")

    if image.shape[2] == 4:
        image = image[:, :, :3]
    elif image.shape[2] != 3:
        raise ValueError(f"Unsupported number of channels: {image.shape[2]}")

    if image.dtype != np.uint8:
        raise ValueError(f"Expected 8-bit samples, got dtype {image.dtype}")

    grid = np.ascontiguousarray(image)
    if grid is image:
        grid = image.copy()
    grid.flags.writeable = False

    return grid


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode encoded image bytes (PNG, JPEG, ...) into an RGB pixel grid.

    Args:
        data: Encoded image bytes

    Returns:
        Read-only RGB pixel grid

    Raises:
        DecodeError: If the bytes cannot be decoded
    """
    if not data:
        raise DecodeError("Empty image payload")

    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)

    if image is None:
        logger.error("Failed to decode %d bytes of image data", len(data))
        raise DecodeError("Failed to decode image bytes")

    image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    return as_pixel_grid(image)


def load_image(image_path: Union[str, Path]) -> np.ndarray:
    """
    Load an image from file as an RGB pixel grid.

    Args:
        image_path: Path to the image file

    Returns:
        Read-only RGB pixel grid

    Raises:
        FileNotFoundError: If image file doesn't exist
        DecodeError: If image cannot be decoded
    """
    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")

    try:
        return decode_image(image_path.read_bytes())
    except DecodeError as e:
        raise DecodeError(f"Failed to load image: {image_path}") from e


def decode_raw_rgb(width: int, height: int, payload: bytes) -> np.ndarray:
    """
    Decode a raw pixel buffer as sent by the streaming client.

    Each pixel is one big-endian 32-bit integer whose low byte is red,
    followed by green and blue; the high byte is ignored.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        payload: Concatenated pixel data (width * height * 4 bytes)

    Returns:
        Read-only RGB pixel grid

    Raises:
        DecodeError: If the dimensions or the payload size are invalid
    """
    if width <= 0 or height <= 0:
        raise DecodeError(f"Invalid image dimensions: {width}x{height}")

    expected = width * height * 4
    if len(payload) != expected:
        raise DecodeError(
            f"Raw payload has {len(payload)} bytes, expected {expected} "
            f"for {width}x{height}"
        )

    pixels = np.frombuffer(payload, dtype=np.uint8).reshape(height, width, 4)

    # Byte order within each integer: [ignored, B, G, R]
    return as_pixel_grid(pixels[:, :, [3, 2, 1]])


def panel_to_image(packed: PackedPanel) -> np.ndarray:
    """
    Render a packed panel as a black-on-white grayscale image.

    Args:
        packed: Packed lead panel

    Returns:
        uint8 image (H, W); ink is 0, background is 255
    """
    mask = unpack_panel(packed)
    return np.where(mask, 0, 255).astype(np.uint8)


def save_lead_images(
    panels: Sequence[PackedPanel],
    output_dir: Union[str, Path],
    prefix: Optional[str] = None
) -> List[Path]:
    """
    Save each packed panel as a PNG named after its lead (e.g. I.png, V6.png).

    Args:
        panels: Packed panels in lead order
        output_dir: Directory to write into
        prefix: Optional file name prefix (e.g. the source image stem)

    Returns:
        List of written file paths
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for packed in panels:
        name = f"{prefix}_{packed.lead}.png" if prefix else f"{packed.lead}.png"
        path = output_dir / name
        Image.fromarray(panel_to_image(packed)).save(path)
        logger.debug("Saved lead %s to %s", packed.lead, path)
        paths.append(path)

    return paths
