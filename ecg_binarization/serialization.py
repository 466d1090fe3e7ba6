"""
Serialization of digitization results.

Two encodings are supported:
- JSON-style records, one per lead
- A flat big-endian int32 frame: [count, (unit, width, height, n, words...) * count]
"""

import json
import numpy as np
from typing import List, Sequence

from .bitpacking import PackedPanel, word_count
from .config import get_config
from .exceptions import DecodeError

HEADER_FIELDS = 4  # calibration unit, width, height, n


def to_records(panels: Sequence[PackedPanel]) -> List[dict]:
    """Convert packed panels to JSON-serializable records."""
    return [panel.to_dict() for panel in panels]


def to_json(panels: Sequence[PackedPanel], indent=None) -> str:
    """Serialize packed panels as a JSON array of records."""
    return json.dumps(to_records(panels), indent=indent)


def to_binary_frame(panels: Sequence[PackedPanel]) -> bytes:
    """
    Encode packed panels as one big-endian int32 frame.

    Words are written as their signed 32-bit reinterpretation.

    Args:
        panels: Packed panels in lead order

    Returns:
        Frame bytes
    """
    parts = [np.array([len(panels)], dtype=np.int64)]

    for panel in panels:
        parts.append(np.array(
            [panel.calibration_unit, panel.width, panel.height, panel.n],
            dtype=np.int64
        ))
        parts.append(panel.words.astype(np.uint32).view(np.int32).astype(np.int64))

    frame = np.concatenate(parts)
    if frame.max(initial=0) > np.iinfo(np.int32).max:
        raise ValueError("Header value does not fit in a signed 32-bit integer")

    return frame.astype(">i4").tobytes()


def from_binary_frame(data: bytes, config=None) -> List[PackedPanel]:
    """
    Decode a frame produced by to_binary_frame.

    Args:
        data: Frame bytes
        config: Configuration object. If None, uses default config.

    Returns:
        Packed panels; lead names follow the configured lead order

    Raises:
        DecodeError: If the frame is truncated or inconsistent
    """
    if len(data) % 4 != 0 or len(data) < 4:
        raise DecodeError(f"Frame length {len(data)} is not a positive multiple of 4")

    values = np.frombuffer(data, dtype=">i4")
    lead_names = (config or get_config()).segmentation.lead_names

    count = int(values[0])
    pos = 1
    panels = []

    for index in range(count):
        if pos + HEADER_FIELDS > len(values):
            raise DecodeError(f"Frame truncated in header of panel {index}")

        unit, width, height, n = (int(v) for v in values[pos:pos + HEADER_FIELDS])
        pos += HEADER_FIELDS

        if width < 0 or height < 0 or n < 0:
            raise DecodeError(
                f"Panel {index}: negative size {width}x{height}, n={n}"
            )
        if n != word_count(width, height):
            raise DecodeError(
                f"Panel {index}: {n} words do not match {width}x{height}"
            )
        if pos + n > len(values):
            raise DecodeError(f"Frame truncated in data of panel {index}")

        words = values[pos:pos + n].astype(np.int32).view(np.uint32).copy()
        pos += n

        panels.append(PackedPanel(
            index=index,
            lead=lead_names[index] if index < len(lead_names) else str(index),
            calibration_unit=unit,
            width=width,
            height=height,
            words=words,
        ))

    if pos != len(values):
        raise DecodeError(f"Frame has {len(values) - pos} trailing values")

    return panels
