"""
Bit-packing of binary lead panels into 32-bit words.

Bit i of a panel (row-major, i = y * width + x) is stored in word i // 32
at bit position i % 32.
"""

import numpy as np
from dataclasses import dataclass

WORD_BITS = 32


@dataclass(frozen=True, eq=False)
class PackedPanel:
    """One lead panel encoded as packed 32-bit words."""

    index: int
    lead: str
    calibration_unit: int
    width: int
    height: int
    words: np.ndarray  # uint32, length n

    @property
    def n(self) -> int:
        """Number of packed words."""
        return int(self.words.shape[0])

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable record."""
        return {
            "lead": self.lead,
            "index": self.index,
            "calibration_unit": self.calibration_unit,
            "width": self.width,
            "height": self.height,
            "n": self.n,
            "data": self.words.tolist(),
        }


def word_count(width: int, height: int) -> int:
    """Number of 32-bit words needed for a width x height panel."""
    return (width * height + WORD_BITS - 1) // WORD_BITS


def pack_bits(mask: np.ndarray) -> np.ndarray:
    """
    Pack a 2D boolean mask into little-endian bit order uint32 words.

    Args:
        mask: Boolean mask (H, W)

    Returns:
        uint32 array of length ceil(H * W / 32)
    """
    mask = np.asarray(mask, dtype=bool)
    if mask.ndim != 2:
        raise ValueError(f"Expected a 2D mask, got shape {mask.shape}")

    height, width = mask.shape
    n_words = word_count(width, height)

    bits = np.zeros(n_words * WORD_BITS, dtype=bool)
    bits[:width * height] = mask.ravel()

    packed_bytes = np.packbits(bits, bitorder="little")
    return packed_bytes.view("<u4").astype(np.uint32)


def unpack_bits(words: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Inverse of pack_bits.

    Args:
        words: Packed words
        width: Panel width
        height: Panel height

    Returns:
        Boolean mask (H, W)
    """
    words = np.ascontiguousarray(words, dtype="<u4")
    if words.shape[0] != word_count(width, height):
        raise ValueError(
            f"Expected {word_count(width, height)} words for {width}x{height}, "
            f"got {words.shape[0]}"
        )

    bits = np.unpackbits(words.view(np.uint8), bitorder="little")
    return bits[:width * height].reshape(height, width).astype(bool)


def pack_panel(panel) -> PackedPanel:
    """
    Encode a segmented panel.

    Args:
        panel: Panel from the segmenter

    Returns:
        PackedPanel carrying the panel's index, lead and calibration unit
    """
    return PackedPanel(
        index=panel.index,
        lead=panel.lead,
        calibration_unit=panel.calibration_unit,
        width=panel.width,
        height=panel.height,
        words=pack_bits(panel.mask),
    )


def unpack_panel(packed: PackedPanel) -> np.ndarray:
    """Decode a packed panel back into its boolean mask."""
    return unpack_bits(packed.words, packed.width, packed.height)
