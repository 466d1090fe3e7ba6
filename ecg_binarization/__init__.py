"""
ECG Strip Binarization
======================

Converts a photographed or scanned 12-lead ECG strip into twelve packed
binary lead panels.

Main modules:
- binarization: Ink classification and isolated pixel removal
- margin: Left margin trimming
- grid_calibration: Ruled grid line detection and calibration unit
- separators: Adaptive whitespace band search
- segmentation: Cutting the mask into the 12 lead panels
- bitpacking: Packing panels into 32-bit words
- pipeline: End-to-end processing
"""

__version__ = "0.1.0"

from . import config
from .exceptions import DecodeError, DigitizationError, EmptyResultError
from .pipeline import DigitizationResult, ECGLeadPipeline, process_image

__all__ = [
    "config",
    "DecodeError",
    "DigitizationError",
    "EmptyResultError",
    "DigitizationResult",
    "ECGLeadPipeline",
    "process_image",
]
