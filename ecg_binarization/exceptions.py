"""Exceptions raised by the ECG binarization pipeline."""


class DigitizationError(Exception):
    """Base class for pipeline errors."""


class DecodeError(DigitizationError, ValueError):
    """Input bytes could not be decoded into a pixel grid."""


class EmptyResultError(DigitizationError):
    """Segmentation produced no usable panels."""


class SeparatorDetectionFailure(DigitizationError):
    """
    The adaptive separator search exhausted its bound.

    Never propagated to callers of the pipeline: the pipeline catches it
    and segments with the equal partition instead.
    """

    def __init__(self, message: str, iterations: int = 0, count: int = 0):
        super().__init__(message)
        self.iterations = iterations
        self.count = count
