"""
Error types raised by the scattering model and cloud field.
"""

from typing import Sequence


class InvalidParameterError(ValueError):
    """An input lies outside its documented domain."""


class NumericDegenerateError(ArithmeticError):
    """Channel intensities cannot be normalized (zero, negative or non-finite peak).

    Args:
        intensities: The raw channel intensities that failed normalization.
    """

    def __init__(self, intensities: Sequence[float]):
        self.intensities = tuple(float(v) for v in intensities)
        super().__init__(
            f"Cannot normalize channel intensities {self.intensities}: "
            "peak must be finite and positive"
        )
