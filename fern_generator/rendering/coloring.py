"""
Color handling for fern rendering.

Colors in configuration files and on the command line may be given as
matplotlib color names, hex strings, or 0-255 RGB triples.
"""

import numbers
from typing import Sequence, Tuple, Union
from dataclasses import dataclass
import logging

import numpy as np
import matplotlib.colors as mcolors

logger = logging.getLogger(__name__)

ColorSpec = Union[str, Sequence[int], Sequence[float]]


@dataclass(frozen=True)
class ColorRGB:
    """RGB color representation."""
    r: float
    g: float
    b: float

    def __post_init__(self):
        """Validate RGB values."""
        for component in [self.r, self.g, self.b]:
            if not 0 <= component <= 1:
                raise ValueError("RGB components must be between 0 and 1")

    def to_tuple(self) -> Tuple[float, float, float]:
        """Convert to RGB tuple."""
        return (self.r, self.g, self.b)

    def to_uint8_tuple(self) -> Tuple[int, int, int]:
        """Convert to 8-bit RGB tuple."""
        return (int(round(self.r * 255)), int(round(self.g * 255)), int(round(self.b * 255)))

    def to_hex(self) -> str:
        """Convert to '#rrggbb'."""
        return mcolors.to_hex(self.to_tuple())

    @classmethod
    def from_uint8(cls, r: int, g: int, b: int) -> 'ColorRGB':
        """Create color from 8-bit components."""
        for component in (r, g, b):
            if isinstance(component, (bool, str)) or not isinstance(component, numbers.Real):
                raise ValueError(f"8-bit RGB components must be numbers, got {component!r}")
            if not 0 <= component <= 255:
                raise ValueError("8-bit RGB components must be between 0 and 255")
        return cls(r / 255, g / 255, b / 255)


def parse_color(value: ColorSpec) -> ColorRGB:
    """
    Parse a color specification.

    Args:
        value: Color name ('skyblue'), hex string ('#99d9eb'), or a
            sequence of three 0-255 integers

    Returns:
        Parsed color
    """
    if isinstance(value, ColorRGB):
        return value

    if isinstance(value, str):
        try:
            return ColorRGB(*mcolors.to_rgb(value))
        except ValueError as e:
            raise ValueError(f"Invalid color '{value}': {e}") from e

    if not isinstance(value, (tuple, list, np.ndarray)):
        raise ValueError(f"Invalid color {value!r}")
    components = tuple(value)
    if len(components) != 3:
        raise ValueError(f"Expected 3 color components, got {len(components)}")
    return ColorRGB.from_uint8(*components)


# Default scene colors
BACKGROUND = ColorRGB.from_uint8(153, 217, 235)
STEM_COLOR = ColorRGB.from_uint8(0, 0, 0)
