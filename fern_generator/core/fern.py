"""
Recursive fern geometry generation.

This module computes the branch segments of a fractal fern. Each node of
the recursion emits one smooth curve and spawns two fronds plus one stem
continuation, with small random perturbations applied to angles and sizes.
Generation is decoupled from drawing: segments are yielded as immutable
values and the caller decides how to render them.
"""

import math
import numbers
import numpy as np
from typing import Iterator, Optional, Tuple
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


# Geometry constants
SIZE = 40.0  # Initial stem length
SIZE_THRESHOLD = 0.4  # Segments shorter than this are not drawn
BRANCH_OFFSET = math.pi / 2.5  # Angle between fronds and their stem
PEN_SIZE = 4  # Stroke width of a full-size stem

# Jitter magnitudes
BRANCH_RANDOM = 0.1
SIZE_RANDOM = 0.1
STEM_RANDOM = 0.2

# Parameter bounds
MAX_DEPTH = 10
MAX_GROWTH = 0.85

Point = Tuple[float, float]
RGBA = Tuple[int, int, int, int]


def make_random_stream(seed: Optional[int] = None) -> np.random.Generator:
    """
    Create a random stream for fern and ripple generation.

    Args:
        seed: Optional seed; None gives a non-reproducible stream

    Returns:
        NumPy random generator
    """
    return np.random.default_rng(seed)


def jitter(rng, factor: float) -> float:
    """Symmetric noise in [-factor/2, factor/2)."""
    return factor * (rng.random() - 0.5)


def check_number(name: str, value, integer: bool = False) -> None:
    """Raise ValueError unless value is a real (or integer) number; bools are rejected."""
    kinds = (int, np.integer) if integer else numbers.Real
    if isinstance(value, bool) or not isinstance(value, kinds):
        kind = "an integer" if integer else "a number"
        raise ValueError(f"{name} must be {kind}, got {value!r}")


@dataclass(frozen=True)
class FernParameters:
    """Parameters controlling the shape of a fern."""

    depth: float = 4
    angle: float = 0.1  # curl applied at every step
    growth: float = 0.5  # stem elongation factor
    frond_count: int = 5

    def validate(self) -> None:
        """Validate parameter values."""
        check_number('depth', self.depth)
        if not math.isfinite(self.depth) or not 1 <= self.depth <= MAX_DEPTH:
            raise ValueError(f"depth must be between 1 and {MAX_DEPTH}, got {self.depth}")

        check_number('angle', self.angle)
        if not math.isfinite(self.angle):
            raise ValueError("angle must be finite")

        # Every depth-preserving call must shrink the stem, even with worst-case
        # size jitter, otherwise recursion does not terminate
        check_number('growth', self.growth)
        if not math.isfinite(self.growth) or not 0.0 <= self.growth <= MAX_GROWTH:
            raise ValueError(f"growth must be between 0 and {MAX_GROWTH}, got {self.growth}")

        check_number('frond_count', self.frond_count, integer=True)
        if self.frond_count < 0:
            raise ValueError("frond_count must be non-negative")

    @property
    def color_depth(self) -> float:
        """Green channel step per recursion level."""
        return 255 / self.depth


@dataclass(frozen=True)
class BranchSegment:
    """One smooth curve of a fern, through start, control and end."""

    start: Point
    control: Point
    end: Point
    color: RGBA
    width: float
    depth: float

    @property
    def points(self) -> Tuple[Point, Point, Point]:
        return (self.start, self.control, self.end)


class FernGenerator:
    """Generates the branch segments of a fern."""

    def __init__(self, parameters: FernParameters, rng=None):
        """
        Initialize fern generator.

        Args:
            parameters: Fern shape parameters
            rng: Random stream providing ``random()``; a fresh unseeded
                stream is created if None
        """
        parameters.validate()
        self.parameters = parameters
        self.rng = rng if rng is not None else make_random_stream()

    def segment_color(self, depth: float, opacity: int) -> RGBA:
        """Stroke color for a segment at the given depth."""
        green = int(255 - self.parameters.color_depth * depth)
        return (0, min(255, max(0, green)), 0, opacity)

    @staticmethod
    def segment_width(size: float, stem_size: float) -> float:
        """Stroke width relative to the stem the segment grew from."""
        return PEN_SIZE * size / stem_size

    def generate(self, origin: Point, angle: float, size: float = SIZE,
                 depth: Optional[float] = None, stem_size: Optional[float] = None,
                 opacity: int = 255) -> Iterator[BranchSegment]:
        """
        Generate the segments of one fern in draw order.

        Args:
            origin: Root position in canvas coordinates (y grows downwards)
            angle: Initial direction in radians
            size: Length of the first stem segment
            depth: Remaining recursion depth (defaults to parameters.depth)
            stem_size: Reference size for stroke widths (defaults to size)
            opacity: Alpha of every segment (0-255)

        Yields:
            BranchSegment values, each frond subtree complete before the next
        """
        if depth is None:
            depth = self.parameters.depth
        depth = min(depth, MAX_DEPTH)
        if stem_size is None:
            stem_size = size
        if stem_size <= 0:
            return iter(())

        return self._grow(origin, angle, size, depth, stem_size, opacity)

    def _grow(self, origin: Point, angle: float, size: float, depth: float,
              stem_size: float, opacity: int) -> Iterator[BranchSegment]:
        curl = self.parameters.angle
        growth = self.parameters.growth

        # The stem continuation is a tail call, so it runs as a loop
        while depth >= 1 and size >= SIZE_THRESHOLD:
            dx = math.cos(angle)
            dy = -math.sin(angle)
            x, y = origin
            p1 = (x + dx * size, y + dy * size)
            p2 = (p1[0] + dx * size / 8, p1[1] + dy * size / 8)

            yield BranchSegment(
                start=origin,
                control=p1,
                end=p2,
                color=self.segment_color(depth, opacity),
                width=self.segment_width(size, stem_size),
                depth=depth,
            )

            yield from self._grow(
                p1, angle + (BRANCH_OFFSET - curl + jitter(self.rng, BRANCH_RANDOM)),
                size / 3, depth - 1, size / 2, opacity)
            yield from self._grow(
                p2, angle + (-BRANCH_OFFSET - curl + jitter(self.rng, BRANCH_RANDOM)),
                size / 3, depth - 1, size / 2, opacity)

            origin = p2
            angle = angle - curl + jitter(self.rng, STEM_RANDOM)
            size = size / (2 - growth) + jitter(self.rng, SIZE_RANDOM)
