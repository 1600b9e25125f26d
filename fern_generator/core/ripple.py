"""
Water ripple generation.

A ripple is a small cluster of concentric ellipses that shrink and fade
around a common center.
"""

from typing import Iterator, Tuple
from dataclasses import dataclass
import logging

from .fern import Point, RGBA, make_random_stream

logger = logging.getLogger(__name__)


RIPPLE_STROKE = 2
RIPPLE_OPACITY = 80
RIPPLE_STEPS = 5


@dataclass(frozen=True)
class RippleEllipse:
    """One ellipse outline of a ripple."""

    center: Point
    width: int
    height: int
    color: RGBA
    stroke_width: int = RIPPLE_STROKE

    @property
    def is_degenerate(self) -> bool:
        """True when the ellipse has no area and should not be drawn."""
        return self.width <= 0 or self.height <= 0

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Bounding box (x0, y0, x1, y1)."""
        cx, cy = self.center
        return (cx - self.width / 2, cy - self.height / 2,
                cx + self.width / 2, cy + self.height / 2)


class RippleGenerator:
    """Generates shrinking, fading ellipse clusters."""

    def __init__(self, rng=None):
        self.rng = rng if rng is not None else make_random_stream()

    @staticmethod
    def _ellipse(center: Point, width: int, height: int, opacity: int) -> RippleEllipse:
        return RippleEllipse(
            center=center,
            width=width,
            height=height,
            color=(255, 255, 255, opacity),
        )

    def generate(self, center: Point, size: int) -> Iterator[RippleEllipse]:
        """
        Generate the ellipses of one ripple, largest first.

        Args:
            center: Ripple center in canvas coordinates
            size: Diameter of the outermost ellipse

        Yields:
            RippleEllipse values; shrunken ellipses may be degenerate
        """
        width = height = int(size)
        yield self._ellipse(center, width, height, RIPPLE_OPACITY)

        for i in range(int(self.rng.integers(1, RIPPLE_STEPS)), RIPPLE_STEPS):
            if self.rng.random() > 0.5:
                width //= i
                height //= i
            else:
                width -= 10 * i
                height -= 10 * i
            # Once collapsed, stay collapsed
            width = max(width, 0)
            height = max(height, 0)
            yield self._ellipse(center, width, height, RIPPLE_OPACITY // i)
