"""
Drawing surfaces for fern rendering.

A surface is the collaborator that receives draw calls and, once the
render is complete, publishes the finished image. ``RasterSurface`` draws
into a Pillow image; ``RecordingSurface`` keeps a display list, which is
useful for inspecting a render without rasterizing it.
"""

import numpy as np
from typing import Any, List, Sequence, Tuple, Union
from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging

from PIL import Image, ImageDraw

from ..core.fern import BranchSegment, Point
from ..core.ripple import RippleEllipse
from .curves import sample_curve

logger = logging.getLogger(__name__)

Color = Union[Tuple[int, int, int], Tuple[int, int, int, int]]
Rect = Tuple[float, float, float, float]


class Surface(ABC):
    """Abstract drawing surface."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive")
        self.width = width
        self.height = height
        self.published = False

    def _check_writable(self) -> None:
        if self.published:
            raise RuntimeError("Surface already published")

    @abstractmethod
    def fill_rect(self, rect: Rect, color: Color) -> None:
        """Fill rectangle (x0, y0, x1, y1) with a solid color."""
        pass

    @abstractmethod
    def draw_curve(self, points: Sequence[Point], color: Color, width: float) -> None:
        """Stroke a smooth curve through the given points."""
        pass

    @abstractmethod
    def draw_line(self, start: Point, end: Point, color: Color, width: float) -> None:
        """Stroke a straight line."""
        pass

    @abstractmethod
    def draw_ellipse(self, bounds: Rect, color: Color, width: float) -> None:
        """Stroke an ellipse outline inscribed in bounds (x0, y0, x1, y1)."""
        pass

    @abstractmethod
    def _finalize(self) -> Any:
        pass

    def clear(self, color: Color) -> None:
        """Fill the whole surface with a background color."""
        self.fill_rect((0, 0, self.width, self.height), color)

    def draw_segment(self, segment: BranchSegment) -> None:
        """Draw one fern branch segment."""
        self.draw_curve(segment.points, segment.color, segment.width)

    def draw_ripple_ellipse(self, ellipse: RippleEllipse) -> bool:
        """Draw one ripple ellipse; returns False if it was degenerate and skipped."""
        if ellipse.is_degenerate:
            return False
        self.draw_ellipse(ellipse.bounds, ellipse.color, ellipse.stroke_width)
        return True

    def publish(self) -> Any:
        """
        Commit the surface and return the finished image.

        No further drawing is accepted afterwards.
        """
        self._check_writable()
        result = self._finalize()
        self.published = True
        logger.debug(f"Published {self.width}x{self.height} {type(self).__name__}")
        return result


def _pen_width(width: float) -> int:
    """Pillow strokes are whole pixels; hairlines stay visible."""
    return max(1, int(round(width)))


class RasterSurface(Surface):
    """Surface backed by an RGB Pillow image with alpha-blended drawing."""

    def __init__(self, width: int, height: int):
        """
        Allocate the pixel buffer.

        Args:
            width, height: Surface size in pixels

        Raises:
            RuntimeError: If the buffer cannot be allocated
        """
        super().__init__(width, height)
        try:
            self.image = Image.new('RGB', (width, height))
        except (MemoryError, ValueError) as e:
            raise RuntimeError(f"Could not allocate {width}x{height} surface: {e}") from e
        self._draw = ImageDraw.Draw(self.image, 'RGBA')

    def fill_rect(self, rect: Rect, color: Color) -> None:
        self._check_writable()
        x0, y0, x1, y1 = rect
        if x1 <= x0 or y1 <= y0:
            return
        # Pillow rectangles include their far edge
        self._draw.rectangle([x0, y0, x1 - 1, y1 - 1], fill=tuple(color))

    def draw_curve(self, points: Sequence[Point], color: Color, width: float) -> None:
        self._check_writable()
        polyline = sample_curve(points)
        self._draw.line(polyline.ravel().tolist(), fill=tuple(color),
                        width=_pen_width(width), joint='curve')

    def draw_line(self, start: Point, end: Point, color: Color, width: float) -> None:
        self._check_writable()
        self._draw.line([tuple(start), tuple(end)], fill=tuple(color), width=_pen_width(width))

    def draw_ellipse(self, bounds: Rect, color: Color, width: float) -> None:
        self._check_writable()
        x0, y0, x1, y1 = bounds
        if x1 <= x0 or y1 <= y0:
            return
        self._draw.ellipse([x0, y0, x1, y1], outline=tuple(color), width=_pen_width(width))

    def _finalize(self) -> np.ndarray:
        return np.array(self.image, dtype=np.uint8)


@dataclass(frozen=True)
class DrawCall:
    """A recorded draw operation."""
    kind: str  # 'fill', 'curve', 'line' or 'ellipse'
    points: Tuple[Point, ...]
    color: Color
    width: float


class RecordingSurface(Surface):
    """Surface that records draw calls instead of rasterizing them."""

    def __init__(self, width: int, height: int):
        super().__init__(width, height)
        self.calls: List[DrawCall] = []

    def _record(self, kind: str, points, color: Color, width: float) -> None:
        self._check_writable()
        self.calls.append(DrawCall(kind, tuple(tuple(p) for p in points), tuple(color), width))

    def fill_rect(self, rect: Rect, color: Color) -> None:
        x0, y0, x1, y1 = rect
        self._record('fill', [(x0, y0), (x1, y1)], color, 0)

    def draw_curve(self, points: Sequence[Point], color: Color, width: float) -> None:
        self._record('curve', points, color, width)

    def draw_line(self, start: Point, end: Point, color: Color, width: float) -> None:
        self._record('line', [start, end], color, width)

    def draw_ellipse(self, bounds: Rect, color: Color, width: float) -> None:
        x0, y0, x1, y1 = bounds
        self._record('ellipse', [(x0, y0), (x1, y1)], color, width)

    def count(self, kind: str) -> int:
        """Number of recorded calls of one kind."""
        return sum(1 for call in self.calls if call.kind == kind)

    def _finalize(self) -> Tuple[DrawCall, ...]:
        return tuple(self.calls)
