"""Fern and ripple geometry."""

from .fern import (
    BranchSegment,
    FernGenerator,
    FernParameters,
    make_random_stream,
)
from .ripple import RippleEllipse, RippleGenerator

__all__ = [
    "BranchSegment",
    "FernGenerator",
    "FernParameters",
    "make_random_stream",
    "RippleEllipse",
    "RippleGenerator",
]
