"""
Procedural fractal fern rendering library.

This library renders recursively branching ferns onto raster images,
together with a faded reflection and decorative water ripples.

Key Features:
- Pure geometry generators yielding immutable segment values
- Injectable random streams for reproducible renders
- Pluggable drawing surfaces (Pillow raster, recording display list)
- PNG/TIFF/JPEG export with embedded render metadata
- JSON/YAML configuration with presets and environment overrides

Example usage:
    >>> from fern_generator import FernRenderer, RenderConfig
    >>> renderer = FernRenderer(RenderConfig(width=800, height=600, seed=7))
    >>> image = renderer.render("fern.png")
"""

__version__ = "1.0.0"
__author__ = "Fern Generator Team"

from fern_generator.core.fern import BranchSegment, FernGenerator, FernParameters, make_random_stream
from fern_generator.core.ripple import RippleEllipse, RippleGenerator
from fern_generator.rendering.surface import Surface, RasterSurface, RecordingSurface
from fern_generator.rendering.image_output import ImageExporter, RenderMetadata
from fern_generator.io.config import ConfigManager

# Main API classes
from fern_generator.api import FernRenderer, RenderConfig, BatchRenderer

__all__ = [
    "FernRenderer",
    "RenderConfig",
    "BatchRenderer",
    "FernGenerator",
    "FernParameters",
    "BranchSegment",
    "RippleGenerator",
    "RippleEllipse",
    "Surface",
    "RasterSurface",
    "RecordingSurface",
    "ImageExporter",
    "RenderMetadata",
    "ConfigManager",
    "make_random_stream",
]
