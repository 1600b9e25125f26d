"""
Main API classes for fern rendering.

This module provides the high-level interface for fern rendering,
combining the fern and ripple generators with a drawing surface into
easy-to-use classes.
"""

import math
import numpy as np
from typing import Optional, Dict, Any, Tuple, List
from dataclasses import dataclass, asdict, replace
from pathlib import Path
import logging
import time

from .core.fern import (
    FernGenerator, FernParameters, SIZE, PEN_SIZE, Point, check_number, make_random_stream,
)
from .core.ripple import RippleGenerator
from .rendering.coloring import ColorSpec, BACKGROUND, STEM_COLOR, parse_color
from .rendering.image_output import ImageExporter, RenderMetadata
from .rendering.surface import Surface, RasterSurface

logger = logging.getLogger(__name__)


@dataclass
class RenderConfig:
    """Configuration for fern rendering."""

    # Image parameters
    width: int = 800
    height: int = 600
    background: ColorSpec = BACKGROUND.to_uint8_tuple()

    # Fern parameters
    depth: float = 4
    angle: float = 0.1
    growth: float = 0.5
    frond_count: int = 5

    # Randomness (None gives a different fern on every render)
    seed: Optional[int] = None

    # Reflection
    reflection_offset: Tuple[int, int] = (10, 12)
    reflection_opacity: int = 50
    main_opacity: int = 255

    # Ripples
    min_ripples: int = 2
    max_ripples: int = 8  # exclusive
    ripple_size_range: Tuple[int, int] = (150, 300)  # exclusive upper bound
    stem_ripple_size: int = 100

    # Output
    jpeg_quality: int = 95
    save_metadata: bool = True

    def fern_parameters(self) -> FernParameters:
        """Build the immutable fern parameters for one render."""
        return FernParameters(
            depth=self.depth,
            angle=self.angle,
            growth=self.growth,
            frond_count=self.frond_count,
        )

    def background_rgb(self) -> Tuple[int, int, int]:
        """Background color as an 8-bit RGB tuple."""
        return parse_color(self.background).to_uint8_tuple()

    def validate(self):
        """Validate configuration parameters."""
        check_number('width', self.width, integer=True)
        check_number('height', self.height, integer=True)
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Width and height must be positive")

        self.fern_parameters().validate()
        self.background_rgb()

        if self.seed is not None:
            check_number('seed', self.seed, integer=True)
            if self.seed < 0:
                raise ValueError("seed must be a non-negative integer or None")

        if not isinstance(self.reflection_offset, (tuple, list)) or len(self.reflection_offset) != 2:
            raise ValueError("reflection_offset must be (dx, dy)")
        for value in self.reflection_offset:
            check_number('reflection_offset', value, integer=True)

        for name in ('reflection_opacity', 'main_opacity'):
            check_number(name, getattr(self, name), integer=True)
            if not 0 <= getattr(self, name) <= 255:
                raise ValueError(f"{name} must be between 0 and 255")

        check_number('min_ripples', self.min_ripples, integer=True)
        check_number('max_ripples', self.max_ripples, integer=True)
        if not 0 <= self.min_ripples < self.max_ripples:
            raise ValueError("Ripple counts must satisfy 0 <= min_ripples < max_ripples")

        if not isinstance(self.ripple_size_range, (tuple, list)) or len(self.ripple_size_range) != 2:
            raise ValueError("ripple_size_range must be (low, high)")
        low, high = self.ripple_size_range
        check_number('ripple_size_range', low, integer=True)
        check_number('ripple_size_range', high, integer=True)
        if not 0 < low < high:
            raise ValueError("ripple_size_range must be (low, high) with 0 < low < high")

        check_number('stem_ripple_size', self.stem_ripple_size, integer=True)
        if self.stem_ripple_size <= 0:
            raise ValueError("stem_ripple_size must be positive")

        check_number('jpeg_quality', self.jpeg_quality, integer=True)
        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError("jpeg_quality must be between 1 and 100")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)


def frond_angle(index: int, frond_count: int) -> float:
    """Starting direction of the index-th frond around the center."""
    return index * (2 * math.pi / frond_count) + math.pi / 4


class FernRenderer:
    """Main fern rendering engine."""

    def __init__(self, config: Optional[RenderConfig] = None, rng=None):
        """
        Initialize fern renderer.

        Args:
            config: Rendering configuration (uses defaults if None)
            rng: Random stream shared by fern and ripple generation; a
                stream seeded from ``config.seed`` is created if None
        """
        self.config = config or RenderConfig()
        self.config.validate()

        self.image_exporter = ImageExporter()
        self.rng = rng if rng is not None else make_random_stream(self.config.seed)
        self.last_stats: Dict[str, Any] = {}

        logger.info(f"FernRenderer initialized: {self.config.width}x{self.config.height}, "
                    f"depth={self.config.depth}, fronds={self.config.frond_count}")

    def _create_surface(self) -> Surface:
        return RasterSurface(self.config.width, self.config.height)

    def render(self, output_path: Optional[Path] = None,
               surface: Optional[Surface] = None) -> Any:
        """
        Render the scene and publish the surface.

        Args:
            output_path: Optional output file path
            surface: Target surface (a new raster surface if None)

        Returns:
            The published image; an RGB uint8 array for raster surfaces
        """
        # Everything that can be rejected is rejected before drawing starts
        self.config.validate()
        if output_path is not None:
            self.image_exporter.check_format(output_path)

        parameters = self.config.fern_parameters()
        start_time = time.time()

        if surface is None:
            surface = self._create_surface()

        logger.info(f"Starting render: {surface.width}x{surface.height}, {parameters}")
        self.last_stats = self._compose(surface, parameters)
        image = surface.publish()

        render_time = time.time() - start_time
        self.last_stats['render_time'] = render_time
        logger.info(f"Render complete: {self.last_stats['segments']} segments, "
                    f"{self.last_stats['ripples']} ripples, {render_time:.2f}s")

        if output_path is not None:
            self._save_image(image, output_path, render_time)

        return image

    def _compose(self, surface: Surface, parameters: FernParameters) -> Dict[str, Any]:
        """Draw background, reflection, ripples and the main fern."""
        fern = FernGenerator(parameters, self.rng)
        ripples = RippleGenerator(self.rng)

        width, height = surface.width, surface.height
        center = (width // 2, height // 2)
        dx, dy = self.config.reflection_offset
        reflection = (center[0] + dx, center[1] + dy)
        count = parameters.frond_count

        stats = {'segments': 0, 'ripples': 0, 'ellipses': 0, 'lines': 0}

        surface.clear(self.config.background_rgb())

        for i in range(count):
            stats['segments'] += self._draw_fern(
                surface, fern, reflection, frond_angle(i, count), self.config.reflection_opacity)

        ripple_count = int(self.rng.integers(self.config.min_ripples, self.config.max_ripples))
        low, high = self.config.ripple_size_range
        for _ in range(ripple_count):
            position = (int(self.rng.integers(width)), int(self.rng.integers(height)))
            stats['ellipses'] += self._draw_ripple(
                surface, ripples, position, int(self.rng.integers(low, high)))
        stats['ellipses'] += self._draw_ripple(
            surface, ripples, reflection, self.config.stem_ripple_size)
        stats['ripples'] = ripple_count + 1

        stem_color = STEM_COLOR.to_uint8_tuple() + (255,)
        for i in range(count):
            surface.draw_line(center, reflection, stem_color, PEN_SIZE)
            stats['lines'] += 1
            stats['segments'] += self._draw_fern(
                surface, fern, center, frond_angle(i, count), self.config.main_opacity)

        return stats

    @staticmethod
    def _draw_fern(surface: Surface, fern: FernGenerator, origin: Point,
                   angle: float, opacity: int) -> int:
        drawn = 0
        for segment in fern.generate(origin, angle, SIZE, opacity=opacity):
            surface.draw_segment(segment)
            drawn += 1
        return drawn

    @staticmethod
    def _draw_ripple(surface: Surface, ripples: RippleGenerator, center: Point, size: int) -> int:
        drawn = 0
        for ellipse in ripples.generate(center, size):
            if surface.draw_ripple_ellipse(ellipse):
                drawn += 1
        return drawn

    def _save_image(self, image: np.ndarray, output_path: Path, render_time: float):
        """Save rendered image with metadata."""
        output_path = Path(output_path)

        metadata = None
        if self.config.save_metadata:
            metadata = RenderMetadata(
                depth=self.config.depth,
                angle=self.config.angle,
                growth=self.config.growth,
                frond_count=self.config.frond_count,
                resolution=(self.config.width, self.config.height),
                seed=self.config.seed,
                segment_count=self.last_stats.get('segments', 0),
                ripple_count=self.last_stats.get('ripples', 0),
                render_time_seconds=render_time,
            )

        self.image_exporter.save_image(image, output_path, metadata, self.config.jpeg_quality)

    def update_config(self, **kwargs):
        """Update rendering configuration."""
        for key in kwargs:
            if not hasattr(self.config, key):
                raise ValueError(f"Unknown configuration parameter: {key}")

        updated = replace(self.config, **kwargs)
        updated.validate()
        self.config = updated

        if 'seed' in kwargs:
            self.rng = make_random_stream(self.config.seed)


class BatchRenderer:
    """Batch fern rendering with job queuing."""

    def __init__(self, base_config: Optional[RenderConfig] = None):
        """Initialize batch renderer."""
        self.base_config = base_config or RenderConfig()
        self.jobs = []
        self.results = []

    def add_job(self, output_path: Path, config_overrides: Optional[Dict[str, Any]] = None,
                job_name: Optional[str] = None):
        """
        Add a rendering job to the batch.

        Args:
            output_path: Output file path
            config_overrides: Configuration overrides for this job
            job_name: Optional name for the job
        """
        job = {
            'output_path': Path(output_path),
            'config_overrides': config_overrides or {},
            'job_name': job_name or f"job_{len(self.jobs)}",
            'status': 'pending'
        }
        self.jobs.append(job)

    def run_batch(self, progress_callback: Optional[callable] = None) -> List[Dict[str, Any]]:
        """
        Execute all jobs in the batch.

        A failed job is recorded and the batch continues.

        Args:
            progress_callback: Optional callback(completed, total, result)

        Returns:
            List of job results
        """
        results = []

        for i, job in enumerate(self.jobs):
            logger.info(f"Processing job {i+1}/{len(self.jobs)}: {job['job_name']}")

            try:
                config = RenderConfig(**{
                    **self.base_config.__dict__,
                    **job['config_overrides']
                })
                renderer = FernRenderer(config)

                start_time = time.time()
                renderer.render(job['output_path'])
                render_time = time.time() - start_time

                result = {
                    'job_name': job['job_name'],
                    'status': 'completed',
                    'render_time': render_time,
                    'output_path': str(job['output_path']),
                    'segments': renderer.last_stats['segments'],
                }
                job['status'] = 'completed'

            except (ValueError, TypeError, RuntimeError, OSError) as e:
                logger.error(f"Job {job['job_name']} failed: {e}")
                result = {
                    'job_name': job['job_name'],
                    'status': 'failed',
                    'error': str(e)
                }
                job['status'] = 'failed'

            results.append(result)

            if progress_callback:
                progress_callback(i + 1, len(self.jobs), result)

        self.results = results
        return results

    def get_summary(self) -> Dict[str, Any]:
        """Get batch processing summary."""
        if not self.results:
            return {'status': 'not_run'}

        completed = sum(1 for r in self.results if r['status'] == 'completed')
        failed = sum(1 for r in self.results if r['status'] == 'failed')
        total_time = sum(r.get('render_time', 0) for r in self.results)

        return {
            'total_jobs': len(self.results),
            'completed': completed,
            'failed': failed,
            'success_rate': completed / len(self.results),
            'total_render_time': total_time,
            'average_render_time': total_time / completed if completed > 0 else 0
        }
