"""
Smooth curve sampling.

Branch segments are drawn as cardinal splines through their points, the
same curve family GDI+ and most 2D toolkits use for "draw curve". The
spline is converted to cubic Bezier pieces and sampled into a dense
polyline for raster backends without native curve support.
"""

import numpy as np
from typing import Sequence, Tuple
from functools import lru_cache

DEFAULT_TENSION = 0.5
DEFAULT_SAMPLES = 12

# Below this chord length (pixels) a curve is indistinguishable from its points
MIN_SMOOTH_LENGTH = 2.0


@lru_cache(maxsize=16)
def _bernstein_matrix(samples: int) -> np.ndarray:
    """Cubic Bernstein basis evaluated at ``samples`` evenly spaced t values."""
    t = np.linspace(0.0, 1.0, samples)
    mt = 1.0 - t
    return np.stack([mt ** 3, 3 * mt ** 2 * t, 3 * mt * t ** 2, t ** 3], axis=1)


def cardinal_bezier_controls(points: np.ndarray, tension: float = DEFAULT_TENSION) -> np.ndarray:
    """
    Convert a cardinal spline into cubic Bezier control points.

    Args:
        points: (N, 2) array of points the curve passes through
        tension: Spline tension (0 gives straight segments)

    Returns:
        (N-1, 4, 2) array of Bezier control polygons, one per segment
    """
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 2 or len(points) < 2:
        raise ValueError(f"Expected at least two 2D points, got shape {points.shape}")

    # End points act as their own neighbours
    padded = np.vstack([points[:1], points, points[-1:]])
    tangents = (padded[2:] - padded[:-2]) * (tension / 3.0)

    controls = np.empty((len(points) - 1, 4, 2))
    controls[:, 0] = points[:-1]
    controls[:, 1] = points[:-1] + tangents[:-1]
    controls[:, 2] = points[1:] - tangents[1:]
    controls[:, 3] = points[1:]
    return controls


def sample_curve(points: Sequence[Tuple[float, float]], tension: float = DEFAULT_TENSION,
                 samples_per_segment: int = DEFAULT_SAMPLES) -> np.ndarray:
    """
    Sample a cardinal spline through the given points.

    The returned polyline starts at the first point, ends at the last one,
    and passes through every intermediate point.

    Args:
        points: Points the curve passes through
        tension: Spline tension
        samples_per_segment: Samples per Bezier piece (>= 2)

    Returns:
        (M, 2) array of polyline vertices
    """
    if samples_per_segment < 2:
        raise ValueError("samples_per_segment must be >= 2")

    points = np.asarray(points, dtype=np.float64)
    chord = np.sum(np.hypot(*np.diff(points, axis=0).T))
    if chord < MIN_SMOOTH_LENGTH:
        return points

    controls = cardinal_bezier_controls(points, tension)
    basis = _bernstein_matrix(samples_per_segment)

    # (S, 4) @ (K, 4, 2) -> (K, S, 2); drop each piece's first sample after the first
    pieces = np.einsum('sj,kjd->ksd', basis, controls)
    return np.vstack([pieces[0], pieces[1:, 1:].reshape(-1, 2)])
