"""Tests for cardinal spline sampling."""

import numpy as np
import pytest

from fern_generator.rendering.curves import (
    DEFAULT_SAMPLES,
    cardinal_bezier_controls,
    sample_curve,
)


@pytest.fixture
def bent_points():
    return [(0.0, 0.0), (40.0, -10.0), (45.0, -12.0)]


def test_curve_passes_through_all_points(bent_points):
    polyline = sample_curve(bent_points)

    np.testing.assert_allclose(polyline[0], bent_points[0])
    np.testing.assert_allclose(polyline[-1], bent_points[-1])
    # Pieces join at the middle point
    np.testing.assert_allclose(polyline[DEFAULT_SAMPLES - 1], bent_points[1])


def test_sample_count(bent_points):
    polyline = sample_curve(bent_points, samples_per_segment=5)
    assert polyline.shape == (9, 2)


def test_collinear_points_stay_on_line():
    polyline = sample_curve([(0.0, 0.0), (40.0, 0.0), (45.0, 0.0)])
    np.testing.assert_allclose(polyline[:, 1], 0.0, atol=1e-12)


def test_tiny_curve_returns_points():
    points = [(1.0, 1.0), (1.5, 1.0), (1.6, 1.0)]
    np.testing.assert_allclose(sample_curve(points), points)


def test_controls_shape_and_endpoints(bent_points):
    controls = cardinal_bezier_controls(np.array(bent_points))
    assert controls.shape == (2, 4, 2)
    np.testing.assert_allclose(controls[0, 0], bent_points[0])
    np.testing.assert_allclose(controls[0, 3], bent_points[1])
    np.testing.assert_allclose(controls[1, 3], bent_points[2])


def test_zero_tension_gives_straight_pieces(bent_points):
    controls = cardinal_bezier_controls(np.array(bent_points), tension=0.0)
    np.testing.assert_allclose(controls[0, 1], controls[0, 0])
    np.testing.assert_allclose(controls[0, 2], controls[0, 3])


def test_invalid_input():
    with pytest.raises(ValueError):
        cardinal_bezier_controls(np.array([(0.0, 0.0)]))
    with pytest.raises(ValueError):
        sample_curve([(0.0, 0.0), (10.0, 10.0)], samples_per_segment=1)
