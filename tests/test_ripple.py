"""Unit tests for ripple generation."""

import pytest

from fern_generator.core.fern import make_random_stream
from fern_generator.core.ripple import (
    RIPPLE_OPACITY,
    RIPPLE_STEPS,
    RIPPLE_STROKE,
    RippleEllipse,
    RippleGenerator,
)


def _ripple(stream, center=(100, 100), size=200):
    return list(RippleGenerator(stream).generate(center, size))


def test_first_ellipse_has_requested_size(scripted_stream):
    first = _ripple(scripted_stream(integer_values=[4]), size=173)[0]
    assert (first.width, first.height) == (173, 173)
    assert first.color == (255, 255, 255, RIPPLE_OPACITY)
    assert first.stroke_width == RIPPLE_STROKE
    assert first.center == (100, 100)


def test_divide_steps(scripted_stream):
    # random() > 0.5 divides by the step index
    ellipses = _ripple(scripted_stream(values=(0.9,), integer_values=[1]))
    assert [e.width for e in ellipses] == [200, 200, 100, 33, 8]
    assert [e.color[3] for e in ellipses] == [80, 80, 40, 26, 20]


def test_subtract_steps(scripted_stream):
    ellipses = _ripple(scripted_stream(values=(0.1,), integer_values=[2]))
    assert [e.width for e in ellipses] == [200, 180, 150, 110]
    assert [e.height for e in ellipses] == [200, 180, 150, 110]
    assert [e.color[3] for e in ellipses] == [80, 40, 26, 20]


def test_last_start_index_gives_one_extra_ellipse(scripted_stream):
    ellipses = _ripple(scripted_stream(values=(0.1,), integer_values=[RIPPLE_STEPS - 1]))
    assert len(ellipses) == 2
    assert ellipses[1].width == 200 - 10 * (RIPPLE_STEPS - 1)


def test_collapsed_ripple_clamps_to_zero(scripted_stream):
    ellipses = _ripple(scripted_stream(values=(0.1,), integer_values=[1]), size=20)
    assert [e.width for e in ellipses] == [20, 10, 0, 0, 0]
    assert [e.is_degenerate for e in ellipses] == [False, False, True, True, True]


def test_bounds_are_centered():
    ellipse = RippleEllipse(center=(50, 40), width=20, height=10, color=(255, 255, 255, 80))
    assert ellipse.bounds == (40.0, 35.0, 60.0, 45.0)


@pytest.mark.parametrize('seed', range(20))
def test_ripples_shrink_and_fade(seed):
    ellipses = _ripple(make_random_stream(seed), size=250)

    assert 2 <= len(ellipses) <= RIPPLE_STEPS
    assert ellipses[0].width == 250

    for previous, current in zip(ellipses, ellipses[1:]):
        assert current.width <= previous.width
        assert current.height <= previous.height
        assert current.width >= 0

    # Opacity falls with every shrink step
    step_opacities = [e.color[3] for e in ellipses[1:]]
    assert all(a > b for a, b in zip(step_opacities, step_opacities[1:]))
    assert all(o <= RIPPLE_OPACITY for o in step_opacities)
