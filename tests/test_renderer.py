"""Tests for the fern compositor and batch renderer."""

import numpy as np
import pytest

from fern_generator.api import BatchRenderer, FernRenderer, RenderConfig, frond_angle
from fern_generator.rendering.image_output import ImageExporter
from fern_generator.rendering.surface import RecordingSurface


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def small_config():
    """Small, fast, reproducible render."""
    return RenderConfig(width=160, height=120, depth=2, frond_count=3, seed=7)


class FailingSurface(RecordingSurface):
    """Recording surface that breaks after a number of curves."""

    def __init__(self, width, height, fail_after):
        super().__init__(width, height)
        self.fail_after = fail_after

    def draw_curve(self, points, color, width):
        if self.count('curve') >= self.fail_after:
            raise RuntimeError("surface lost")
        super().draw_curve(points, color, width)


# ============================================================================
# CONFIGURATION
# ============================================================================

def test_default_config_is_valid():
    RenderConfig().validate()


@pytest.mark.parametrize('overrides', [
    {'growth': 1.0},
    {'growth': 1.5},
    {'depth': 0},
    {'width': 0},
    {'width': 12.5},
    {'frond_count': -1},
    {'background': 'not-a-color'},
    {'reflection_opacity': 300},
    {'min_ripples': 5, 'max_ripples': 5},
    {'ripple_size_range': (300, 150)},
    {'seed': -3},
    {'reflection_opacity': 'high'},
    {'main_opacity': None},
    {'angle': 'left'},
    {'min_ripples': 2.5},
    {'ripple_size_range': ('small', 'large')},
    {'ripple_size_range': 150},
    {'stem_ripple_size': '100'},
    {'jpeg_quality': 95.0},
    {'reflection_offset': ('a', 'b')},
    {'background': 5},
    {'background': ('red', 0, 0)},
])
def test_invalid_config_rejected(overrides):
    with pytest.raises(ValueError):
        FernRenderer(RenderConfig(**overrides))


def test_real_depth_renders():
    renderer = FernRenderer(RenderConfig(width=100, height=80, depth=2.0, frond_count=1, seed=2))
    surface = RecordingSurface(100, 80)
    renderer.render(surface=surface)
    assert surface.count('curve') > 0


def test_frond_angles():
    assert frond_angle(0, 4) == pytest.approx(np.pi / 4)
    assert frond_angle(2, 4) == pytest.approx(np.pi + np.pi / 4)


# ============================================================================
# COMPOSITION
# ============================================================================

def test_composition_order(small_config):
    renderer = FernRenderer(small_config)
    calls = renderer.render(surface=RecordingSurface(160, 120))
    kinds = [c.kind for c in calls]

    assert kinds[0] == 'fill'
    assert kinds.count('fill') == 1

    first_ellipse = kinds.index('ellipse')
    last_ellipse = len(kinds) - 1 - kinds[::-1].index('ellipse')
    first_line = kinds.index('line')

    # Reflection, then ripples, then stem lines with the main fern
    assert all(c.color[3] == small_config.reflection_opacity
               for c in calls[1:first_ellipse])
    assert all(k == 'ellipse' for k in kinds[first_ellipse:last_ellipse + 1])
    assert first_line == last_ellipse + 1
    assert all(c.color[3] == small_config.main_opacity
               for c in calls[first_line:] if c.kind == 'curve')
    assert kinds.count('line') == small_config.frond_count


def test_reflection_and_main_centers(small_config):
    renderer = FernRenderer(small_config)
    calls = renderer.render(surface=RecordingSurface(160, 120))
    curves = [c for c in calls if c.kind == 'curve']
    lines = [c for c in calls if c.kind == 'line']

    assert curves[0].points[0] == (90, 72)
    assert lines[0].points == ((80, 60), (90, 72))
    assert lines[0].color == (0, 0, 0, 255)
    assert lines[0].width == 4


def test_stem_ripple_at_reflection_center(small_config):
    renderer = FernRenderer(small_config)
    calls = renderer.render(surface=RecordingSurface(160, 120))
    ellipses = [c for c in calls if c.kind == 'ellipse']
    # Outermost stem ripple ellipse is 100 px wide around the reflection center
    assert ((40.0, 22.0), (140.0, 122.0)) in [c.points for c in ellipses]


def test_stats_match_draw_calls(small_config):
    renderer = FernRenderer(small_config)
    surface = RecordingSurface(160, 120)
    renderer.render(surface=surface)

    stats = renderer.last_stats
    assert stats['segments'] == surface.count('curve')
    assert stats['ellipses'] == surface.count('ellipse')
    assert stats['lines'] == surface.count('line')
    assert 3 <= stats['ripples'] <= 8


def test_zero_fronds_draws_background_and_ripples_only():
    renderer = FernRenderer(RenderConfig(width=100, height=100, frond_count=0, seed=1))
    surface = RecordingSurface(100, 100)
    renderer.render(surface=surface)

    assert surface.count('fill') == 1
    assert surface.count('curve') == 0
    assert surface.count('line') == 0
    assert surface.count('ellipse') >= 1


def test_invalid_growth_draws_nothing(small_config):
    renderer = FernRenderer(small_config)
    renderer.config.growth = 1.2
    surface = RecordingSurface(160, 120)

    with pytest.raises(ValueError, match="growth"):
        renderer.render(surface=surface)
    assert surface.calls == []
    assert not surface.published


def test_failed_render_is_not_published(small_config, tmp_path):
    renderer = FernRenderer(small_config)
    surface = FailingSurface(160, 120, fail_after=5)
    output = tmp_path / "fern.png"

    with pytest.raises(RuntimeError, match="surface lost"):
        renderer.render(output, surface=surface)
    assert not surface.published
    assert not output.exists()


def test_unsupported_output_rejected_before_drawing(small_config, tmp_path):
    renderer = FernRenderer(small_config)
    surface = RecordingSurface(160, 120)
    with pytest.raises(ValueError, match="Unsupported format"):
        renderer.render(tmp_path / "fern.gif", surface=surface)
    assert surface.calls == []


# ============================================================================
# RASTER OUTPUT
# ============================================================================

def test_raster_render(small_config):
    image = FernRenderer(small_config).render()
    assert image.shape == (120, 160, 3)
    assert image.dtype == np.uint8
    # Background, fern greens and ripple whites
    assert len(np.unique(image.reshape(-1, 3), axis=0)) > 2


def test_seeded_renders_are_identical(small_config):
    first = FernRenderer(small_config).render()
    second = FernRenderer(RenderConfig(**small_config.__dict__)).render()
    np.testing.assert_array_equal(first, second)


def test_render_saves_metadata(small_config, tmp_path):
    output = tmp_path / "fern.png"
    renderer = FernRenderer(small_config)
    renderer.render(output)

    assert output.exists()
    metadata = ImageExporter().extract_metadata_from_image(output)
    assert metadata.depth == 2
    assert metadata.frond_count == 3
    assert metadata.seed == 7
    assert metadata.resolution == (160, 120)
    assert metadata.segment_count == renderer.last_stats['segments']


def test_update_config_reseeds(small_config):
    renderer = FernRenderer(small_config)
    first = renderer.render()
    renderer.update_config(seed=7)
    np.testing.assert_array_equal(first, renderer.render())

    with pytest.raises(ValueError, match="Unknown configuration parameter"):
        renderer.update_config(colour='red')


def test_failed_update_keeps_previous_config(small_config):
    renderer = FernRenderer(small_config)

    with pytest.raises(ValueError, match="growth"):
        renderer.update_config(growth=1.5, depth=3)

    assert renderer.config.growth == small_config.growth
    assert renderer.config.depth == 2
    renderer.render(surface=RecordingSurface(160, 120))


# ============================================================================
# BATCH
# ============================================================================

def test_batch_renders_and_records_failures(small_config, tmp_path):
    batch = BatchRenderer(small_config)
    batch.add_job(tmp_path / "a.png", {'depth': 1}, 'shallow')
    batch.add_job(tmp_path / "b.png", {'growth': 2.0}, 'broken')
    batch.add_job(tmp_path / "c.jpg")

    progress = []
    results = batch.run_batch(lambda done, total, result: progress.append((done, total)))

    assert [r['status'] for r in results] == ['completed', 'failed', 'completed']
    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert (tmp_path / "a.png").exists()
    assert not (tmp_path / "b.png").exists()
    assert (tmp_path / "c.json").exists()

    summary = batch.get_summary()
    assert summary['completed'] == 2
    assert summary['failed'] == 1


def test_batch_summary_before_run():
    assert BatchRenderer().get_summary() == {'status': 'not_run'}
