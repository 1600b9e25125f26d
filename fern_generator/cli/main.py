"""
Command-line interface for fern rendering.

This module provides the ``fern-gen`` command for rendering ferns,
running batch jobs, and inspecting rendered images.
"""

import click
import sys
import json
from pathlib import Path
import logging
import time

from .. import __version__
from ..api import FernRenderer, BatchRenderer
from ..io.config import ConfigManager, load_config_from_args
from ..rendering.image_output import ImageExporter, show_image
from ..rendering.surface import RecordingSurface

logger = logging.getLogger(__name__)


def _fail(ctx, error: Exception):
    """Report an error and exit with status 1."""
    click.echo(f"Error: {error}", err=True)
    if ctx.obj.get('verbose'):
        import traceback
        traceback.print_exc()
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--config', type=click.Path(exists=True), help='Configuration file path (JSON or YAML)')
@click.option('--preset', help='Configuration preset to use')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, config, preset, verbose, quiet):
    """
    Fern Generator - procedural fractal fern images.

    Renders recursively branching ferns with a mirrored reflection and
    water ripples.
    """
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"Fern Generator v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['preset'] = preset
    ctx.obj['verbose'] = verbose

    if ctx.invoked_subcommand is None and not version:
        click.echo(ctx.get_help())


def _resolve_config(ctx, overrides):
    render_config, _ = load_config_from_args(ctx.obj.get('config_file'), ctx.obj.get('preset'))
    render_config = ConfigManager().apply_overrides(render_config, overrides)
    return render_config


def _fern_options(command):
    """Options shared by commands that render a fern."""
    options = [
        click.option('--width', '-w', type=int, help='Image width'),
        click.option('--height', '-h', type=int, help='Image height'),
        click.option('--depth', '-d', type=int, help='Recursion depth'),
        click.option('--angle', '-a', type=float, help='Curl angle in radians'),
        click.option('--growth', '-g', type=float, help='Stem growth factor (0-0.85)'),
        click.option('--fronds', '-f', 'frond_count', type=int, help='Number of fronds'),
        click.option('--seed', type=int, help='Random seed for a reproducible fern'),
        click.option('--background', help='Background color (name, hex, or "r,g,b")'),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def _parse_background(value):
    if value is None or ',' not in value:
        return value
    try:
        return tuple(int(part.strip()) for part in value.split(','))
    except ValueError:
        raise click.BadParameter("Use a color name, hex string, or 'r,g,b'", param_hint='--background')


@main.command()
@click.argument('output', type=click.Path())
@_fern_options
@click.option('--show', is_flag=True, help='Display the image after rendering')
@click.pass_context
def render(ctx, output, show, **kwargs):
    """
    Render a fern image.

    OUTPUT: Output image file path (.png, .tif, .tiff, .jpg, .jpeg)
    """
    try:
        kwargs['background'] = _parse_background(kwargs.get('background'))
        render_config = _resolve_config(ctx, kwargs)
        renderer = FernRenderer(render_config)

        click.echo(f"Rendering fern (depth {render_config.depth}, "
                   f"{render_config.frond_count} fronds)...")
        start_time = time.time()

        image = renderer.render(Path(output))

        render_time = time.time() - start_time
        click.echo(f"Render complete: {renderer.last_stats['segments']} segments, {render_time:.2f}s")
        click.echo(f"Saved: {output}")

        if show:
            show_image(image, title=Path(output).name)

    except (ValueError, RuntimeError, OSError) as e:
        _fail(ctx, e)


@main.command()
@_fern_options
@click.pass_context
def stats(ctx, **kwargs):
    """Count the draw calls a render would make, without rasterizing."""
    try:
        kwargs['background'] = _parse_background(kwargs.get('background'))
        render_config = _resolve_config(ctx, kwargs)
        renderer = FernRenderer(render_config)

        surface = RecordingSurface(render_config.width, render_config.height)
        renderer.render(surface=surface)

        click.echo(f"Curves:   {surface.count('curve')}")
        click.echo(f"Lines:    {surface.count('line')}")
        click.echo(f"Ellipses: {surface.count('ellipse')}")
        click.echo(f"Ripples:  {renderer.last_stats['ripples']}")

    except (ValueError, RuntimeError, OSError) as e:
        _fail(ctx, e)


@main.command()
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--output-dir', '-o', type=click.Path(), default='batch_output',
              help='Output directory for batch renders')
@click.option('--dry-run', is_flag=True, help='Show what would be rendered without actually rendering')
@click.pass_context
def batch(ctx, config_file, output_dir, dry_run):
    """
    Execute batch rendering jobs from a configuration file.

    CONFIG_FILE: Batch configuration file (JSON or YAML) with a
    'batch_jobs' list
    """
    try:
        manager = ConfigManager()
        batch_config = manager.load_config(config_file)

        if 'batch_jobs' not in batch_config:
            click.echo("Error: No 'batch_jobs' section found in config file", err=True)
            sys.exit(1)

        output_path = Path(output_dir)
        base_config = manager.create_render_config(batch_config)
        batch_renderer = BatchRenderer(base_config)

        for index, job_config in enumerate(batch_config['batch_jobs']):
            job_name = job_config.get('name', f"fern_{index}")
            output_file = output_path / job_config.get('output', f"{job_name}.png")
            overrides = dict(job_config.get('render_config', {}))
            if 'preset' in job_config:
                overrides = {**manager.get_preset(job_config['preset']), **overrides}

            if dry_run:
                click.echo(f"Would render: {job_name} -> {output_file}")
                continue

            batch_renderer.add_job(output_file, overrides, job_name)

        if dry_run:
            click.echo(f"Dry run complete. {len(batch_config['batch_jobs'])} jobs would be executed.")
            return

        output_path.mkdir(parents=True, exist_ok=True)
        click.echo(f"Starting batch render: {len(batch_renderer.jobs)} jobs")

        def progress_callback(completed, total, result):
            click.echo(f"Completed {completed}/{total}: {result['job_name']} ({result['status']})")

        batch_renderer.run_batch(progress_callback)

        summary = batch_renderer.get_summary()
        click.echo(f"\nBatch complete:")
        click.echo(f"  Jobs completed: {summary['completed']}/{summary['total_jobs']}")
        click.echo(f"  Success rate: {summary['success_rate']*100:.1f}%")
        click.echo(f"  Total time: {summary['total_render_time']:.2f}s")

        if summary['failed']:
            sys.exit(1)

    except (ValueError, OSError) as e:
        _fail(ctx, e)


@main.command()
@click.argument('image', type=click.Path(exists=True))
@click.option('--json', 'as_json', is_flag=True, help='Print the information as JSON')
@click.pass_context
def info(ctx, image, as_json):
    """
    Show information and render metadata for an image.

    IMAGE: Path to a rendered image
    """
    try:
        image_info = ImageExporter().get_image_info(Path(image))
    except (ValueError, OSError) as e:
        _fail(ctx, e)

    if as_json:
        click.echo(json.dumps(image_info, indent=2))
        return

    click.echo(f"File: {image_info['filepath']}")
    click.echo(f"Format: {image_info['format']} {image_info['mode']}")
    click.echo(f"Dimensions: {image_info['dimensions'][0]}x{image_info['dimensions'][1]}")

    metadata = image_info['fern_metadata']
    if not metadata:
        click.echo("No fern metadata found")
        return

    click.echo("Fern parameters:")
    for key in ('depth', 'angle', 'growth', 'frond_count', 'seed', 'segment_count'):
        click.echo(f"  {key}: {metadata[key]}")


@main.command()
def presets():
    """List available configuration presets."""
    manager = ConfigManager()
    for name in manager.list_presets():
        settings = manager.get_preset(name)
        summary = ', '.join(f"{k}={v}" for k, v in settings.items()) or 'defaults'
        click.echo(f"{name}: {summary}")


if __name__ == '__main__':
    main()
