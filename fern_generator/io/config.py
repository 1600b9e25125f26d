"""
Configuration management for fern rendering.

Render settings can come from four layers, applied in order: the
``RenderConfig`` defaults, a named preset, a JSON or YAML config file, and
``FERN_*`` environment variables. Command-line options are applied on top
by the CLI.
"""

import json
import os
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
import logging

import yaml

from ..api import RenderConfig

logger = logging.getLogger(__name__)


PRESETS: Dict[str, Dict[str, Any]] = {
    'default': {},
    'sparse': {'depth': 3, 'frond_count': 3, 'growth': 0.3},
    'lush': {'depth': 5, 'frond_count': 7, 'growth': 0.6},
    'curly': {'depth': 4, 'angle': 0.35, 'growth': 0.55},
    'straight': {'depth': 4, 'angle': 0.0, 'growth': 0.5},
    'thumbnail': {'width': 256, 'height': 256, 'depth': 3, 'stem_ripple_size': 40,
                  'ripple_size_range': (40, 90)},
}

# Fields that hold pairs and arrive from JSON/YAML as lists
_TUPLE_FIELDS = {'reflection_offset', 'ripple_size_range', 'background'}


def _int_or_float(raw: str) -> Union[int, float]:
    value = float(raw)
    return int(value) if value.is_integer() else value


def _config_field_types() -> Dict[str, Any]:
    return {f.name: f.type for f in fields(RenderConfig)}


class EnvironmentConfig:
    """Reads render overrides from ``FERN_*`` environment variables."""

    PREFIX = 'FERN_'

    CONVERTERS = {
        'width': int,
        'height': int,
        'depth': _int_or_float,
        'angle': float,
        'growth': float,
        'frond_count': int,
        'seed': int,
        'background': str,
        'reflection_opacity': int,
        'main_opacity': int,
        'jpeg_quality': int,
    }

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def get_overrides(self) -> Dict[str, Any]:
        """Collect overrides from the environment."""
        overrides = {}
        for key, convert in self.CONVERTERS.items():
            raw = self.environ.get(self.PREFIX + key.upper())
            if raw is None or raw == '':
                continue
            try:
                overrides[key] = convert(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {self.PREFIX}{key.upper()}: {raw!r}") from e
        if overrides:
            logger.debug(f"Environment overrides: {overrides}")
        return overrides


class ConfigManager:
    """Loads, merges and saves render configuration."""

    def __init__(self, presets: Optional[Dict[str, Dict[str, Any]]] = None):
        self.presets = dict(PRESETS if presets is None else presets)

    def list_presets(self):
        return sorted(self.presets)

    def get_preset(self, name: str) -> Dict[str, Any]:
        """Get a named preset's overrides."""
        if name not in self.presets:
            available = ', '.join(self.list_presets())
            raise ValueError(f"Unknown preset '{name}'. Available: {available}")
        return dict(self.presets[name])

    def load_config(self, filepath: Union[str, Path]) -> Dict[str, Any]:
        """
        Load a JSON or YAML configuration file.

        Args:
            filepath: Path to a .json, .yaml or .yml file

        Returns:
            Parsed configuration dictionary
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        with open(filepath, 'r', encoding='utf-8') as f:
            if suffix == '.json':
                data = json.load(f)
            elif suffix in ('.yaml', '.yml'):
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid YAML in {filepath}: {e}") from e
            else:
                raise ValueError(f"Unsupported config format '{suffix}'. Use .json, .yaml or .yml")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {filepath} must contain a mapping")

        logger.info(f"Loaded config: {filepath}")
        return data

    def save_config(self, config: RenderConfig, filepath: Union[str, Path]) -> None:
        """Save a render configuration as JSON or YAML."""
        filepath = Path(filepath)
        data = config.to_dict()
        for key in _TUPLE_FIELDS:
            if isinstance(data.get(key), tuple):
                data[key] = list(data[key])

        with open(filepath, 'w', encoding='utf-8') as f:
            if filepath.suffix.lower() == '.json':
                json.dump(data, f, indent=2)
            else:
                yaml.safe_dump(data, f, sort_keys=False)

        logger.info(f"Saved config: {filepath}")

    def create_render_config(self, data: Dict[str, Any],
                             base: Optional[RenderConfig] = None) -> RenderConfig:
        """
        Build a RenderConfig from a configuration mapping.

        Only the ``render`` section is used when present; otherwise the
        top-level keys are. Unknown keys are rejected.
        """
        section = data.get('render', data)
        if not isinstance(section, dict):
            raise ValueError("The 'render' section must be a mapping")
        known = _config_field_types()

        values = dict((base or RenderConfig()).__dict__)
        for key, value in section.items():
            if key in ('batch_jobs', 'render', 'preset'):
                continue
            if key not in known:
                raise ValueError(f"Unknown configuration parameter: {key}")
            if key in _TUPLE_FIELDS and isinstance(value, list):
                value = tuple(value)
            values[key] = value

        config = RenderConfig(**values)
        config.validate()
        return config

    def apply_overrides(self, config: RenderConfig, overrides: Dict[str, Any]) -> RenderConfig:
        """Return a validated copy of config with non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        for key in changes:
            if not hasattr(config, key):
                raise ValueError(f"Unknown configuration parameter: {key}")
        updated = replace(config, **changes)
        updated.validate()
        return updated


def load_config_from_args(config_file: Optional[str] = None,
                          preset: Optional[str] = None,
                          environ: Optional[Dict[str, str]] = None) -> Tuple[RenderConfig, Dict[str, Any]]:
    """
    Resolve the render configuration for a CLI invocation.

    Layers: defaults, preset (argument or ``preset`` key in the file),
    config file, environment.

    Returns:
        Tuple of (render_config, raw_file_data)
    """
    manager = ConfigManager()
    file_data = manager.load_config(config_file) if config_file else {}

    preset = preset or file_data.get('preset')
    config = RenderConfig()
    if preset:
        config = manager.create_render_config(manager.get_preset(preset), config)
        logger.info(f"Using preset: {preset}")

    if file_data:
        config = manager.create_render_config(file_data, config)

    env_overrides = EnvironmentConfig(environ).get_overrides()
    if env_overrides:
        config = manager.apply_overrides(config, env_overrides)

    return config, file_data
