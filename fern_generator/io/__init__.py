"""Configuration loading."""

from .config import ConfigManager, EnvironmentConfig, PRESETS, load_config_from_args

__all__ = ["ConfigManager", "EnvironmentConfig", "PRESETS", "load_config_from_args"]
