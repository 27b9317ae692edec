"""
Configuration management for the textcfg settings engine.

This package provides typed settings models and loaders.
"""

from .models import EngineConfig, ProviderConfig, Settings
from .loader import load_engine_config, load_settings_from_file

__all__ = [
    "EngineConfig",
    "ProviderConfig",
    "Settings",
    "load_engine_config",
    "load_settings_from_file",
]
