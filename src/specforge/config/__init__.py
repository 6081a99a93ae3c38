"""Configuration management for SpecForge."""
from __future__ import annotations

from specforge.config.paths import SpecforgePaths, get_paths, reset_paths
from specforge.config.settings import Settings, get_settings_path, settings

__all__ = [
    "Settings",
    "SpecforgePaths",
    "get_paths",
    "get_settings_path",
    "reset_paths",
    "settings",
]
