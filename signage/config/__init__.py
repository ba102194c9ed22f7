"""Configuration helpers for the signage player."""

from .loader import ConfigError, ConfigValidationError, SettingsLoader, deep_merge, load_settings

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "SettingsLoader",
    "deep_merge",
    "load_settings",
]
