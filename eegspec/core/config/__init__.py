"""
Config - Application configuration.

- settings.py: Dataclass settings from environment
"""

from .settings import (
    Settings,
    LogLevel,
    DEFAULT_MAX_OPEN_FILES,
    get_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "LogLevel",
    "DEFAULT_MAX_OPEN_FILES",
    "get_settings",
    "reset_settings",
]
