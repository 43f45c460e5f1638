"""
Configuration Module

Settings (pydantic-settings) and shared constants.
"""

from .constants import CacheSource, Stage
from .settings import Settings, get_settings, reload_settings

__all__ = [
    "CacheSource",
    "Settings",
    "Stage",
    "get_settings",
    "reload_settings",
]
