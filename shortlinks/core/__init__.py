"""Core package - configuration, shortcode store and remote logging."""

from .config import settings, get_settings, Settings

__all__ = [
    "settings",
    "get_settings",
    "Settings",
]
