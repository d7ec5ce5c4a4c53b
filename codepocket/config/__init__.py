"""Configuration package."""

from codepocket.config.settings import Settings, settings

__all__ = [
    "Settings",
    "settings",
]
