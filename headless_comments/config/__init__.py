"""Configuration: environment settings and runtime options store."""

from headless_comments.config.settings import Settings, get_settings


__all__ = ["Settings", "get_settings"]
