"""Configuration module for Editverse."""

from editverse.config.settings import Settings, get_settings


__all__ = ["Settings", "get_settings"]
