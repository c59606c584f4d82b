"""Configuration module - settings and business constants."""

from yunshui.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
