"""Configuration loading."""

from densecluster.config.settings_loader import ConfigManager, Settings, get_settings

__all__ = ["ConfigManager", "Settings", "get_settings"]
