"""
Storage Layer.

This package handles the persisted build configuration file.
"""

from .config_manager import DEFAULT_CONFIG_FILE, ConfigManager

__all__ = ["DEFAULT_CONFIG_FILE", "ConfigManager"]
