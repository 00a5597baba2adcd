"""
Configuration module for layerstack.

Uses pydantic-settings for environment variable and YAML file loading.
"""

from layerstack.config.settings import Settings
from layerstack.config.sources import ConfigFileError

__all__ = ["ConfigFileError", "Settings"]
