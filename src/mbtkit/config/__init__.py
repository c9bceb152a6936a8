"""Configuration loading utilities for mbtkit."""

from .loader import AccessConfig, ConfigLoader, load_config

__all__ = ["AccessConfig", "ConfigLoader", "load_config"]
