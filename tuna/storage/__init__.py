"""
Storage Layer.

This package handles data persistence: the INI configuration file and the
VLC compatibility decision stored alongside it.
"""

from .config_manager import ConfigManager

__all__ = ["ConfigManager"]
