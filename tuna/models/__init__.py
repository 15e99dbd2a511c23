"""
Data Models Layer.

This package contains the models that define the core data structures
used throughout the application: the song snapshot, configuration and statistics.
"""

from .config import AssetPaths, CompatibilityDecision, OutputTarget, TunaConfig
from .song import Capability, PlayState, Song
from .stats import SyncStats

__all__ = [
    "AssetPaths",
    "Capability",
    "CompatibilityDecision",
    "OutputTarget",
    "PlayState",
    "Song",
    "SyncStats",
    "TunaConfig",
]
