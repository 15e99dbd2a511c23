"""
tuna: keeps "now playing" assets and text outputs in sync with the current song.
"""

__version__ = "1.0.0"
