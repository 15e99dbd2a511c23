"""
Media Layer.

This package is responsible for remote assets: fetching files over HTTP
and keeping the local cover image and lyrics file up to date.
"""

from .assets import AssetSync
from .fetcher import Fetcher

__all__ = ["AssetSync", "Fetcher"]
