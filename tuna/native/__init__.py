"""
Native Modules.

Optional native add-ons loaded at runtime. Currently only libVLC, which
backs the VLC music source.
"""

from .base import ModuleState, NativeModule
from .libvlc import DisabledModule, LibVlcModule, create_vlc_module

__all__ = [
    "DisabledModule",
    "LibVlcModule",
    "ModuleState",
    "NativeModule",
    "create_vlc_module",
]
