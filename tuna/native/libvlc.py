"""
libVLC bindings loaded at runtime through ctypes, plus the stub used when
VLC support is switched off.
"""

import ctypes
import ctypes.util
import logging

from tuna.exceptions import ModuleLoadError

from .base import NativeModule

log = logging.getLogger(__name__)

# Library names tried with ctypes.util.find_library, in order
LIBRARY_NAMES = ("vlc", "libvlc")

# name -> (restype, argtypes)
LIBVLC_FUNCTIONS = {
    "libvlc_new": (ctypes.c_void_p, [ctypes.c_int, ctypes.c_void_p]),
    "libvlc_release": (None, [ctypes.c_void_p]),
    "libvlc_get_version": (ctypes.c_char_p, []),
}


class LibVlcModule(NativeModule):
    """Loads libVLC and keeps one libVLC instance alive while loaded."""

    name = "libVLC"

    def __init__(self, library_path: str | None = None) -> None:
        super().__init__()
        self.library_path = library_path
        self._lib: ctypes.CDLL | None = None
        self._functions: dict = {}
        self._instance: int | None = None
        self.version: str | None = None

    @property
    def instance(self) -> int | None:
        """The libvlc_instance_t pointer, or None when not loaded."""
        return self._instance

    def _find_library(self) -> str | None:
        if self.library_path:
            return self.library_path
        for name in LIBRARY_NAMES:
            if path := ctypes.util.find_library(name):
                return path
        return None

    def load_library(self) -> None:
        path = self._find_library()
        if not path:
            raise ModuleLoadError("libVLC shared library not found")
        try:
            self._lib = ctypes.CDLL(path)
        except OSError as e:
            raise ModuleLoadError(f"Couldn't open '{path}': {e}") from e
        log.debug(f"Opened libVLC from '{path}'")

    def resolve_functions(self) -> None:
        for func_name, (restype, argtypes) in LIBVLC_FUNCTIONS.items():
            try:
                func = getattr(self._lib, func_name)
            except AttributeError:
                raise ModuleLoadError(f"Missing symbol '{func_name}'") from None
            func.restype = restype
            func.argtypes = argtypes
            self._functions[func_name] = func

    def initialize(self) -> None:
        instance = self._functions["libvlc_new"](0, None)
        if not instance:
            raise ModuleLoadError("libvlc_new() did not return an instance")
        self._instance = instance
        if raw_version := self._functions["libvlc_get_version"]():
            self.version = raw_version.decode("utf-8", errors="replace")
        log.info(f"Loaded libVLC {self.version or ''}. VLC source support enabled")

    def release(self) -> None:
        if self._instance and "libvlc_release" in self._functions:
            self._functions["libvlc_release"](self._instance)
        self._instance = None
        self._functions = {}
        self._lib = None
        self.version = None


class DisabledModule(NativeModule):
    """Stand-in used when VLC support is disabled; every stage fails."""

    name = "libVLC (disabled)"
    available = False

    def load_library(self) -> None:
        raise ModuleLoadError("VLC support is disabled")

    def resolve_functions(self) -> None:
        raise ModuleLoadError("VLC support is disabled")

    def initialize(self) -> None:
        raise ModuleLoadError("VLC support is disabled")

    def release(self) -> None:
        pass


def create_vlc_module(enabled: bool, library_path: str | None = None) -> NativeModule:
    """Picks the real libVLC loader or the disabled stub."""
    if enabled:
        return LibVlcModule(library_path)
    return DisabledModule()
