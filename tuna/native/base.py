"""
Load/unload lifecycle shared by all optional native modules.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum

from tuna.exceptions import ModuleLoadError

log = logging.getLogger(__name__)


class ModuleState(Enum):
    """States of a native module handle."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class NativeModule(ABC):
    """
    A dynamically loaded native module.

    Loading runs three stages in order (open the library, resolve its
    functions, initialize it); the module counts as loaded only if all of
    them succeed. `unload()` is safe to call in any state, any number of times.
    """

    name = "native module"
    available = True

    def __init__(self) -> None:
        self._state = ModuleState.UNLOADED

    @property
    def state(self) -> ModuleState:
        """Current handle state."""
        return self._state

    @property
    def loaded(self) -> bool:
        return self._state is ModuleState.LOADED

    @abstractmethod
    def load_library(self) -> None:
        """Opens the shared library. Raises ModuleLoadError on failure."""

    @abstractmethod
    def resolve_functions(self) -> None:
        """Looks up the functions used from the library. Raises ModuleLoadError on failure."""

    @abstractmethod
    def initialize(self) -> None:
        """Creates the library's runtime state. Raises ModuleLoadError on failure."""

    @abstractmethod
    def release(self) -> None:
        """Frees whatever the stages acquired, including after a partial load."""

    def load(self) -> bool:
        """Runs the load sequence. Returns True if the module is loaded afterwards."""
        if self._state is ModuleState.LOADED:
            return True

        self._state = ModuleState.LOADING
        try:
            self.load_library()
            self.resolve_functions()
            self.initialize()
        except ModuleLoadError as e:
            log.warning(f"[yellow]Couldn't load {self.name}:[/yellow] {e}")
            self._release()
            self._state = ModuleState.FAILED
            return False

        self._state = ModuleState.LOADED
        return True

    def unload(self) -> None:
        """Releases the module and returns the handle to the unloaded state."""
        if self._state is not ModuleState.UNLOADED:
            self._release()
        self._state = ModuleState.UNLOADED

    def _release(self) -> None:
        try:
            self.release()
        except (OSError, ModuleLoadError) as e:
            log.warning(f"Error while releasing {self.name}: {e}")
