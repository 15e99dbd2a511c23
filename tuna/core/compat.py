"""
Gates the optional native VLC module behind a host API version check.

On a version mismatch the user is asked once whether to load the module
anyway; the answer is persisted and reused until the host version matches
again, which resets the decision.
"""

import logging
from enum import Enum
from typing import Callable, Protocol

from tuna.exceptions import CompatibilityError, ConfigurationError
from tuna.models.config import CompatibilityDecision
from tuna.native.base import NativeModule

log = logging.getLogger(__name__)

T_ERROR_TITLE = "tuna: version mismatch"
T_VLC_VERSION_ISSUE = (
    "The host reports API version {host} but tuna was built against {expected}. "
    "Loading VLC support anyway may crash the host. Enable VLC support?"
)


def make_version(major: int, minor: int, patch: int) -> int:
    """Packs a version triple into a single integer."""
    return (major & 0xFF) << 24 | (minor & 0xFF) << 16 | (patch & 0xFF)


def parse_version(text: str) -> int:
    """Parses 'major.minor.patch' (missing parts default to 0) into a packed version."""
    parts = text.strip().split(".")
    if not 1 <= len(parts) <= 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid version '{text}', expected 'major.minor.patch'.")
    numbers = [int(p) for p in parts] + [0] * (3 - len(parts))
    if any(n > 0xFF for n in numbers):
        raise ValueError(f"Invalid version '{text}', parts must be below 256.")
    return make_version(*numbers)


def format_version(version: int) -> str:
    major = version >> 24 & 0xFF
    minor = version >> 16 & 0xFF
    patch = version & 0xFF
    return f"{major}.{minor}.{patch}"


# Host API version this build of tuna targets
HOST_API_VERSION = make_version(30, 0, 0)


class GateState(Enum):
    """Outcome of the compatibility check."""

    UNCHECKED = "unchecked"
    COMPATIBLE = "compatible"
    INCOMPATIBLE_DECLINED = "incompatible-declined"
    INCOMPATIBLE_FORCED = "incompatible-forced"


class DecisionStore(Protocol):
    """Durable storage for the compatibility decision record."""

    def load_decision(self) -> CompatibilityDecision: ...

    def save_decision(self, decision: CompatibilityDecision) -> None: ...


# prompt(title, message) -> True for "yes"
Prompt = Callable[[str, str], bool]


class CompatibilityGate:
    """Decides whether to load the native module and owns its lifecycle."""

    def __init__(
        self,
        module: NativeModule,
        store: DecisionStore,
        prompt: Prompt | None = None,
        expected_version: int = HOST_API_VERSION,
    ):
        self.module = module
        self.store = store
        self.prompt = prompt
        self.expected_version = expected_version
        self.state = GateState.UNCHECKED

    @property
    def loaded(self) -> bool:
        return self.module.loaded

    def _load_decision(self) -> CompatibilityDecision:
        try:
            return self.store.load_decision()
        except ConfigurationError as e:
            log.warning(f"Couldn't read the VLC decision, assuming none was made: {e}")
            return CompatibilityDecision.clean()

    def _save_decision(self, decision: CompatibilityDecision) -> None:
        try:
            self.store.save_decision(decision)
        except ConfigurationError as e:
            log.warning(f"Couldn't persist the VLC decision: {e}")

    def check(self, host_version: int) -> bool:
        """
        Compares `host_version` with the targeted version and resolves whether
        the module may be loaded, persisting the decision.
        """
        try:
            self._verify(host_version)
        except CompatibilityError as e:
            log.warning(f"[yellow]{e}[/yellow]")
            proceed = self._resolve_mismatch(host_version)
            self.state = (
                GateState.INCOMPATIBLE_FORCED
                if proceed
                else GateState.INCOMPATIBLE_DECLINED
            )
            return proceed

        # reset warning config
        self._save_decision(CompatibilityDecision.clean())
        self.state = GateState.COMPATIBLE
        return True

    def _verify(self, host_version: int) -> None:
        if host_version != self.expected_version:
            raise CompatibilityError(
                f"Host API version {format_version(host_version)} is invalid. "
                f"tuna expects {format_version(self.expected_version)} "
                "for VLC sources to work"
            )

    def _resolve_mismatch(self, host_version: int) -> bool:
        decision = self._load_decision()
        result = decision.force_decision

        if decision.warning_shown:
            log.debug(f"Reusing persisted VLC decision: {result}")
        elif self.prompt is None:
            # Nobody to ask; keep the warning pending for an interactive run
            log.debug("No prompt available, VLC decision stays unresolved.")
            return result
        else:
            # First startup with this mismatch, ask the user
            result = self.prompt(
                T_ERROR_TITLE,
                T_VLC_VERSION_ISSUE.format(
                    host=format_version(host_version),
                    expected=format_version(self.expected_version),
                ),
            )

        if result:
            log.warning("[yellow]User force enabled VLC support[/yellow]")
        self._save_decision(
            decision.model_copy(update={"warning_shown": True, "force_decision": result})
        )
        return result

    def start(self, host_version: int) -> bool:
        """Runs the check and, if it allows it, loads the module. Returns True if loaded."""
        if not self.module.available:
            log.debug(f"{self.module.name} is not available, skipping version check.")
            return False

        if self.check(host_version) and not self.module.load():
            log.warning(
                "[yellow]Couldn't load libVLC, VLC source support disabled[/yellow]"
            )
        return self.module.loaded

    def unload(self) -> None:
        """Unloads the module. Safe to call whether or not it was ever loaded."""
        self.module.unload()
