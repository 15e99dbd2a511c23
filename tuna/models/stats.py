"""
Dataclass for tracking refresh session statistics.
"""

from dataclasses import dataclass


@dataclass
class SyncStats:
    """Counts what the refresh cycles of a session did."""

    cycles: int = 0
    covers_fetched: int = 0
    covers_failed: int = 0
    covers_reset: int = 0
    lyrics_fetched: int = 0
    lyrics_failed: int = 0
    outputs_written: int = 0
    outputs_unchanged: int = 0
    outputs_suppressed: int = 0
    outputs_failed: int = 0

    @property
    def failures(self) -> int:
        return self.covers_failed + self.lyrics_failed + self.outputs_failed
