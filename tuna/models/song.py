"""
Pydantic model for the "currently playing" song snapshot handed over by a music source.
"""

from enum import IntEnum, IntFlag
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class Capability(IntFlag):
    """Bitmask of the optional song fields a music source has populated."""

    NONE = 0
    TITLE = 1 << 0
    ARTIST = 1 << 1
    ALBUM = 1 << 2
    RELEASE = 1 << 3
    COVER = 1 << 4
    LYRICS = 1 << 5
    DURATION = 1 << 6
    PROGRESS = 1 << 7
    STATUS = 1 << 8
    LABEL = 1 << 9
    DISC_NUMBER = 1 << 10
    TRACK_NUMBER = 1 << 11


class PlayState(IntEnum):
    """Playback state. Everything from PAUSED upwards counts as not active."""

    PLAYING = 0
    PAUSED = 1
    STOPPED = 2
    UNKNOWN = 3


# Maps snapshot fields to the capability they imply when populated
FIELD_CAPABILITIES: dict[str, Capability] = {
    "title": Capability.TITLE,
    "artists": Capability.ARTIST,
    "album": Capability.ALBUM,
    "year": Capability.RELEASE,
    "cover_url": Capability.COVER,
    "lyrics_url": Capability.LYRICS,
    "duration_ms": Capability.DURATION,
    "progress_ms": Capability.PROGRESS,
    "state": Capability.STATUS,
    "label": Capability.LABEL,
    "disc_number": Capability.DISC_NUMBER,
    "track_number": Capability.TRACK_NUMBER,
}


class Song(BaseModel):
    """
    An immutable snapshot of the song that is currently playing.

    `cover_url` and `lyrics_url` point at remote resources which are fetched
    to the configured local paths. `capabilities` is stored as a plain int so
    that any combination of `Capability` bits validates; use `has()` to test it.
    """

    model_config = ConfigDict(frozen=True)

    capabilities: int = 0
    state: PlayState = PlayState.UNKNOWN
    title: str = ""
    artists: tuple[str, ...] = ()
    album: str = ""
    label: str = ""
    year: int = 0
    track_number: int = 0
    disc_number: int = 0
    duration_ms: int = 0
    progress_ms: int = 0
    cover_url: str = ""
    lyrics_url: str = ""

    @model_validator(mode="before")
    @classmethod
    def derive_capabilities(cls, data: Any) -> Any:
        """Fills in capabilities from the populated fields if the source sent none."""
        if not isinstance(data, dict) or data.get("capabilities") is not None:
            return data
        flags = Capability.NONE
        for key, capability in FIELD_CAPABILITIES.items():
            # PLAYING is 0, so a reported state counts as soon as the key is there
            if key == "state":
                populated = data.get(key) is not None
            else:
                populated = data.get(key) not in (None, "", 0, [], ())
            if populated:
                flags |= capability
        return {**data, "capabilities": int(flags)}

    @field_validator("state", mode="before")
    @classmethod
    def parse_state(cls, v: Any) -> Any:
        """Accepts state names ("playing", "Paused", ...) besides enum values."""
        if isinstance(v, str) and not v.isdigit():
            try:
                return PlayState[v.strip().upper()]
            except KeyError:
                raise ValueError(
                    f"Unknown play state '{v}'. "
                    f"Use one of: {', '.join(s.name.lower() for s in PlayState)}."
                ) from None
        return v

    @property
    def flags(self) -> Capability:
        return Capability(self.capabilities)

    def has(self, capability: Capability) -> bool:
        """True if every bit of `capability` is set on this song."""
        return self.capabilities & capability == capability

    @property
    def is_playing(self) -> bool:
        return self.state < PlayState.PAUSED
