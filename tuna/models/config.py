"""
Pydantic models for application configuration.
Provides robust validation for all settings.
"""

from pathlib import Path
from typing import Any

from pathvalidate import sanitize_filepath
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Version of the persisted compatibility decision record
DECISION_SCHEMA_VERSION = 1

# Two-character token standing for a single space in the placeholder text
SPACE_MARKER = "%s"


def encode_placeholder(text: str) -> str:
    """Encodes the leading and trailing spaces configparser would strip as markers."""
    core = text.strip(" ")
    if not core:
        return SPACE_MARKER * len(text)
    lead = len(text) - len(text.lstrip(" "))
    trail = len(text) - len(text.rstrip(" "))
    return SPACE_MARKER * lead + core + SPACE_MARKER * trail


def _clean_path(value: Any, field_name: str) -> Path:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValueError(f"{field_name} cannot be empty.")
    return Path(sanitize_filepath(text, platform="auto")).expanduser()


class OutputTarget(BaseModel):
    """
    A file the rendered song text is written to.

    `last_output` caches the text most recently written to `path` and is
    never persisted.
    """

    model_config = ConfigDict(validate_assignment=True)

    path: Path
    format: str = ""
    log_mode: bool = False
    last_output: str | None = Field(default=None, exclude=True, repr=False)

    @field_validator("path", mode="before")
    @classmethod
    def validate_path(cls, v: Any) -> Path:
        return _clean_path(v, "Output path")


class AssetPaths(BaseModel):
    """Locations of the live cover, its placeholder and the lyrics file."""

    model_config = ConfigDict(frozen=True)

    cover_path: Path
    cover_placeholder: Path
    lyrics_path: Path

    @field_validator("cover_path", "cover_placeholder", "lyrics_path", mode="before")
    @classmethod
    def validate_paths(cls, v: Any, info) -> Path:
        return _clean_path(v, info.field_name)

    @property
    def cover_tmp_path(self) -> Path:
        """Sibling path the cover is downloaded to before it replaces the live file."""
        return self.cover_path.with_name(self.cover_path.name + ".tmp")

    @model_validator(mode="after")
    def validate_distinct(self) -> "AssetPaths":
        if self.cover_path == self.cover_placeholder:
            raise ValueError("cover_path and cover_placeholder must be different files.")
        return self


class CompatibilityDecision(BaseModel):
    """
    The persisted outcome of a host version mismatch.

    `warning_shown` records that the user was already asked during the current
    mismatch episode, `force_decision` holds the answer.
    """

    model_config = ConfigDict(frozen=True)

    schema_version: int = DECISION_SCHEMA_VERSION
    warning_shown: bool = False
    force_decision: bool = False

    @classmethod
    def clean(cls) -> "CompatibilityDecision":
        return cls()


class TunaConfig(BaseModel):
    """A validated configuration model for the application."""

    placeholder: str = ""
    assets: AssetPaths
    outputs: list[OutputTarget] = Field(default_factory=list)
    vlc_support: bool = True
    decision: CompatibilityDecision = Field(default_factory=CompatibilityDecision)

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    @model_validator(mode="after")
    def validate_unique_outputs(self) -> "TunaConfig":
        """Two targets sharing a file would overwrite each other's text."""
        seen: set[Path] = set()
        for output in self.outputs:
            if output.path in seen:
                raise ValueError(f"Output path '{output.path}' is configured twice.")
            seen.add(output.path)
        return self

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns the keys expected in the [tuna] section of the INI file."""
        return {"placeholder", "vlc_support"} | set(AssetPaths.model_fields)
