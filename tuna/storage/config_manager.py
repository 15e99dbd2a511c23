"""
Manages loading, validation, and migration of the INI configuration file,
including the persisted VLC compatibility decision.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tuna.exceptions import ConfigurationError
from tuna.models.config import (
    DECISION_SCHEMA_VERSION,
    CompatibilityDecision,
    TunaConfig,
    encode_placeholder,
)

log = logging.getLogger(__name__)

MAIN_SECTION = "tuna"
DECISION_SECTION = "vlc"
OUTPUT_SECTION_PREFIX = "output."

KEY_WARNING_SHOWN = "warning-shown"
KEY_FORCE_DECISION = "force-decision"
KEY_SCHEMA_VERSION = "schema_version"

DEFAULT_PLACEHOLDER = "Nothing playing"
DEFAULT_OUTPUT_FORMAT = "{title} - {artists}"


def default_settings(config_dir: Path) -> dict[str, Any]:
    """Settings a fresh configuration file starts from."""
    return {
        "placeholder": DEFAULT_PLACEHOLDER,
        "cover_path": str(config_dir / "cover.png"),
        "cover_placeholder": str(config_dir / "placeholder.png"),
        "lyrics_path": str(config_dir / "lyrics.txt"),
        "vlc_support": True,
    }


def _ini_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        # Interpolation is off so '%' in templates and the '%s' marker stay literal
        self._parser = configparser.ConfigParser(interpolation=None)

    def _new_parser(self) -> configparser.ConfigParser:
        return configparser.ConfigParser(interpolation=None)

    def _read(self, parser: configparser.ConfigParser) -> None:
        try:
            parser.read(self.config_file_path, encoding="utf-8")
        except (configparser.Error, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

    def _write(self, parser: configparser.ConfigParser) -> None:
        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                parser.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def load_config(self, overrides: dict[str, Any] | None = None) -> TunaConfig:
        """
        Loads configuration from the INI file, applies overrides, and validates it.

        Args:
            overrides: Values replacing those of the [tuna] section.

        Returns:
            A validated TunaConfig object.

        Raises:
            ConfigurationError: If the config file is missing, invalid, or validation
            fails.
        """
        if not self.config_file_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'. "
                "Please run 'tuna init' first."
            )

        self._read(self._parser)

        if self._migrate_if_needed():
            log.info(
                "[yellow]Configuration file was updated with new default values."
                "[/yellow]"
            )

        config_from_file = self._get_config_as_dict()
        if overrides:
            config_from_file.update(overrides)

        try:
            return TunaConfig(
                placeholder=config_from_file["placeholder"],
                assets={
                    key: config_from_file[key]
                    for key in ("cover_path", "cover_placeholder", "lyrics_path")
                },
                outputs=self._get_outputs(),
                vlc_support=config_from_file["vlc_support"],
                decision=self.load_decision(),
                config_path=str(self.config_file_path.parent),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(
        self, settings: dict[str, Any], outputs: list[dict[str, Any]] | None = None
    ) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: Values for the [tuna] section; missing keys use defaults.
            outputs: Output target definitions (path, format, log_mode).
        """
        parser = self._new_parser()
        defaults = default_settings(self.config_file_path.parent)

        parser[MAIN_SECTION] = {
            key: _ini_value(settings.get(key, defaults[key]))
            for key in sorted(TunaConfig.get_ini_keys())
        }
        parser[MAIN_SECTION]["placeholder"] = encode_placeholder(
            str(settings.get("placeholder", defaults["placeholder"]))
        )
        parser[DECISION_SECTION] = self._decision_to_section(
            CompatibilityDecision.clean()
        )
        for index, output in enumerate(outputs or []):
            parser[f"{OUTPUT_SECTION_PREFIX}{index}"] = {
                "path": str(output["path"]),
                "format": output.get("format", DEFAULT_OUTPUT_FORMAT),
                "log_mode": _ini_value(output.get("log_mode", False)),
            }

        self._write(parser)

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the [tuna] section of the INI file into a dictionary."""
        section = self._parser[MAIN_SECTION]
        defaults = default_settings(self.config_file_path.parent)
        try:
            vlc_support = section.getboolean("vlc_support", defaults["vlc_support"])
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for 'vlc_support': {e}") from e
        return {
            # A placeholder needing edge spaces is written with the '%s' marker
            "placeholder": section.get("placeholder", defaults["placeholder"]),
            "cover_path": section.get("cover_path", defaults["cover_path"]),
            "cover_placeholder": section.get(
                "cover_placeholder", defaults["cover_placeholder"]
            ),
            "lyrics_path": section.get("lyrics_path", defaults["lyrics_path"]),
            "vlc_support": vlc_support,
        }

    def _get_outputs(self) -> list[dict[str, Any]]:
        """Builds the output targets from the [output.N] sections, ordered by N."""
        indexed = []
        for name in self._parser.sections():
            if not name.startswith(OUTPUT_SECTION_PREFIX):
                continue
            suffix = name[len(OUTPUT_SECTION_PREFIX) :]
            if not suffix.isdigit():
                raise ConfigurationError(
                    f"Invalid output section '[{name}]', expected '[output.<number>]'."
                )
            indexed.append((int(suffix), self._parser[name]))

        outputs = []
        for index, section in sorted(indexed, key=lambda item: item[0]):
            try:
                log_mode = section.getboolean("log_mode", False)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for 'log_mode' in [output.{index}]: {e}"
                ) from e
            outputs.append(
                {
                    "path": section.get("path", ""),
                    "format": section.get("format", ""),
                    "log_mode": log_mode,
                }
            )
        return outputs

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = default_settings(self.config_file_path.parent)
        needs_saving = False

        for section_name in (MAIN_SECTION, DECISION_SECTION):
            if not self._parser.has_section(section_name):
                self._parser.add_section(section_name)
                needs_saving = True

        main_section = self._parser[MAIN_SECTION]
        for key in sorted(TunaConfig.get_ini_keys()):
            if key not in main_section:
                main_section[key] = _ini_value(defaults[key])
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{main_section[key]}'."
                )

        decision_section = self._parser[DECISION_SECTION]
        for key, value in self._decision_to_section(
            CompatibilityDecision.clean()
        ).items():
            if key not in decision_section:
                decision_section[key] = value
                needs_saving = True

        if needs_saving:
            try:
                self._write(self._parser)
            except ConfigurationError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving

    @staticmethod
    def _decision_to_section(decision: CompatibilityDecision) -> dict[str, str]:
        return {
            KEY_SCHEMA_VERSION: str(decision.schema_version),
            KEY_WARNING_SHOWN: _ini_value(decision.warning_shown),
            KEY_FORCE_DECISION: _ini_value(decision.force_decision),
        }

    def load_decision(self) -> CompatibilityDecision:
        """
        Reads the persisted VLC compatibility decision.

        A missing file or section, or a record written with another schema
        version, yields a clean decision.
        """
        parser = self._new_parser()
        if self.config_file_path.is_file():
            self._read(parser)
        if not parser.has_section(DECISION_SECTION):
            return CompatibilityDecision.clean()

        section = parser[DECISION_SECTION]
        try:
            schema_version = section.getint(KEY_SCHEMA_VERSION, DECISION_SCHEMA_VERSION)
            if schema_version != DECISION_SCHEMA_VERSION:
                log.debug(
                    f"Ignoring VLC decision record with schema version {schema_version}."
                )
                return CompatibilityDecision.clean()
            return CompatibilityDecision(
                schema_version=schema_version,
                warning_shown=section.getboolean(KEY_WARNING_SHOWN, False),
                force_decision=section.getboolean(KEY_FORCE_DECISION, False),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid VLC decision record: {e}") from e

    def save_decision(self, decision: CompatibilityDecision) -> None:
        """Persists the decision without touching the rest of the file."""
        parser = self._new_parser()
        if self.config_file_path.is_file():
            self._read(parser)
        parser[DECISION_SECTION] = self._decision_to_section(decision)
        self._write(parser)
