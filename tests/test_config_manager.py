"""Tests for loading and saving the INI configuration"""

import configparser

import pytest

from tuna.exceptions import ConfigurationError
from tuna.models.config import CompatibilityDecision
from tuna.storage.config_manager import (
    DEFAULT_PLACEHOLDER,
    ConfigManager,
)


@pytest.fixture
def config_file(temp_dir):
    return temp_dir / "config.ini"


@pytest.fixture
def manager(config_file):
    return ConfigManager(config_file)


def read_ini(path) -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None)
    parser.read(path, encoding="utf-8")
    return parser


def test_missing_file_raises(manager):
    with pytest.raises(ConfigurationError, match="tuna init"):
        manager.load_config()


def test_new_config_round_trip(manager, temp_dir):
    manager.save_new_config(
        {},
        [
            {"path": temp_dir / "song.txt", "format": "{title}"},
            {"path": temp_dir / "log.txt", "format": "{artist}", "log_mode": True},
        ],
    )

    config = manager.load_config()

    assert config.placeholder == DEFAULT_PLACEHOLDER
    assert config.assets.cover_path == temp_dir / "cover.png"
    assert config.assets.cover_placeholder == temp_dir / "placeholder.png"
    assert config.vlc_support is True
    assert [o.path.name for o in config.outputs] == ["song.txt", "log.txt"]
    assert config.outputs[1].log_mode is True
    assert config.decision == CompatibilityDecision.clean()


def test_placeholder_edge_spaces_survive(manager, config_file):
    manager.save_new_config({"placeholder": "  idle "})

    assert read_ini(config_file)["tuna"]["placeholder"] == "%s%sidle%s"
    assert manager.load_config().placeholder == "%s%sidle%s"


def test_percent_in_format_is_literal(manager, config_file, temp_dir):
    manager.save_new_config(
        {}, [{"path": temp_dir / "a.txt", "format": "%{?album,{album}|single}"}]
    )

    assert manager.load_config().outputs[0].format == "%{?album,{album}|single}"


def test_outputs_ordered_by_index(config_file, temp_dir):
    config_file.write_text(
        "[tuna]\n"
        "[output.10]\npath = " + str(temp_dir / "ten.txt") + "\n"
        "[output.2]\npath = " + str(temp_dir / "two.txt") + "\n",
        encoding="utf-8",
    )

    config = ConfigManager(config_file).load_config()

    assert [o.path.name for o in config.outputs] == ["two.txt", "ten.txt"]


def test_bad_output_section_name(config_file):
    config_file.write_text("[tuna]\n[output.main]\npath = x.txt\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="output.main"):
        ConfigManager(config_file).load_config()


def test_duplicate_output_paths_rejected(manager, temp_dir):
    manager.save_new_config(
        {}, [{"path": temp_dir / "a.txt"}, {"path": temp_dir / "a.txt"}]
    )

    with pytest.raises(ConfigurationError, match="configured twice"):
        manager.load_config()


def test_invalid_boolean(config_file):
    config_file.write_text("[tuna]\nvlc_support = maybe\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="vlc_support"):
        ConfigManager(config_file).load_config()


def test_migration_adds_missing_keys(config_file):
    config_file.write_text("[tuna]\nplaceholder = idle\n", encoding="utf-8")

    config = ConfigManager(config_file).load_config()

    parser = read_ini(config_file)
    assert config.placeholder == "idle"
    assert "lyrics_path" in parser["tuna"]
    assert parser["vlc"]["warning-shown"] == "false"


def test_decision_round_trip(manager):
    manager.save_new_config({})
    manager.save_decision(CompatibilityDecision(warning_shown=True, force_decision=True))

    decision = ConfigManager(manager.config_file_path).load_decision()

    assert decision.warning_shown is True
    assert decision.force_decision is True


def test_save_decision_keeps_other_sections(manager, config_file, temp_dir):
    manager.save_new_config({"placeholder": "idle"}, [{"path": temp_dir / "a.txt"}])
    manager.save_decision(CompatibilityDecision(warning_shown=True))

    parser = read_ini(config_file)
    assert parser["tuna"]["placeholder"] == "idle"
    assert parser.has_section("output.0")


def test_unknown_schema_is_clean(config_file):
    config_file.write_text(
        "[vlc]\nschema_version = 99\nwarning-shown = true\nforce-decision = true\n",
        encoding="utf-8",
    )

    assert ConfigManager(config_file).load_decision() == CompatibilityDecision.clean()


def test_missing_file_gives_clean_decision(manager):
    assert manager.load_decision() == CompatibilityDecision.clean()


def test_non_utf8_file_raises_configuration_error(config_file):
    config_file.write_bytes(b"[tuna]\nplaceholder = \xff\xfe\n")

    with pytest.raises(ConfigurationError, match="Error parsing"):
        ConfigManager(config_file).load_config()
