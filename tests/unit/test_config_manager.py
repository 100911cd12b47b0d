"""Unit tests for eventmatcher.core.config_manager."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from eventmatcher.core.config_manager import (
    Config,
    ConfigManager,
    load_config,
    parse_env_file,
)
from eventmatcher.exceptions import ConfigError

pytestmark = pytest.mark.unit


@pytest.fixture
def missing_env_file(tmp_path: Path) -> Path:
    """Path to a .env file that does not exist."""
    return tmp_path / "absent.env"


class TestParseEnvFile:
    """Tests for parse_env_file."""

    def test_parses_key_values(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\n"
            "\n"
            "EVENTMATCHER_LOG_LEVEL=debug\n"
            'QUOTED="value with spaces"\n'
            "SINGLE='x'\n"
            "NOEQUALS\n"
            " SPACED = 7 \n"
        )

        assert parse_env_file(env_file) == {
            "EVENTMATCHER_LOG_LEVEL": "debug",
            "QUOTED": "value with spaces",
            "SINGLE": "x",
            "SPACED": "7",
        }

    def test_missing_file(self, missing_env_file):
        assert parse_env_file(missing_env_file) == {}


class TestConfigFromDict:
    """Tests for Config.from_dict."""

    def test_defaults(self):
        cfg = Config.from_dict(None)
        assert cfg == Config()
        assert cfg.weekly_search_horizon == 52
        assert cfg.daily_search_horizon == 365
        assert cfg.slot_minutes == 15
        assert cfg.log_level == "INFO"

    def test_string_numbers_are_coerced(self):
        cfg = Config.from_dict({"weekly_search_horizon": "10", "log_level": "debug"})
        assert cfg.weekly_search_horizon == 10
        assert cfg.log_level == "DEBUG"

    def test_out_of_range_values_are_clamped(self, caplog):
        cfg = Config.from_dict({"daily_search_horizon": 0, "slot_minutes": 1000})

        assert cfg.daily_search_horizon == 1
        assert cfg.slot_minutes == 240
        assert "below minimum" in caplog.text
        assert "above maximum" in caplog.text

    def test_non_integer_falls_back_to_default(self, caplog):
        cfg = Config.from_dict({"weekly_search_horizon": "lots"})

        assert cfg.weekly_search_horizon == 52
        assert "is not an int" in caplog.text


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_env_file_does_not_override_environment(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("EVENTMATCHER_LOG_LEVEL=DEBUG\nEVENTMATCHER_SLOT_MINUTES=30\n")

        with patch.dict(os.environ, {"EVENTMATCHER_LOG_LEVEL": "ERROR"}):
            loaded = ConfigManager(env_file).load_env_file()

            assert loaded == ["EVENTMATCHER_SLOT_MINUTES"]
            assert os.environ["EVENTMATCHER_LOG_LEVEL"] == "ERROR"
            assert os.environ["EVENTMATCHER_SLOT_MINUTES"] == "30"

    def test_missing_env_file(self, missing_env_file):
        assert ConfigManager(missing_env_file).load_env_file() == []

    def test_build_config_from_env(self, missing_env_file):
        env = {
            "EVENTMATCHER_WEEKLY_SEARCH_HORIZON": "26",
            "EVENTMATCHER_DAILY_SEARCH_HORIZON": "",
            "UNRELATED": "x",
        }
        with patch.dict(os.environ, env):
            cfg = ConfigManager(missing_env_file).build_config_from_env()

        assert cfg == {"weekly_search_horizon": "26"}


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, missing_env_file):
        assert load_config(env_file_path=missing_env_file) == Config()

    def test_yaml_file(self, tmp_path, missing_env_file):
        path = tmp_path / "eventmatcher.yaml"
        path.write_text("log_level: warning\nweekly_search_horizon: 104\n")

        cfg = load_config(str(path), env_file_path=missing_env_file)

        assert cfg.log_level == "WARNING"
        assert cfg.weekly_search_horizon == 104

    def test_json_file(self, tmp_path, missing_env_file):
        path = tmp_path / "eventmatcher.json"
        path.write_text(json.dumps({"slot_minutes": 30}))

        assert load_config(str(path), env_file_path=missing_env_file).slot_minutes == 30

    def test_path_from_environment(self, tmp_path, missing_env_file, monkeypatch):
        path = tmp_path / "eventmatcher.yaml"
        path.write_text("daily_search_horizon: 30\n")
        monkeypatch.setenv("EVENTMATCHER_CONFIG", str(path))

        assert load_config(env_file_path=missing_env_file).daily_search_horizon == 30

    def test_environment_overrides_file(self, tmp_path, missing_env_file, monkeypatch):
        path = tmp_path / "eventmatcher.yaml"
        path.write_text("weekly_search_horizon: 104\n")
        monkeypatch.setenv("EVENTMATCHER_WEEKLY_SEARCH_HORIZON", "8")

        assert load_config(str(path), env_file_path=missing_env_file).weekly_search_horizon == 8

    def test_env_file_values_apply(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("EVENTMATCHER_DAILY_SEARCH_HORIZON=90\n")

        with patch.dict(os.environ, {}):
            cfg = load_config(env_file_path=env_file)

        assert cfg.daily_search_horizon == 90

    def test_missing_config_file_uses_defaults(self, tmp_path, missing_env_file, caplog):
        cfg = load_config(str(tmp_path / "nope.yaml"), env_file_path=missing_env_file)

        assert cfg == Config()
        assert "not found" in caplog.text

    def test_empty_yaml_file(self, tmp_path, missing_env_file):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(str(path), env_file_path=missing_env_file) == Config()

    def test_invalid_yaml_raises(self, tmp_path, missing_env_file):
        path = tmp_path / "broken.yaml"
        path.write_text("log_level: [unclosed\n")

        with pytest.raises(ConfigError, match="Unable to parse"):
            load_config(str(path), env_file_path=missing_env_file)

    def test_non_mapping_raises(self, tmp_path, missing_env_file):
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(str(path), env_file_path=missing_env_file)
