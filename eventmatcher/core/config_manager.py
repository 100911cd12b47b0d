"""Configuration management for eventmatcher.

Settings come from an optional YAML/JSON file, then environment variables
(optionally seeded from a .env file) override individual keys.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "EVENTMATCHER_CONFIG"

# Environment variable -> Config field
ENV_KEYS: dict[str, str] = {
    "EVENTMATCHER_LOG_LEVEL": "log_level",
    "EVENTMATCHER_WEEKLY_SEARCH_HORIZON": "weekly_search_horizon",
    "EVENTMATCHER_DAILY_SEARCH_HORIZON": "daily_search_horizon",
    "EVENTMATCHER_SLOT_MINUTES": "slot_minutes",
}


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Handles KEY=VALUE format with optional whitespace
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return {}

    for raw_line in content.splitlines():
        line = raw_line.strip()

        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")

        if key:
            result[key] = val

    return result


@dataclass
class Config:
    """Typed configuration for eventmatcher.

    Fields:
        log_level: logging level name
        weekly_search_horizon: weekly candidates scanned by next_occurrence (1..520)
        daily_search_horizon: daily candidates scanned by next_occurrence (1..3650)
        slot_minutes: bucket size for availability aggregation (5..240)
        slot_increment_minutes: alignment required of availability slot edges
        min_slot_minutes: shortest allowed availability slot
    """

    log_level: str = "INFO"
    weekly_search_horizon: int = 52
    daily_search_horizon: int = 365
    slot_minutes: int = 15
    slot_increment_minutes: int = 15
    min_slot_minutes: int = 30

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int and clamped to their allowed
        range, with a warning logged for every coercion.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int, low: int, high: int) -> int:
            raw = data.get(key, default)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default
            if value < low:
                logger.warning("Config %s=%d below minimum; coercing to %d", key, value, low)
                return low
            if value > high:
                logger.warning("Config %s=%d above maximum; coercing to %d", key, value, high)
                return high
            return value

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            log_level=log_level,
            weekly_search_horizon=_coerce_int("weekly_search_horizon", 52, 1, 520),
            daily_search_horizon=_coerce_int("daily_search_horizon", 365, 1, 3650),
            slot_minutes=_coerce_int("slot_minutes", 15, 5, 240),
            slot_increment_minutes=_coerce_int("slot_increment_minutes", 15, 1, 60),
            min_slot_minutes=_coerce_int("min_slot_minutes", 30, 1, 1440),
        )


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        parsed = parse_env_file(self.env_file_path)

        set_keys = []
        for key, val in parsed.items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - EVENTMATCHER_LOG_LEVEL -> 'log_level'
        - EVENTMATCHER_WEEKLY_SEARCH_HORIZON -> 'weekly_search_horizon'
        - EVENTMATCHER_DAILY_SEARCH_HORIZON -> 'daily_search_horizon'
        - EVENTMATCHER_SLOT_MINUTES -> 'slot_minutes'

        Returns:
            Configuration dictionary suitable for Config.from_dict
        """
        cfg: dict[str, Any] = {}
        for env_key, cfg_key in ENV_KEYS.items():
            value = os.environ.get(env_key)
            if value:
                cfg[cfg_key] = value
        return cfg


def _load_yaml_or_json(path: Path) -> dict[str, Any]:
    """Load a mapping from a YAML or JSON file, chosen by extension."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read config file {path}: {exc}") from exc

    try:
        if path.suffix.lower() == ".json":
            loaded = json.loads(text)
        else:
            import yaml  # noqa: PLC0415

            loaded = yaml.safe_load(text)
    except Exception as exc:
        raise ConfigError(f"Unable to parse config file {path}: {exc}") from exc

    # safe_load can return None for empty files
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(loaded).__name__}")
    return loaded


def load_config(path: str | None = None, env_file_path: Path | None = None) -> Config:
    """Load configuration from a YAML/JSON file plus environment overrides.

    Args:
        path: Optional path to the config file. Falls back to EVENTMATCHER_CONFIG;
            when neither is set, or the file does not exist, defaults are used.
        env_file_path: Optional .env file whose values seed the environment

    Returns:
        Config instance

    Raises:
        ConfigError: If the config file exists but cannot be parsed
    """
    manager = ConfigManager(env_file_path)
    manager.load_env_file()

    data: dict[str, Any] = {}
    cfg_path = path or os.environ.get(CONFIG_PATH_ENV)
    if cfg_path:
        p = Path(cfg_path)
        if p.exists():
            data = _load_yaml_or_json(p)
            logger.debug("Loaded config from %s", p)
        else:
            logger.warning("Config file %s not found; using defaults", p)

    data.update(manager.build_config_from_env())
    return Config.from_dict(data)
