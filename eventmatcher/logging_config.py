"""
Central logging configuration for eventmatcher.

Keeps eventmatcher's own loggers at INFO (or DEBUG when troubleshooting)
while holding chatty third-party libraries at WARNING.
"""

import logging
import os
from typing import Optional

PACKAGE_MODULES = [
    "eventmatcher",
    "eventmatcher.calendar.recurrence_expander",
    "eventmatcher.domain.availability_validation",
    "eventmatcher.domain.availability_aggregation",
    "eventmatcher.core.config_manager",
    "eventmatcher.core.timezone_utils",
    "eventmatcher.cli_commands",
]

SUPPRESSED_LOGGERS = [
    "dateutil",
]


def configure_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> None:
    """
    Configure logging levels for eventmatcher.

    Args:
        debug_mode: Whether to enable debug logging for eventmatcher modules
        force_debug: Override debug mode setting (None to use env var detection)
        log_level: Root level name (e.g. from config); EVENTMATCHER_LOG_LEVEL wins over it

    Environment Variables:
        EVENTMATCHER_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        EVENTMATCHER_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("EVENTMATCHER_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("EVENTMATCHER_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if not final_debug and log_level and log_level.upper() in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, log_level.upper())
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Only add basic config if no handlers exist (preserve colorful setup from __init__.py)
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s")
        )
        root_logger.addHandler(handler)

    logger_config: dict[str, int] = {name: logging.WARNING for name in SUPPRESSED_LOGGERS}

    package_level = logging.DEBUG if root_level == logging.DEBUG else max(root_level, logging.INFO)
    for module in PACKAGE_MODULES:
        logger_config[module] = package_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.debug("Debug logging enabled for eventmatcher modules")


def reset_logging_to_debug() -> None:
    """
    Reset all loggers to DEBUG level for troubleshooting.
    """
    logging.getLogger().setLevel(logging.DEBUG)

    for logger_name in SUPPRESSED_LOGGERS + PACKAGE_MODULES:
        logging.getLogger(logger_name).setLevel(logging.DEBUG)

    logging.getLogger().info("All loggers reset to DEBUG level for troubleshooting")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}

    for logger_name in ["eventmatcher", "dateutil"]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)

    return status
