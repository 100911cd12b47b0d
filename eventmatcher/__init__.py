"""eventmatcher - recurrence expansion for event and availability schedules.

Imports are kept light here; the engine lives in
``eventmatcher.calendar.recurrence_expander``.
"""

__version__ = "0.1.0"

from typing import Any, Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Attach a colored stderr handler to the root logger and set its level.

    EVENTMATCHER_DEBUG ("1", "true", "yes", "on") forces DEBUG. An existing
    root handler is left alone so embedding applications keep their setup.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    if os.environ.get("EVENTMATCHER_DEBUG", "").strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(
            ColoredFormatter("%(log_color)s%(levelname)s%(reset)s %(name)s: %(message)s")
        )
        root.addHandler(handler)

    root.setLevel(getattr(logging, (level_name or "INFO").upper(), logging.INFO))


def run(args: Any) -> Any:
    """Execute one CLI command and return its JSON-serializable result.

    Args:
        args: Parsed argparse namespace with ``command`` and its options

    Raises:
        ScheduleInputError: If the input file or requested item is unusable
        ConfigError: If the config file cannot be parsed
    """
    import logging
    import os

    _init_logging(getattr(args, "log_level", None) or os.environ.get("EVENTMATCHER_LOG_LEVEL"))
    logger = logging.getLogger(__name__)

    from .cli_commands import execute
    from .core.config_manager import load_config
    from .logging_config import configure_logging

    cfg = load_config(getattr(args, "config", None))
    configure_logging(log_level=getattr(args, "log_level", None) or cfg.log_level)
    logger.debug("Resolved configuration: %s", cfg)

    return execute(args, cfg)
