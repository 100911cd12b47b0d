"""Current-time provider for eventmatcher."""

from __future__ import annotations

import datetime
import logging
import os

logger = logging.getLogger(__name__)

TEST_TIME_ENV = "EVENTMATCHER_TEST_TIME"


class TimeProvider:
    """Provides current time with test time override support."""

    def __init__(self, env_var: str = TEST_TIME_ENV):
        """Initialize time provider.

        Args:
            env_var: Environment variable consulted for a frozen test time
        """
        self.env_var = env_var

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via the EVENTMATCHER_TEST_TIME environment variable.
        Format: ISO 8601 datetime string (e.g., "2024-03-08T17:00:00Z")

        Returns:
            Current time in UTC with timezone info
        """
        test_time = os.environ.get(self.env_var)
        if test_time:
            try:
                from dateutil import parser as date_parser

                dt = date_parser.isoparse(test_time)
                if dt.tzinfo is not None:
                    return dt.astimezone(datetime.timezone.utc)
                # Assume naive datetime is already UTC
                return dt.replace(tzinfo=datetime.timezone.utc)

            except ValueError as e:
                logger.warning("Failed to parse %s=%r: %s", self.env_var, test_time, e)
                # Fall through to real time

        return datetime.datetime.now(datetime.timezone.utc)


# Singleton instance for global use
_time_provider = TimeProvider()


def now_utc() -> datetime.datetime:
    """Get current UTC time (convenience function).

    Returns:
        Current time in UTC
    """
    return _time_provider.now_utc()
