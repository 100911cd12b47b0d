"""Custom exception hierarchy for EventMatcher.

The recurrence engine itself fails soft and raises none of these; they are
used at the edges (configuration and input loading) so callers can tell
bad input apart from programming errors.
"""


class EventMatcherError(Exception):
    """Base exception for all EventMatcher errors."""


class ConfigError(EventMatcherError):
    """Configuration file could not be read or parsed.

    Raised when:
    - The config file is neither valid YAML nor valid JSON
    - The config file does not contain a mapping
    """


class ScheduleInputError(EventMatcherError):
    """Schedule item input could not be loaded.

    Raised when:
    - The input file is missing or unreadable
    - The input does not contain a list of schedule items
    - A record fails model validation
    - A requested item id is not present in the input
    """
