"""Shared fixtures for eventmatcher tests."""

import logging
from collections.abc import Generator
from typing import Any

import pytest

from eventmatcher.logging_config import PACKAGE_MODULES, SUPPRESSED_LOGGERS
from eventmatcher.models import ScheduleItem

ENV_VARS = (
    "EVENTMATCHER_TEST_TIME",
    "EVENTMATCHER_DEBUG",
    "EVENTMATCHER_LOG_LEVEL",
    "EVENTMATCHER_CONFIG",
    "EVENTMATCHER_WEEKLY_SEARCH_HORIZON",
    "EVENTMATCHER_DAILY_SEARCH_HORIZON",
    "EVENTMATCHER_SLOT_MINUTES",
)


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "fast: Tests that finish in milliseconds")


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear eventmatcher environment variables so host settings never leak into tests.

    EVENTMATCHER_TEST_TIME in particular freezes the clock used by
    next_occurrence when no explicit lower bound is passed.
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def restore_logging() -> Generator[None, Any, None]:
    """Restore logger levels touched by logging configuration and CLI tests."""
    names = ["", *PACKAGE_MODULES, *SUPPRESSED_LOGGERS]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


@pytest.fixture
def monday_template() -> ScheduleItem:
    """Weekly template: Mondays 09:00-10:00 UTC, no exceptions, open-ended."""
    return ScheduleItem(
        id="standup",
        start_time="2024-01-01T09:00:00Z",
        end_time="2024-01-01T10:00:00Z",
        is_recurring=True,
        day_of_week=1,
    )


@pytest.fixture
def daily_template() -> ScheduleItem:
    """Daily template: 08:00-08:30 UTC, open-ended."""
    return ScheduleItem(
        id="checkin",
        start_time="2024-01-01T08:00:00Z",
        end_time="2024-01-01T08:30:00Z",
        is_recurring=True,
    )
