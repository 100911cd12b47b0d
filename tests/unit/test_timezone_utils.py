"""Unit tests for eventmatcher.core.timezone_utils."""

import datetime
import logging

import pytest

from eventmatcher.core.timezone_utils import TEST_TIME_ENV, TimeProvider, now_utc

pytestmark = pytest.mark.unit


def test_now_utc_is_aware_and_current():
    before = datetime.datetime.now(datetime.timezone.utc)
    result = now_utc()
    after = datetime.datetime.now(datetime.timezone.utc)

    assert result.tzinfo is not None
    assert before <= result <= after


def test_test_time_override(monkeypatch):
    monkeypatch.setenv(TEST_TIME_ENV, "2024-03-08T12:00:00-05:00")

    assert now_utc() == datetime.datetime(2024, 3, 8, 17, 0, tzinfo=datetime.timezone.utc)


def test_naive_override_is_utc(monkeypatch):
    monkeypatch.setenv(TEST_TIME_ENV, "2024-03-08T17:00:00")

    result = now_utc()

    assert result.utcoffset() == datetime.timedelta(0)
    assert result.hour == 17


def test_invalid_override_falls_back_to_real_time(monkeypatch, caplog):
    monkeypatch.setenv(TEST_TIME_ENV, "not-a-time")

    with caplog.at_level(logging.WARNING):
        result = now_utc()

    assert result.year >= 2024
    assert "Failed to parse" in caplog.text


def test_custom_env_var(monkeypatch):
    monkeypatch.setenv("OTHER_CLOCK", "2030-01-01T00:00:00Z")

    provider = TimeProvider("OTHER_CLOCK")

    assert provider.now_utc().year == 2030
