"""Unit tests for eventmatcher.models."""

from datetime import UTC, date, datetime, timedelta

import pytest
from pydantic import ValidationError

from eventmatcher.models import (
    AvailabilityItem,
    EventItem,
    Participant,
    ScheduleItem,
    ScheduleItemType,
)

pytestmark = pytest.mark.unit


class TestScheduleItem:
    """Tests for ScheduleItem normalization."""

    def test_timestamps_are_utc(self):
        item = ScheduleItem(
            id="a", start_time="2024-03-04T10:00:00+01:00", end_time="2024-03-04T11:00:00+01:00"
        )
        assert item.start_time == datetime(2024, 3, 4, 9, 0, tzinfo=UTC)
        assert item.start_time.utcoffset() == timedelta(0)
        assert item.duration == timedelta(hours=1)

    def test_defaults(self):
        item = ScheduleItem(
            id="a", start_time="2024-03-04T09:00:00Z", end_time="2024-03-04T10:00:00Z"
        )
        assert item.is_recurring is False
        assert item.day_of_week is None
        assert item.recurrence_end_date is None
        assert item.exception_dates == []
        assert item.type is None

    def test_integer_id_is_string(self):
        item = ScheduleItem(id=42, start_time="2024-03-04", end_time="2024-03-04")
        assert item.id == "42"

    def test_null_fields_are_normalized(self):
        item = ScheduleItem(
            id="a",
            start_time="2024-03-04T09:00:00Z",
            end_time="2024-03-04T10:00:00Z",
            is_recurring=None,
            recurrence_end_date="",
            exception_dates=None,
        )
        assert item.is_recurring is False
        assert item.recurrence_end_date is None
        assert item.exception_dates == []

    def test_exception_dates_accept_mixed_forms(self):
        item = ScheduleItem(
            id="a",
            start_time="2024-03-04T09:00:00Z",
            end_time="2024-03-04T10:00:00Z",
            exception_dates=["2024-03-11", "2024-03-18T00:00:00.000Z", date(2024, 3, 25)],
        )
        assert item.exception_dates == [date(2024, 3, 11), date(2024, 3, 18), date(2024, 3, 25)]

    def test_single_exception_date_is_wrapped(self):
        item = ScheduleItem(
            id="a",
            start_time="2024-03-04T09:00:00Z",
            end_time="2024-03-04T10:00:00Z",
            exception_dates="2024-03-11",
        )
        assert item.exception_dates == [date(2024, 3, 11)]

    def test_weekly_flag(self, monday_template, daily_template):
        assert monday_template.is_weekly
        assert not daily_template.is_weekly

    def test_extra_fields_are_kept(self):
        item = ScheduleItem.model_validate(
            {
                "id": "a",
                "start_time": "2024-03-04T09:00:00Z",
                "end_time": "2024-03-04T10:00:00Z",
                "color": "blue",
            }
        )
        assert item.color == "blue"
        assert item.model_dump()["color"] == "blue"

    def test_invalid_timestamp_is_rejected(self):
        with pytest.raises(ValidationError):
            ScheduleItem(id="a", start_time="soon", end_time="2024-03-04T10:00:00Z")

    def test_missing_start_is_rejected(self):
        with pytest.raises(ValidationError):
            ScheduleItem(id="a", end_time="2024-03-04T10:00:00Z")

    def test_json_dump(self):
        item = ScheduleItem(
            id="a",
            start_time="2024-03-04T09:00:00Z",
            end_time="2024-03-04T10:00:00Z",
            is_recurring=True,
            day_of_week=1,
            exception_dates=["2024-03-11"],
        )
        dumped = item.model_dump(mode="json")
        assert dumped["start_time"] == "2024-03-04T09:00:00.000Z"
        assert dumped["end_time"] == "2024-03-04T10:00:00.000Z"
        assert dumped["recurrence_end_date"] is None
        assert dumped["exception_dates"] == ["2024-03-11"]


class TestEventItem:
    """Tests for EventItem."""

    def test_defaults(self):
        event = EventItem(id="e", start_time="2024-03-04T09:00:00Z", end_time="2024-03-04T10:00:00Z")
        assert event.type == ScheduleItemType.EVENT
        assert event.title == ""
        assert event.participants == []

    def test_participants(self):
        event = EventItem(
            id="e",
            start_time="2024-03-04T09:00:00Z",
            end_time="2024-03-04T10:00:00Z",
            participants=[{"user_id": "u1", "full_name": "Ada Lovelace"}],
        )
        assert event.participants == [Participant(user_id="u1", full_name="Ada Lovelace")]

    def test_null_participants(self):
        event = EventItem(
            id="e",
            start_time="2024-03-04T09:00:00Z",
            end_time="2024-03-04T10:00:00Z",
            participants=None,
        )
        assert event.participants == []


class TestAvailabilityItem:
    """Tests for AvailabilityItem."""

    def test_defaults(self):
        slot = AvailabilityItem(
            id="s", user_id="u1", start_time="2024-03-04T09:00:00Z", end_time="2024-03-04T10:00:00Z"
        )
        assert slot.type == ScheduleItemType.AVAILABILITY
        assert slot.user_id == "u1"
        assert slot.model_dump(mode="json")["type"] == "availability"
