"""Data models for schedule items - EventMatcher."""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .calendar.datetime_utils import format_iso_utc, parse_datetime, to_calendar_date


class ScheduleItemType(str, Enum):
    """Kind of record a schedule item was built from."""

    EVENT = "event"
    AVAILABILITY = "availability"


class Participant(BaseModel):
    """Event participant."""

    user_id: str = Field(..., description="Participant user ID")
    full_name: str = Field(default="", description="Participant display name")
    email: str = Field(default="", description="Participant email address")


class ScheduleItem(BaseModel):
    """A stored schedule record: either one concrete occurrence or a recurring template.

    When ``is_recurring`` is true, ``start_time``/``end_time`` only carry the
    time-of-day and duration of each occurrence; their calendar date is not an
    occurrence date. Unknown fields are kept so expanded instances carry the
    caller's data through unchanged.
    """

    id: str = Field(..., description="Record ID")
    type: Optional[ScheduleItemType] = Field(default=None, description="Record kind")

    # Time information
    start_time: datetime = Field(..., description="Start of the (template) occurrence, UTC")
    end_time: datetime = Field(..., description="End of the (template) occurrence, UTC")

    # Recurrence
    is_recurring: bool = Field(default=False, description="Recurring template flag")
    day_of_week: Optional[int] = Field(
        default=None, description="0=Sunday..6=Saturday; weekly when set, daily when absent"
    )
    recurrence_end_date: Optional[datetime] = Field(
        default=None, description="No occurrences on calendar days after this date"
    )
    exception_dates: list[date] = Field(
        default_factory=list, description="Calendar dates with suppressed occurrences"
    )

    model_config = ConfigDict(extra="allow")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        if value is None:
            return value
        return parse_datetime(value)

    @field_validator("recurrence_end_date", mode="before")
    @classmethod
    def _parse_recurrence_end(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return parse_datetime(value)

    @field_validator("is_recurring", mode="before")
    @classmethod
    def _null_is_not_recurring(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("exception_dates", mode="before")
    @classmethod
    def _normalize_exception_dates(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (str, date)):
            value = [value]
        return [to_calendar_date(v) for v in value]

    @property
    def duration(self) -> timedelta:
        """Length of one occurrence."""
        return self.end_time - self.start_time

    @property
    def is_weekly(self) -> bool:
        """True for weekly templates, False for daily ones."""
        return self.day_of_week is not None

    @field_serializer("start_time", "end_time", "recurrence_end_date", when_used="unless-none")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format with millisecond precision."""
        return format_iso_utc(dt)

    @field_serializer("exception_dates")
    def serialize_exception_dates(self, dates: list[date]) -> list[str]:
        """Serialize exception dates as YYYY-MM-DD strings."""
        return [d.isoformat() for d in dates]


class EventItem(ScheduleItem):
    """Calendar event record."""

    type: Optional[ScheduleItemType] = ScheduleItemType.EVENT
    title: str = Field(default="", description="Event title")
    description: Optional[str] = Field(default=None, description="Event description")
    event_type: Optional[str] = Field(default=None, description="Event category")
    location: Optional[str] = Field(default=None, description="Event location")
    participants: list[Participant] = Field(default_factory=list, description="Participants")

    @field_validator("participants", mode="before")
    @classmethod
    def _null_participants(cls, value: Any) -> Any:
        return [] if value is None else value


class AvailabilityItem(ScheduleItem):
    """Availability slot record owned by one user."""

    type: Optional[ScheduleItemType] = ScheduleItemType.AVAILABILITY
    user_id: Optional[str] = Field(default=None, description="Owner of the slot")
