"""Availability slot validation and overlap detection.

Slot-shape rules (alignment, minimum length) are exposed both as pydantic
models for ingestion and as plain functions returning ValidationResult.
Overlap checks compare one-time and recurring slots without expanding them;
all time-of-day comparisons use UTC.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from ..calendar.datetime_utils import (
    DateLike,
    day_of_week,
    minutes_of_day,
    parse_datetime,
    to_calendar_date,
    to_utc,
)
from ..calendar.recurrence_expander import is_exception_date
from ..models import ScheduleItem

logger = logging.getLogger(__name__)

SLOT_INCREMENT_MINUTES = 15
MIN_SLOT_MINUTES = 30

END_AFTER_START = "End time must be after start time"
NOT_ALIGNED = "Time slots must align to 15-minute increments"
TOO_SHORT = "Availability slots must be at least 30 minutes long"
DAY_REQUIRED = "Recurring availability must have a day of week specified"
OVERLAP = "This time slot overlaps with an existing availability"

SlotInput = Union[ScheduleItem, Mapping[str, Any]]


class ValidationResult(BaseModel):
    """Outcome of a validation function."""

    valid: bool
    error: Optional[str] = None
    errors: list[str] = Field(default_factory=list)
    conflicting_slot: Optional[ScheduleItem] = None


def _is_aligned(dt: datetime, increment_minutes: int) -> bool:
    return to_utc(dt).minute % increment_minutes == 0


def _is_minimum_duration(start: datetime, end: datetime, min_minutes: int) -> bool:
    return end - start >= timedelta(minutes=min_minutes)


def _slot_error(
    start: datetime,
    end: datetime,
    increment_minutes: int = SLOT_INCREMENT_MINUTES,
    min_minutes: int = MIN_SLOT_MINUTES,
) -> Optional[str]:
    if end <= start:
        return END_AFTER_START
    if not _is_aligned(start, increment_minutes) or not _is_aligned(end, increment_minutes):
        if increment_minutes == SLOT_INCREMENT_MINUTES:
            return NOT_ALIGNED
        return f"Time slots must align to {increment_minutes}-minute increments"
    if not _is_minimum_duration(start, end, min_minutes):
        if min_minutes == MIN_SLOT_MINUTES:
            return TOO_SHORT
        return f"Availability slots must be at least {min_minutes} minutes long"
    return None


class _TimedModel(BaseModel):
    @field_validator("start_time", "end_time", mode="before", check_fields=False)
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        if value is None:
            return value
        return parse_datetime(value)


class TimeSlot(_TimedModel):
    """A single availability time slot."""

    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def _check_slot(self) -> "TimeSlot":
        error = _slot_error(self.start_time, self.end_time)
        if error:
            raise ValueError(error)
        return self


class AvailabilityCreate(_TimedModel):
    """Payload for creating an availability slot."""

    user_id: UUID
    start_time: datetime
    end_time: datetime
    is_recurring: bool = False
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    recurrence_end_date: Optional[date] = None

    @field_validator("recurrence_end_date", mode="before")
    @classmethod
    def _calendar_date(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return to_calendar_date(value)

    @model_validator(mode="after")
    def _check_slot(self) -> "AvailabilityCreate":
        error = _slot_error(self.start_time, self.end_time)
        if error:
            raise ValueError(error)
        if self.is_recurring and self.day_of_week is None:
            raise ValueError(DAY_REQUIRED)
        return self


class AvailabilityUpdate(_TimedModel):
    """Partial update of an availability slot."""

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    is_recurring: Optional[bool] = None
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    recurrence_end_date: Optional[date] = None

    @field_validator("recurrence_end_date", mode="before")
    @classmethod
    def _calendar_date(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return to_calendar_date(value)

    @model_validator(mode="after")
    def _check_range(self) -> "AvailabilityUpdate":
        if self.start_time is not None and self.end_time is not None:
            if self.end_time <= self.start_time or not _is_minimum_duration(
                self.start_time, self.end_time, MIN_SLOT_MINUTES
            ):
                raise ValueError("Invalid time range")
        return self


class RecurringPattern(_TimedModel):
    """One weekly slot of a recurring availability pattern."""

    day_of_week: int = Field(..., ge=0, le=6)
    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def _check_slot(self) -> "RecurringPattern":
        if self.end_time <= self.start_time or not _is_minimum_duration(
            self.start_time, self.end_time, MIN_SLOT_MINUTES
        ):
            raise ValueError("Invalid recurring time slot")
        return self


def validate_time_slot(
    start_time: DateLike,
    end_time: DateLike,
    increment_minutes: int = SLOT_INCREMENT_MINUTES,
    min_minutes: int = MIN_SLOT_MINUTES,
) -> ValidationResult:
    """Validate the shape of a single time slot."""
    error = _slot_error(parse_datetime(start_time), parse_datetime(end_time), increment_minutes, min_minutes)
    if error:
        return ValidationResult(valid=False, error=error)
    return ValidationResult(valid=True)


def check_overlap(
    slot1_start: datetime, slot1_end: datetime, slot2_start: datetime, slot2_end: datetime
) -> bool:
    """Check if two half-open time ranges overlap (touching edges do not)."""
    return slot1_start < slot2_end and slot1_end > slot2_start


def _coerce_slot(slot: SlotInput) -> ScheduleItem:
    if isinstance(slot, ScheduleItem):
        return slot
    data = dict(slot)
    data.setdefault("id", "")
    return ScheduleItem.model_validate(data)


def validate_no_overlap(
    new_start: DateLike,
    new_end: DateLike,
    existing_slots: Iterable[SlotInput],
    exclude_id: Optional[str] = None,
) -> ValidationResult:
    """Validate that a new time range overlaps none of the existing slots."""
    start = parse_datetime(new_start)
    end = parse_datetime(new_end)

    for raw in existing_slots:
        slot = _coerce_slot(raw)
        if exclude_id is not None and slot.id == exclude_id:
            continue
        if check_overlap(start, end, slot.start_time, slot.end_time):
            return ValidationResult(valid=False, error=OVERLAP, conflicting_slot=slot)

    return ValidationResult(valid=True)


def validate_recurring_pattern(slots: Iterable[Mapping[str, Any]]) -> ValidationResult:
    """Validate every slot of a weekly pattern, collecting all errors."""
    errors: list[str] = []

    for slot in slots:
        day = slot.get("day_of_week")
        if not isinstance(day, int) or not 0 <= day <= 6:
            errors.append(f"Invalid day of week: {day}")

        result = validate_time_slot(slot["start_time"], slot["end_time"])
        if not result.valid:
            errors.append(f"Day {day}: {result.error}")

    return ValidationResult(valid=not errors, errors=errors)


MINUTES_PER_DAY = 24 * 60


def _minute_span(slot: ScheduleItem) -> tuple[int, int]:
    """UTC minutes-of-day span; a slot ending at or before its start runs past midnight."""
    start = minutes_of_day(slot.start_time)
    end = minutes_of_day(slot.end_time)
    if end <= start:
        end += MINUTES_PER_DAY
    return start, end


def _time_of_day_overlap(a: ScheduleItem, b: ScheduleItem, adjacent_days: bool = False) -> bool:
    """Check whether two slots overlap by UTC time of day.

    With ``adjacent_days``, b is also compared as it falls on the previous
    and next day, so a slot past midnight meets one early the next morning.
    """
    a_start, a_end = _minute_span(a)
    b_start, b_end = _minute_span(b)
    shifts = (-MINUTES_PER_DAY, 0, MINUTES_PER_DAY) if adjacent_days else (0,)
    return any(a_start < b_end + shift and a_end > b_start + shift for shift in shifts)


def _active_dates(slot: ScheduleItem) -> tuple[date, date]:
    first = to_utc(slot.start_time).date()
    last = slot.recurrence_end_date.date() if slot.recurrence_end_date is not None else date.max
    return first, last


def check_recurring_overlap(slot1: SlotInput, slot2: SlotInput) -> bool:
    """Check if two recurring slots can produce overlapping occurrences.

    Both slots must be recurring, overlap in UTC time-of-day, share a weekday
    when both are weekly, and have intersecting active date ranges (template
    start date through recurrence end date, inclusive).
    """
    a = _coerce_slot(slot1)
    b = _coerce_slot(slot2)
    if not a.is_recurring or not b.is_recurring:
        return False

    both_weekly = a.is_weekly and b.is_weekly
    if not _time_of_day_overlap(a, b, adjacent_days=not both_weekly):
        return False

    # A daily slot meets a weekly one on the weekly slot's day
    if both_weekly and a.day_of_week != b.day_of_week:
        return False

    a_first, a_last = _active_dates(a)
    b_first, b_last = _active_dates(b)
    return a_first <= b_last and b_first <= a_last


def check_recurring_vs_one_time_overlap(one_time_slot: SlotInput, recurring_slot: SlotInput) -> bool:
    """Check if a one-time slot collides with an occurrence of a recurring slot."""
    one_time = _coerce_slot(one_time_slot)
    recurring = _coerce_slot(recurring_slot)
    if not recurring.is_recurring:
        return False

    day = to_utc(one_time.start_time).date()
    first, last = _active_dates(recurring)
    if not first <= day <= last:
        return False

    if is_exception_date(one_time.start_time, recurring.exception_dates):
        return False

    if recurring.is_weekly and day_of_week(one_time.start_time) != recurring.day_of_week:
        return False

    return _time_of_day_overlap(one_time, recurring, adjacent_days=not recurring.is_weekly)


def validate_no_overlap_with_recurring(
    new_slot: SlotInput,
    existing_slots: Iterable[SlotInput],
    exclude_id: Optional[str] = None,
) -> ValidationResult:
    """Validate a new slot against existing ones, honouring recurrence on either side."""
    candidate = _coerce_slot(new_slot)

    for raw in existing_slots:
        slot = _coerce_slot(raw)
        if exclude_id is not None and slot.id == exclude_id:
            continue

        if not candidate.is_recurring and not slot.is_recurring:
            overlaps = check_overlap(
                candidate.start_time, candidate.end_time, slot.start_time, slot.end_time
            )
        elif candidate.is_recurring and slot.is_recurring:
            overlaps = check_recurring_overlap(candidate, slot)
        elif slot.is_recurring:
            overlaps = check_recurring_vs_one_time_overlap(candidate, slot)
        else:
            overlaps = check_recurring_vs_one_time_overlap(slot, candidate)

        if overlaps:
            logger.debug("Slot %s overlaps existing slot %s", candidate.id or "<new>", slot.id)
            return ValidationResult(valid=False, error=OVERLAP, conflicting_slot=slot)

    return ValidationResult(valid=True)
