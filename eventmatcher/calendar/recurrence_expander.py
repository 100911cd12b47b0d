"""Recurrence expansion logic for EventMatcher schedule items.

Recurring templates are expanded with dateutil rules evaluated in UTC:
weekly templates recur on ``day_of_week`` (0=Sunday..6=Saturday), daily
templates every calendar day. Exception dates are removed through the rule
set's EXDATE list and the template's recurrence end date caps the window.
"""

# ruff: noqa: I001
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
import logging
from typing import Any, Optional, TypeVar, Union

from dateutil.rrule import DAILY, WEEKLY, FR, MO, SA, SU, TH, TU, WE, rrule, rruleset

from ..core.timezone_utils import now_utc
from ..models import AvailabilityItem, EventItem, ScheduleItem
from .datetime_utils import (
    DateLike,
    combine_utc,
    format_iso_utc,
    parse_datetime,
    time_of_day_utc,
    to_calendar_date,
    to_utc,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=ScheduleItem)
ItemInput = Union[T, Mapping[str, Any]]

# Indexed by day_of_week (0=Sunday)
_WEEKDAYS = (SU, MO, TU, WE, TH, FR, SA)


@dataclass
class RecurrenceExpanderConfig:
    """Search limits for open-ended lookups.

    ``next_occurrence`` gives up after this many candidates and reports no
    occurrence, so a template whose next valid date lies beyond the horizon
    looks like it has none.
    """

    weekly_search_horizon: int = 52
    daily_search_horizon: int = 365

    @classmethod
    def from_settings(cls, settings: Any) -> "RecurrenceExpanderConfig":
        """Extract recurrence configuration from settings object.

        Args:
            settings: Configuration object with search horizon attributes

        Returns:
            RecurrenceExpanderConfig with values from settings or defaults
        """
        return cls(
            weekly_search_horizon=int(getattr(settings, "weekly_search_horizon", 52)),
            daily_search_horizon=int(getattr(settings, "daily_search_horizon", 365)),
        )


def _coerce_item(item: Any, model: type[ScheduleItem] = ScheduleItem) -> ScheduleItem:
    if isinstance(item, ScheduleItem):
        return item
    return model.model_validate(item)


def _has_valid_day_of_week(template: ScheduleItem) -> bool:
    day = template.day_of_week
    return day is None or 0 <= day <= 6


def _build_rule(template: ScheduleItem, dtstart: datetime) -> rrule:
    if template.is_weekly:
        return rrule(WEEKLY, dtstart=dtstart, byweekday=_WEEKDAYS[template.day_of_week])
    return rrule(DAILY, dtstart=dtstart)


def _make_instance(template: T, start: datetime, duration: timedelta) -> T:
    return template.model_copy(
        update={
            "id": f"{template.id}-{format_iso_utc(start)}",
            "start_time": start,
            "end_time": start + duration,
            "is_recurring": False,
        },
        deep=True,
    )


def is_exception_date(value: DateLike, exception_dates: Iterable[DateLike]) -> bool:
    """Check whether value falls on one of the exception dates.

    Datetimes are compared by their UTC calendar date; exception entries are
    reduced to their written calendar date.
    """
    day = to_utc(value).date() if isinstance(value, datetime) else to_calendar_date(value)
    return any(to_calendar_date(ex) == day for ex in exception_dates)


def generate_recurring_instances(
    template: ItemInput, range_start: DateLike, range_end: DateLike
) -> list[T]:
    """Expand one recurring template into concrete instances within [range_start, range_end].

    Args:
        template: Recurring template (weekly when day_of_week is set, else daily)
        range_start: Inclusive window start
        range_end: Inclusive window end

    Returns:
        Instances in ascending start order. Empty when the window is empty or
        the template has an invalid day_of_week.

    Raises:
        ValueError: If a range bound cannot be parsed
    """
    item = _coerce_item(template)
    start = parse_datetime(range_start)
    end = parse_datetime(range_end)

    if end < start:
        return []

    if not _has_valid_day_of_week(item):
        logger.warning(
            "Skipping recurring template %s: day_of_week=%r is outside 0..6",
            item.id,
            item.day_of_week,
        )
        return []

    duration = item.duration
    if duration <= timedelta(0):
        logger.warning(
            "Recurring template %s has non-positive duration %s; instances keep it",
            item.id,
            duration,
        )

    time_of_day = time_of_day_utc(item.start_time)

    # Every occurrence on or before the recurrence end's calendar day stays in
    window_end = end
    if item.recurrence_end_date is not None:
        last_moment = datetime.combine(item.recurrence_end_date.date(), time.max, tzinfo=UTC)
        window_end = min(end, last_moment)

    rule_set = rruleset()
    rule_set.rrule(_build_rule(item, combine_utc(start.date(), time_of_day)))
    for ex_day in item.exception_dates:
        rule_set.exdate(combine_utc(ex_day, time_of_day))

    instances = [
        _make_instance(item, occurrence, duration)
        for occurrence in rule_set.between(start, window_end, inc=True)
    ]

    logger.debug(
        "Expanded template %s (%s) into %d instances for %s..%s",
        item.id,
        "weekly" if item.is_weekly else "daily",
        len(instances),
        format_iso_utc(start),
        format_iso_utc(end),
    )
    return instances


def expand_schedule_items(
    items: Iterable[ItemInput],
    range_start: DateLike,
    range_end: DateLike,
    model: type[ScheduleItem] = ScheduleItem,
) -> list[T]:
    """Expand a mixed list of one-off items and recurring templates.

    Non-recurring items are kept when their start lies inside the inclusive
    range; recurring templates are replaced by their instances. The result is
    sorted by start time and contains no recurring items.

    Args:
        items: Schedule items or plain mappings (validated into ``model``)
        range_start: Inclusive window start
        range_end: Inclusive window end
        model: Model class used for mapping inputs

    Returns:
        Concrete occurrences sorted ascending by start_time

    Raises:
        ValueError: If a range bound or a mapping's dates cannot be parsed
    """
    start = parse_datetime(range_start)
    end = parse_datetime(range_end)

    expanded: list[ScheduleItem] = []
    recurring_count = 0

    for raw in items:
        item = _coerce_item(raw, model)
        if not item.is_recurring:
            if start <= item.start_time <= end:
                expanded.append(item)
            continue
        recurring_count += 1
        expanded.extend(generate_recurring_instances(item, start, end))

    expanded.sort(key=lambda i: i.start_time)

    logger.debug(
        "expand_schedule_items: %d recurring templates, %d results",
        recurring_count,
        len(expanded),
    )
    return expanded  # type: ignore[return-value]


def expand_recurring_events(
    events: Iterable[ItemInput], range_start: DateLike, range_end: DateLike
) -> list[EventItem]:
    """Expand recurring events into individual instances within a date range."""
    return expand_schedule_items(events, range_start, range_end, model=EventItem)


def expand_recurring_availability(
    availability: Iterable[ItemInput], range_start: DateLike, range_end: DateLike
) -> list[AvailabilityItem]:
    """Expand recurring availability into individual instances within a date range."""
    return expand_schedule_items(availability, range_start, range_end, model=AvailabilityItem)


def next_occurrence(
    template: ItemInput,
    after: Optional[DateLike] = None,
    config: Optional[RecurrenceExpanderConfig] = None,
) -> Optional[datetime]:
    """Get the next occurrence of a recurring item strictly after a given time.

    The search is bounded by ``config`` (52 weekly or 365 daily candidates by
    default). ``None`` means nothing was found inside that horizon.

    Args:
        template: Recurring template
        after: Exclusive lower bound (defaults to the current UTC time)
        config: Search horizon settings

    Returns:
        Start of the next occurrence in UTC, or None
    """
    item = _coerce_item(template)
    if not item.is_recurring:
        return None

    if not _has_valid_day_of_week(item):
        logger.warning(
            "No next occurrence for template %s: day_of_week=%r is outside 0..6",
            item.id,
            item.day_of_week,
        )
        return None

    after_dt = now_utc() if after is None else parse_datetime(after)
    cfg = config or RecurrenceExpanderConfig()
    horizon = cfg.weekly_search_horizon if item.is_weekly else cfg.daily_search_horizon

    last_day: Optional[date] = None
    if item.recurrence_end_date is not None:
        last_day = item.recurrence_end_date.date()
    exceptions = set(item.exception_dates)

    rule = _build_rule(item, combine_utc(after_dt.date(), time_of_day_utc(item.start_time)))
    for candidate in rule.xafter(after_dt, count=horizon, inc=False):
        if last_day is not None and candidate.date() > last_day:
            return None
        if candidate.date() not in exceptions:
            return candidate

    logger.debug(
        "No occurrence of template %s within %d candidates after %s",
        item.id,
        horizon,
        format_iso_utc(after_dt),
    )
    return None


def count_occurrences(template: ItemInput, range_start: DateLike, range_end: DateLike) -> int:
    """Calculate the number of occurrences for a recurring item within a date range.

    Non-recurring items count as zero.
    """
    item = _coerce_item(template)
    if not item.is_recurring:
        return 0
    return len(generate_recurring_instances(item, range_start, range_end))
