"""Availability aggregation across participants.

Turns each participant's availability into fixed-size time buckets so a
caller can see, per bucket, how many participants are free. Recurring
slots are expanded by the recurrence engine first, so daily and weekly
rules, exception dates and recurrence end dates all apply.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, Field, field_serializer

from ..calendar.datetime_utils import DateLike, format_iso_utc, parse_datetime
from ..calendar.recurrence_expander import expand_recurring_availability, expand_recurring_events
from ..models import AvailabilityItem, EventItem

logger = logging.getLogger(__name__)

DEFAULT_SLOT_MINUTES = 15


class ParticipantAvailability(BaseModel):
    """A participant's availability and events for a date range."""

    user_id: str
    user_name: str = ""
    available_slots: list[AvailabilityItem] = Field(default_factory=list)
    busy_slots: list[EventItem] = Field(default_factory=list)


class AvailabilitySlot(BaseModel):
    """One aggregation bucket."""

    start_time: datetime
    end_time: datetime
    available_count: int = 0
    total_participants: int = 0
    available_user_ids: list[str] = Field(default_factory=list)
    has_highlighted: bool = False
    ratio: float = 0.0

    @field_serializer("start_time", "end_time")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return format_iso_utc(dt)


def _participant_field(participant: Any, *names: str) -> Optional[str]:
    for name in names:
        value = participant.get(name) if isinstance(participant, Mapping) else getattr(participant, name, None)
        if value:
            return str(value)
    return None


def export_participant_availability(
    participants: Iterable[Any],
    availability_by_user: Mapping[str, Iterable[Any]],
    events: Iterable[Any],
    start_date: DateLike,
    end_date: DateLike,
) -> list[ParticipantAvailability]:
    """Collect availability and busy events per participant.

    Args:
        participants: Users (mappings or objects with ``id``/``user_id`` and ``full_name``)
        availability_by_user: Stored availability records keyed by user ID
        events: Stored event records; recurring events are expanded over the range
        start_date: Inclusive range start
        end_date: Inclusive range end

    Returns:
        One ParticipantAvailability per participant, in input order. Availability
        slots are returned as stored (templates included); busy slots are
        concrete event instances in which the participant takes part.
    """
    expanded_events = expand_recurring_events(events, start_date, end_date)

    results: list[ParticipantAvailability] = []
    for participant in participants:
        user_id = _participant_field(participant, "id", "user_id")
        if user_id is None:
            logger.warning("Skipping participant without an id: %r", participant)
            continue

        slots = [
            slot if isinstance(slot, AvailabilityItem) else AvailabilityItem.model_validate(slot)
            for slot in availability_by_user.get(user_id, [])
        ]
        busy = [
            event
            for event in expanded_events
            if any(p.user_id == user_id for p in event.participants)
        ]

        results.append(
            ParticipantAvailability(
                user_id=user_id,
                user_name=_participant_field(participant, "full_name", "user_name") or "",
                available_slots=slots,
                busy_slots=busy,
            )
        )

    return results


def aggregate_availability(
    participant_data: Iterable[ParticipantAvailability],
    highlighted_user_ids: Iterable[str],
    start_date: DateLike,
    end_date: DateLike,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> dict[str, AvailabilitySlot]:
    """Aggregate participant availability into fixed-size slots.

    Each availability instance starting inside the range is cut into
    ``slot_minutes`` buckets from its own start time; a participant counts
    once per bucket however many of their slots cover it.

    Returns:
        Mapping of bucket start (ISO string) to AvailabilitySlot, ordered by start

    Raises:
        ValueError: If slot_minutes is not positive
    """
    if slot_minutes <= 0:
        raise ValueError(f"slot_minutes must be positive, got {slot_minutes}")

    participants = list(participant_data)
    highlighted = set(highlighted_user_ids)
    total = len(participants)
    step = timedelta(minutes=slot_minutes)

    slot_map: dict[str, AvailabilitySlot] = {}

    for participant in participants:
        instances = expand_recurring_availability(
            participant.available_slots, start_date, end_date
        )
        for instance in instances:
            current = instance.start_time
            while current < instance.end_time:
                key = format_iso_utc(current)
                bucket = slot_map.get(key)
                if bucket is None:
                    bucket = AvailabilitySlot(
                        start_time=current,
                        end_time=current + step,
                        total_participants=total,
                    )
                    slot_map[key] = bucket

                if participant.user_id not in bucket.available_user_ids:
                    bucket.available_user_ids.append(participant.user_id)
                    bucket.available_count = len(bucket.available_user_ids)
                    bucket.ratio = bucket.available_count / total
                if participant.user_id in highlighted:
                    bucket.has_highlighted = True

                current += step

    logger.debug(
        "Aggregated %d participants into %d slots between %s and %s",
        total,
        len(slot_map),
        format_iso_utc(parse_datetime(start_date)),
        format_iso_utc(parse_datetime(end_date)),
    )
    return dict(sorted(slot_map.items(), key=lambda kv: kv[1].start_time))
