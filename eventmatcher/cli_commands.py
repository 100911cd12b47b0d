"""Command implementations behind ``python -m eventmatcher``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .calendar.datetime_utils import format_iso_utc
from .calendar.recurrence_expander import (
    RecurrenceExpanderConfig,
    count_occurrences,
    expand_recurring_availability,
    expand_recurring_events,
    expand_schedule_items,
    next_occurrence,
)
from .core.config_manager import Config
from .domain.availability_aggregation import ParticipantAvailability, aggregate_availability
from .domain.availability_validation import validate_no_overlap_with_recurring, validate_time_slot
from .exceptions import ScheduleInputError
from .models import AvailabilityItem, ScheduleItem

logger = logging.getLogger(__name__)


def load_items(path: str | Path) -> list[dict[str, Any]]:
    """Load schedule item records from a JSON or YAML file.

    The file holds either a list of records or a mapping with an ``items`` list.

    Raises:
        ScheduleInputError: If the file cannot be read or has the wrong shape
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ScheduleInputError(f"Unable to read schedule file {p}: {exc}") from exc

    try:
        data = json.loads(text) if p.suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ScheduleInputError(f"Unable to parse schedule file {p}: {exc}") from exc

    if isinstance(data, dict) and "items" in data:
        data = data["items"]
    if data is None:
        data = []
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise ScheduleInputError(f"Schedule file {p} must contain a list of records")

    logger.debug("Loaded %d schedule records from %s", len(data), p)
    return data


def _find_item(records: list[dict[str, Any]], item_id: str) -> ScheduleItem:
    for record in records:
        if str(record.get("id")) == item_id:
            return ScheduleItem.model_validate(record)
    raise ScheduleInputError(f"No schedule item with id {item_id!r}")


def _group_by_user(records: list[dict[str, Any]]) -> list[ParticipantAvailability]:
    grouped: dict[str, list[AvailabilityItem]] = {}
    for record in records:
        slot = AvailabilityItem.model_validate(record)
        if slot.user_id is None:
            raise ScheduleInputError(f"Availability record {slot.id!r} has no user_id")
        grouped.setdefault(slot.user_id, []).append(slot)
    return [
        ParticipantAvailability(user_id=user_id, available_slots=slots)
        for user_id, slots in grouped.items()
    ]


def _aggregate(records: list[dict[str, Any]], args: Any, cfg: Config) -> list[dict[str, Any]]:
    participants = _group_by_user(records)
    slots = aggregate_availability(
        participants,
        getattr(args, "highlight", None) or [],
        args.start,
        args.end,
        slot_minutes=cfg.slot_minutes,
    )
    return [slot.model_dump(mode="json") for slot in slots.values()]


def _validate(records: list[dict[str, Any]], cfg: Config) -> dict[str, Any]:
    """Check slot shape, then overlap against earlier slots of the same user."""
    accepted: dict[str, list[AvailabilityItem]] = {}
    results = []

    for record in records:
        slot = AvailabilityItem.model_validate(record)
        outcome = validate_time_slot(
            slot.start_time,
            slot.end_time,
            increment_minutes=cfg.slot_increment_minutes,
            min_minutes=cfg.min_slot_minutes,
        )
        if outcome.valid:
            outcome = validate_no_overlap_with_recurring(slot, accepted.get(slot.user_id or "", []))

        entry: dict[str, Any] = {"id": slot.id, "valid": outcome.valid}
        if outcome.valid:
            accepted.setdefault(slot.user_id or "", []).append(slot)
        else:
            entry["error"] = outcome.error
            if outcome.conflicting_slot is not None:
                entry["conflicts_with"] = outcome.conflicting_slot.id
        results.append(entry)

    return {"valid": all(r["valid"] for r in results), "results": results}


def execute(args: Any, cfg: Config) -> Any:
    """Run the command named by ``args.command`` and return a JSON-ready result.

    Raises:
        ScheduleInputError: On unreadable input, invalid records or bad dates
    """
    records = load_items(args.file)

    try:
        if args.command == "expand":
            kind = getattr(args, "kind", None)
            if kind == "events":
                expanded = expand_recurring_events(records, args.start, args.end)
            elif kind == "availability":
                expanded = expand_recurring_availability(records, args.start, args.end)
            else:
                expanded = expand_schedule_items(records, args.start, args.end)
            return [item.model_dump(mode="json") for item in expanded]

        if args.command == "next":
            item = _find_item(records, args.id)
            found = next_occurrence(item, args.after, RecurrenceExpanderConfig.from_settings(cfg))
            return {
                "id": item.id,
                "next_occurrence": format_iso_utc(found) if found is not None else None,
            }

        if args.command == "count":
            item = _find_item(records, args.id)
            return {"id": item.id, "count": count_occurrences(item, args.start, args.end)}

        if args.command == "aggregate":
            return _aggregate(records, args, cfg)

        if args.command == "validate":
            return _validate(records, cfg)

    except ValueError as exc:
        raise ScheduleInputError(str(exc)) from exc

    raise ScheduleInputError(f"Unknown command: {args.command!r}")
