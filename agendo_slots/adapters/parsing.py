"""
Conversion of raw schedule and booking records into domain models.

Records come either from the marketplace API (camelCase keys) or from
local YAML files (snake_case keys); both spellings are accepted.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

import pendulum

from ..domain.exceptions import RepositoryUnavailable
from ..domain.models import (
    BlockedInterval,
    Booking,
    BookingStatus,
    ProviderSchedule,
    parse_hhmm,
)

logger = logging.getLogger(__name__)


def _field(record: Mapping[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if snake in record:
        return record[snake]
    return record.get(camel, default)


def parse_date(value: Any) -> date:
    """Parse a ``YYYY-MM-DD`` value (or a date) into a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = pendulum.parse(str(value), exact=True)
    if isinstance(parsed, datetime) or not isinstance(parsed, date):
        raise ValueError(f"Expected a calendar date, got '{value}'")
    return parsed


def parse_schedule(provider_id: str, record: Mapping[str, Any]) -> ProviderSchedule:
    """
    Build a ProviderSchedule from a raw record.

    Malformed blocked slots are skipped with a warning; a malformed
    schedule itself is reported as ``RepositoryUnavailable``.
    """
    try:
        blocked_records = _field(record, "blocked_slots", "blockedSlots", []) or []
        return ProviderSchedule(
            provider_id=str(provider_id),
            working_days=frozenset(int(day) for day in _field(record, "working_days", "workingDays", [])),
            start_time=parse_hhmm(_field(record, "start_time", "startTime")),
            end_time=parse_hhmm(_field(record, "end_time", "endTime")),
            time_slot_interval=int(_field(record, "time_slot_interval", "timeSlotInterval", 30)),
            blocked_slots=tuple(parse_blocked_slots(blocked_records)),
        )
    except (AttributeError, TypeError, ValueError) as exc:
        raise RepositoryUnavailable(
            f"Invalid schedule for provider '{provider_id}': {exc}"
        ) from exc


def parse_blocked_slots(records: List[Mapping[str, Any]]) -> List[BlockedInterval]:
    blocked: List[BlockedInterval] = []

    for item in records:
        try:
            blocked.append(
                BlockedInterval(
                    date=parse_date(item["date"]),
                    start_time=parse_hhmm(_field(item, "start_time", "startTime")),
                    end_time=parse_hhmm(_field(item, "end_time", "endTime")),
                    reason=item.get("reason"),
                )
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping invalid blocked slot %r: %s", item, exc)
            continue

    return blocked


_STATUS_ALIASES = {
    "canceled": BookingStatus.CANCELLED,
    "no-show": BookingStatus.NO_SHOW,
}


def parse_booking_status(value: Any) -> BookingStatus:
    """
    Map raw status text to a BookingStatus.

    Unknown or missing statuses count as confirmed, so the booking still
    holds its interval.
    """
    if value is None:
        return BookingStatus.CONFIRMED

    text = str(value).strip().lower()
    if text in _STATUS_ALIASES:
        return _STATUS_ALIASES[text]
    try:
        return BookingStatus(text)
    except ValueError:
        logger.warning("Unknown booking status %r, treating it as confirmed", value)
        return BookingStatus.CONFIRMED


def parse_bookings(records: List[Mapping[str, Any]]) -> List[Booking]:
    """
    Build bookings from raw records, sorted by start time.

    Only records with malformed times are skipped.
    """
    bookings: List[Booking] = []

    for item in records:
        try:
            bookings.append(
                Booking(
                    start_time=parse_hhmm(_field(item, "start_time", "startTime")),
                    end_time=parse_hhmm(_field(item, "end_time", "endTime")),
                    status=parse_booking_status(item.get("status")),
                )
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping invalid booking %r: %s", item, exc)
            continue

    return sorted(bookings, key=lambda booking: booking.start_time)


def bookings_for_date(by_date: Optional[Dict[Any, Any]], day: date) -> List[Mapping[str, Any]]:
    """Pick the booking records of one date from a date-keyed mapping."""
    if not by_date:
        return []
    for key, records in by_date.items():
        # YAML may load unquoted dates as date objects
        if parse_date(key) == day:
            return records or []
    return []
