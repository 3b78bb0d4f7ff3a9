"""
Domain models for provider schedules, bookings and time slots.

Time-of-day values are integer minutes since midnight. ``HH:MM`` text is
only parsed or produced at the edges via ``parse_hhmm`` / ``format_hhmm``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .exceptions import InvalidTimeFormat, ScheduleNotFound

MINUTES_PER_DAY = 24 * 60

# 0=Sunday, 6=Saturday
WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

_HHMM_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_hhmm(value: str) -> int:
    """
    Parse ``HH:MM`` text into minutes since midnight.

    ``24:00`` is accepted so a working day can close at midnight.

    Raises:
        InvalidTimeFormat: If the text is not a valid time of day
    """
    match = _HHMM_PATTERN.match(str(value).strip())
    if not match:
        raise InvalidTimeFormat(f"Invalid time '{value}', expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes > 59 or hours > 24 or (hours == 24 and minutes != 0):
        raise InvalidTimeFormat(f"Time out of range: '{value}'")

    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    """
    Format minutes since midnight as ``HH:MM``.

    Midnight closing stays ``24:00``; later values, such as the end of a
    candidate overrunning a midnight close, wrap to the next day's clock.
    """
    if minutes > MINUTES_PER_DAY:
        minutes %= MINUTES_PER_DAY
    hours, rest = divmod(minutes, 60)
    return f"{hours:02d}:{rest:02d}"


def weekday_index(day: date) -> int:
    """Return the weekday index of a date, 0=Sunday through 6=Saturday."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open range [start, end) within a day.

    Invariant: start must be before end.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(
                f"Start time {format_hhmm(self.start)} must be before end time {format_hhmm(self.end)}"
            )

    @classmethod
    def from_text(cls, start: str, end: str) -> "TimeRange":
        return cls(start=parse_hhmm(start), end=parse_hhmm(end))

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeRange") -> bool:
        """Check if another range lies fully inside this one."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{format_hhmm(self.start)}-{format_hhmm(self.end)}"


@dataclass(frozen=True)
class BlockedInterval:
    """A provider-declared unavailability window on a specific date."""
    date: date
    start_time: int
    end_time: int
    reason: Optional[str] = None

    def __post_init__(self):
        TimeRange(start=self.start_time, end=self.end_time)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time)


class BookingStatus(str, Enum):
    SCHEDULED = "scheduled"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


@dataclass(frozen=True)
class Booking:
    """An already committed appointment. Read-only for this package."""
    start_time: int
    end_time: int
    status: BookingStatus = BookingStatus.CONFIRMED

    def __post_init__(self):
        TimeRange(start=self.start_time, end=self.end_time)

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time)

    @property
    def holds_slot(self) -> bool:
        """Cancelled bookings release their interval."""
        return self.status is not BookingStatus.CANCELLED


@dataclass(frozen=True)
class Service:
    """The service being booked."""
    duration_minutes: int
    buffer_time: int = 0
    name: Optional[str] = None


@dataclass(frozen=True)
class ProviderSchedule:
    """
    Weekly working hours of a provider plus dated blocked intervals.

    Invariants: start_time < end_time, time_slot_interval > 0 and every
    working day is a weekday index between 0 and 6.
    """
    provider_id: str
    working_days: FrozenSet[int]
    start_time: int
    end_time: int
    time_slot_interval: int = 30
    blocked_slots: Tuple[BlockedInterval, ...] = ()

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Schedule start {format_hhmm(self.start_time)} must be before end {format_hhmm(self.end_time)}"
            )
        if self.time_slot_interval <= 0:
            raise ValueError(f"time_slot_interval must be positive, got {self.time_slot_interval}")
        invalid_days = sorted(day for day in self.working_days if day not in range(7))
        if invalid_days:
            raise ValueError(f"working_days must be between 0 and 6, got {invalid_days}")

    @property
    def working_range(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time)

    def is_working_day(self, day: date) -> bool:
        """Check if a given date falls on a working day."""
        return weekday_index(day) in self.working_days

    def blocked_on(self, day: date) -> List[BlockedInterval]:
        """Blocked intervals that apply to the given date."""
        return [block for block in self.blocked_slots if block.date == day]


@dataclass(frozen=True)
class TimeSlot:
    """
    A candidate slot annotated with availability, score and reason.

    ``failed_check`` names the first predicate that rejected the slot.
    """
    start_time: int
    end_time: int
    is_available: bool
    score: int
    reason: str
    near_closing: bool = False
    failed_check: Optional[str] = None

    @property
    def start_text(self) -> str:
        return format_hhmm(self.start_time)

    @property
    def end_text(self) -> str:
        return format_hhmm(self.end_time)

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: HH:MM - HH:MM
        """
        return f"{self.start_text} - {self.end_text}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the marketplace API field names."""
        return {
            "startTime": self.start_text,
            "endTime": self.end_text,
            "isAvailable": self.is_available,
            "score": self.score,
            "reason": self.reason,
            "nearClosing": self.near_closing,
        }


class SlotStatus(str, Enum):
    OK = "ok"
    SCHEDULE_NOT_FOUND = "schedule_not_found"
    NOT_WORKING_DAY = "not_working_day"


@dataclass
class SlotResult:
    """
    Outcome of a slot computation for one provider and date.

    An empty ``slots`` list means different things depending on
    ``status``; callers should branch on the status for messaging.
    """
    provider_id: str
    date: date
    status: SlotStatus
    slots: List[TimeSlot] = field(default_factory=list)

    @property
    def available(self) -> List[TimeSlot]:
        return [slot for slot in self.slots if slot.is_available]

    def ranked(self) -> List[TimeSlot]:
        """Available slots, best score first, earliest start on ties."""
        return sorted(self.available, key=lambda slot: (-slot.score, slot.start_time))

    def raise_for_status(self) -> None:
        """Raise ``ScheduleNotFound`` if the provider has no schedule."""
        if self.status is SlotStatus.SCHEDULE_NOT_FOUND:
            raise ScheduleNotFound(self.provider_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "providerId": self.provider_id,
            "date": self.date.isoformat(),
            "status": self.status.value,
            "timeSlots": [slot.to_dict() for slot in self.slots],
        }


@dataclass(frozen=True)
class DayAvailability:
    """One weekday entry of a provider's weekly overview."""
    weekday: int
    is_available: bool
    start_time: int
    end_time: int
    interval_minutes: int

    @property
    def day_name(self) -> str:
        return WEEKDAY_NAMES[self.weekday]
