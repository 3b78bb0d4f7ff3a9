"""
Domain layer - slot rules and models, free of I/O. Engine tuning comes
from the pydantic settings in ``agendo_slots.config``.
"""

from .exceptions import (
    AvailabilityError,
    InvalidServiceDuration,
    InvalidTimeFormat,
    RepositoryUnavailable,
    ScheduleNotFound,
)
from .models import (
    BlockedInterval,
    Booking,
    BookingStatus,
    DayAvailability,
    ProviderSchedule,
    Service,
    SlotResult,
    SlotStatus,
    TimeRange,
    TimeSlot,
)
from .presentation import group_by_period, weekly_overview
from .slot_engine import SlotEngine, generate_candidates

__all__ = [
    "AvailabilityError",
    "InvalidServiceDuration",
    "InvalidTimeFormat",
    "RepositoryUnavailable",
    "ScheduleNotFound",
    "BlockedInterval",
    "Booking",
    "BookingStatus",
    "DayAvailability",
    "ProviderSchedule",
    "Service",
    "SlotResult",
    "SlotStatus",
    "TimeRange",
    "TimeSlot",
    "group_by_period",
    "weekly_overview",
    "SlotEngine",
    "generate_candidates",
]
