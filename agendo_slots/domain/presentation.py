"""
Display helpers: period-of-day grouping and the weekly overview.

Grouping only partitions slots for display. It never drops a slot and has
no bearing on availability.
"""

from typing import Dict, List, Optional, Tuple

from .models import DayAvailability, ProviderSchedule, TimeSlot, parse_hhmm

MORNING = "morning"
AFTERNOON = "afternoon"
EVENING = "evening"

PERIODS: Dict[str, Tuple[int, int]] = {
    MORNING: (parse_hhmm("06:00"), parse_hhmm("12:00")),
    AFTERNOON: (parse_hhmm("12:00"), parse_hhmm("18:00")),
    EVENING: (parse_hhmm("18:00"), parse_hhmm("23:59")),
}

# Shown for days without configured hours
DEFAULT_DAY_START = parse_hhmm("09:00")
DEFAULT_DAY_END = parse_hhmm("17:00")
DEFAULT_INTERVAL_MINUTES = 30


def period_of(minutes: int) -> str:
    """
    Return the period a start time belongs to.

    Anything outside morning and afternoon, early hours included, is
    evening so that every slot lands in exactly one group.
    """
    for period in (MORNING, AFTERNOON):
        start, end = PERIODS[period]
        if start <= minutes < end:
            return period
    return EVENING


def group_by_period(slots: List[TimeSlot]) -> Dict[str, List[TimeSlot]]:
    """Partition slots into morning, afternoon and evening, keeping order."""
    groups: Dict[str, List[TimeSlot]] = {period: [] for period in PERIODS}
    for slot in slots:
        groups[period_of(slot.start_time)].append(slot)
    return groups


def period_within_working_hours(period: str, schedule: Optional[ProviderSchedule]) -> bool:
    """Check if a period overlaps the provider's working hours at all."""
    if schedule is None:
        return True

    period_start, period_end = PERIODS[period]
    return not (period_end <= schedule.start_time or period_start >= schedule.end_time)


def weekly_overview(schedule: Optional[ProviderSchedule]) -> List[DayAvailability]:
    """
    Describe each weekday, Sunday first.

    Days the provider does not work, or all days when there is no
    schedule, are reported unavailable with default hours.
    """
    overview: List[DayAvailability] = []

    for weekday in range(7):
        if schedule is not None and weekday in schedule.working_days:
            overview.append(
                DayAvailability(
                    weekday=weekday,
                    is_available=True,
                    start_time=schedule.start_time,
                    end_time=schedule.end_time,
                    interval_minutes=schedule.time_slot_interval,
                )
            )
        else:
            overview.append(
                DayAvailability(
                    weekday=weekday,
                    is_available=False,
                    start_time=DEFAULT_DAY_START,
                    end_time=DEFAULT_DAY_END,
                    interval_minutes=DEFAULT_INTERVAL_MINUTES,
                )
            )

    return overview
