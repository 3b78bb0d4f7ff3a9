"""
Core business logic for computing bookable time slots.

Pure domain logic: no repository access, no I/O. The engine receives an
already loaded schedule and bookings and returns every candidate slot of
the day annotated with availability, score and reason.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple

from ..config import ScoringWeights, SlotSettings
from .exceptions import InvalidServiceDuration
from .models import (
    BlockedInterval,
    Booking,
    ProviderSchedule,
    Service,
    SlotResult,
    SlotStatus,
    TimeRange,
    TimeSlot,
    format_hhmm,
)

logger = logging.getLogger(__name__)


def generate_candidates(
    start: int,
    end: int,
    interval: int,
    duration: int,
    include_overrun: bool = True,
) -> List[int]:
    """
    Generate ascending candidate start times across a working window.

    Candidates are spaced ``interval`` minutes apart starting at ``start``.
    Generation stops at the first candidate whose ``duration``-extended end
    passes ``end``; with ``include_overrun`` those overrunning candidates
    are still emitted as long as they start inside the window, so the
    validator can report them as unavailable.
    """
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")

    candidates: List[int] = []
    current = start

    while current < end:
        if current + duration > end and not include_overrun:
            break
        candidates.append(current)
        current += interval

    return candidates


@dataclass(frozen=True)
class SlotRequest:
    """Everything a predicate needs to judge one candidate."""
    schedule: ProviderSchedule
    day: date
    duration: int
    buffer: int
    blocked: Tuple[BlockedInterval, ...]
    bookings: Tuple[Booking, ...]


# A check returns None when the candidate passes, otherwise the reason.
SlotCheck = Callable[[TimeRange, SlotRequest], Optional[str]]


def check_working_hours(slot: TimeRange, request: SlotRequest) -> Optional[str]:
    schedule = request.schedule
    if slot.start < schedule.start_time:
        return f"Starts before opening time {format_hhmm(schedule.start_time)}"
    if slot.end > schedule.end_time:
        return f"Ends after closing time {format_hhmm(schedule.end_time)}"
    return None


def check_not_blocked(slot: TimeRange, request: SlotRequest) -> Optional[str]:
    for block in request.blocked:
        if slot.overlaps(block.time_range):
            if block.reason:
                return f"Blocked {block.time_range}: {block.reason}"
            return f"Blocked {block.time_range}"
    return None


def check_not_double_booked(slot: TimeRange, request: SlotRequest) -> Optional[str]:
    extended = TimeRange(start=slot.start, end=slot.end + request.buffer)
    for booking in request.bookings:
        if extended.overlaps(booking.time_range):
            return f"Conflicts with booking {booking.time_range}"
    return None


# Evaluated in order, the first failure decides the reason.
SLOT_CHECKS: Tuple[Tuple[str, SlotCheck], ...] = (
    ("working_hours", check_working_hours),
    ("blocked", check_not_blocked),
    ("double_booking", check_not_double_booked),
)


class SlotEngine:
    """
    Computes the slots of one provider on one date.

    Algorithm:
    1. Reject invalid service durations
    2. Short-circuit when the schedule is missing or the day is not worked
    3. Generate candidate start times across the working window
    4. Run the ordered predicate pipeline on each candidate
    5. Score available candidates and flag those near closing time
    """

    def __init__(
        self,
        settings: SlotSettings | None = None,
        scoring: ScoringWeights | None = None,
    ):
        self.settings = settings or SlotSettings()
        self.scoring = scoring or ScoringWeights()

    def compute(
        self,
        schedule: ProviderSchedule | None,
        bookings: Sequence[Booking],
        day: date,
        service: Service,
        *,
        provider_id: str = "",
    ) -> SlotResult:
        """
        Compute all candidate slots for ``day``.

        Args:
            schedule: The provider's schedule, or None if not configured
            bookings: Existing bookings of the provider on ``day``
            day: The requested date
            service: The service to book
            provider_id: Used for the result when ``schedule`` is None

        Returns:
            SlotResult holding available and unavailable candidates

        Raises:
            InvalidServiceDuration: If the duration is not positive or the
                buffer is negative
        """
        duration, buffer = self._resolve_service(service)

        if schedule is None:
            logger.debug("No schedule configured for provider %s", provider_id)
            return SlotResult(
                provider_id=provider_id,
                date=day,
                status=SlotStatus.SCHEDULE_NOT_FOUND,
            )

        if not schedule.is_working_day(day):
            logger.debug("Provider %s does not work on %s", schedule.provider_id, day)
            return SlotResult(
                provider_id=schedule.provider_id,
                date=day,
                status=SlotStatus.NOT_WORKING_DAY,
            )

        request = SlotRequest(
            schedule=schedule,
            day=day,
            duration=duration,
            buffer=buffer,
            blocked=tuple(schedule.blocked_on(day)),
            bookings=tuple(booking for booking in bookings if booking.holds_slot),
        )

        candidates = generate_candidates(
            start=schedule.start_time,
            end=schedule.end_time,
            interval=schedule.time_slot_interval,
            duration=duration,
            include_overrun=self.settings.include_overrun_candidates,
        )
        slots = [self._evaluate(start, request) for start in candidates]

        logger.debug(
            "Provider %s on %s: %d of %d candidates available",
            schedule.provider_id,
            day,
            sum(1 for slot in slots if slot.is_available),
            len(slots),
        )

        return SlotResult(
            provider_id=schedule.provider_id,
            date=day,
            status=SlotStatus.OK,
            slots=slots,
        )

    def _resolve_service(self, service: Service) -> Tuple[int, int]:
        if service.duration_minutes <= 0:
            raise InvalidServiceDuration(
                f"Service duration must be greater than zero, got {service.duration_minutes}"
            )
        if service.buffer_time < 0:
            raise InvalidServiceDuration(
                f"Service buffer must not be negative, got {service.buffer_time}"
            )
        return service.duration_minutes, self.settings.resolve_buffer(service.buffer_time)

    def _evaluate(self, start: int, request: SlotRequest) -> TimeSlot:
        slot = TimeRange(start=start, end=start + request.duration)
        near_closing = self._is_near_closing(slot, request)

        for name, check in SLOT_CHECKS:
            reason = check(slot, request)
            if reason is not None:
                return TimeSlot(
                    start_time=slot.start,
                    end_time=slot.end,
                    is_available=False,
                    score=0,
                    reason=reason,
                    near_closing=near_closing,
                    failed_check=name,
                )

        return TimeSlot(
            start_time=slot.start,
            end_time=slot.end,
            is_available=True,
            score=self._score(slot, request, near_closing),
            reason="Available, near closing time" if near_closing else "Available",
            near_closing=near_closing,
        )

    def _is_near_closing(self, slot: TimeRange, request: SlotRequest) -> bool:
        """
        Flag slots whose end, buffer included, passes the closing threshold.

        Advisory only; it never makes a slot unavailable.
        """
        threshold = request.schedule.end_time - self.settings.near_closing_margin_minutes
        return slot.end + request.buffer > threshold

    def _is_adjacent_to_booking(self, slot: TimeRange, request: SlotRequest) -> bool:
        extended_end = slot.end + request.buffer
        return any(
            booking.end_time == slot.start or booking.start_time == extended_end
            for booking in request.bookings
        )

    def _score(self, slot: TimeRange, request: SlotRequest, near_closing: bool) -> int:
        """
        Score an available slot between 0 and 100, higher is better.

        Integer arithmetic only, so equal inputs always give equal scores.
        """
        weights = self.scoring
        score = weights.base

        distance = abs(slot.start - weights.preferred_minutes)
        window = weights.preference_window_minutes
        if distance < window:
            score += weights.preference_bonus * (window - distance) // window

        if self._is_adjacent_to_booking(slot, request):
            score += weights.adjacency_bonus

        if near_closing:
            score -= weights.near_closing_penalty

        return max(0, min(100, score))
