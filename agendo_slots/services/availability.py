"""
Application service for computing a provider's bookable slots.

The service fetches the provider schedule and the day's bookings through a
repository adapter and delegates the availability decision to the
domain-level ``SlotEngine``. Keeping the repository behind a protocol lets
tests and the CLI swap the YAML file, the marketplace API or a stub.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import List, Optional, Protocol

from ..adapters import HttpScheduleRepository, YamlScheduleRepository
from ..config import AppConfig, ScheduleSource
from ..domain.exceptions import AvailabilityError, RepositoryUnavailable
from ..domain.models import Booking, DayAvailability, ProviderSchedule, Service, SlotResult
from ..domain.presentation import weekly_overview
from ..domain.slot_engine import SlotEngine

logger = logging.getLogger(__name__)


class ScheduleRepositoryProtocol(Protocol):
    """Protocol describing the schedule reads needed by the service."""

    async def get_provider_schedule(self, provider_id: str) -> Optional[ProviderSchedule]:
        """Return the provider's schedule, or None if none is configured."""

    async def get_bookings(self, provider_id: str, day: date) -> List[Booking]:
        """Return the provider's bookings on ``day``."""


class AvailabilityService:
    """
    Orchestrates schedule retrieval and slot computation.

    Stateless across requests: every call reads fresh data and nothing is
    cached, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        repository: ScheduleRepositoryProtocol,
        slot_engine: SlotEngine,
    ) -> None:
        self._repository = repository
        self._slot_engine = slot_engine

    async def compute_available_slots(
        self,
        provider_id: str,
        day: date,
        service: Service,
    ) -> SlotResult:
        """
        Fetch schedule and bookings concurrently, then compute slots.

        Raises:
            InvalidServiceDuration: If the service cannot produce a slot
            RepositoryUnavailable: If either read fails
        """
        schedule, bookings = await self.fetch_schedule_data(provider_id, day)

        return self._slot_engine.compute(
            schedule,
            bookings,
            day,
            service,
            provider_id=str(provider_id),
        )

    async def fetch_schedule_data(
        self,
        provider_id: str,
        day: date,
    ) -> tuple[Optional[ProviderSchedule], List[Booking]]:
        """Issue both repository reads concurrently and wait for both."""
        try:
            schedule, bookings = await asyncio.gather(
                self._repository.get_provider_schedule(provider_id),
                self._repository.get_bookings(provider_id, day),
            )
        except AvailabilityError:
            raise
        except Exception as exc:
            raise RepositoryUnavailable(
                f"Failed to load schedule data for provider '{provider_id}': {exc}"
            ) from exc

        return schedule, list(bookings)

    async def get_weekly_availability(self, provider_id: str) -> List[DayAvailability]:
        """Return the Sunday-to-Saturday overview of a provider's hours."""
        try:
            schedule = await self._repository.get_provider_schedule(provider_id)
        except AvailabilityError:
            raise
        except Exception as exc:
            raise RepositoryUnavailable(
                f"Failed to load schedule for provider '{provider_id}': {exc}"
            ) from exc

        return weekly_overview(schedule)


def create_repository(config: AppConfig) -> ScheduleRepositoryProtocol:
    """Build the repository selected by ``config.schedule_source``."""
    if config.schedule_source is ScheduleSource.HTTP:
        return HttpScheduleRepository(
            base_url=config.api_base_url,
            access_token=config.api_token,
            timeout=config.api_timeout_seconds,
        )
    return YamlScheduleRepository(config.schedule_file)


def create_service(
    config: AppConfig,
    repository: ScheduleRepositoryProtocol | None = None,
) -> AvailabilityService:
    """Wire an AvailabilityService from configuration."""
    engine = SlotEngine(settings=config.slots, scoring=config.scoring)
    return AvailabilityService(
        repository=repository or create_repository(config),
        slot_engine=engine,
    )
