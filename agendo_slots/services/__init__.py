"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import (
    AvailabilityService,
    ScheduleRepositoryProtocol,
    create_repository,
    create_service,
)

__all__ = [
    "AvailabilityService",
    "ScheduleRepositoryProtocol",
    "create_repository",
    "create_service",
]
