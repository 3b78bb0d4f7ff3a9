"""
Domain-specific exception hierarchy for slot availability.
"""


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class InvalidTimeFormat(AvailabilityError, ValueError):
    """Raised when a time-of-day value is not valid ``HH:MM`` text."""


class InvalidServiceDuration(AvailabilityError, ValueError):
    """Raised when a service duration or buffer cannot produce a slot."""


class ScheduleNotFound(AvailabilityError):
    """Raised when no schedule is configured for a provider."""

    def __init__(self, provider_id: str):
        super().__init__(f"No availability configured for provider '{provider_id}'")
        self.provider_id = provider_id


class RepositoryUnavailable(AvailabilityError):
    """Raised when schedule or booking data cannot be fetched or parsed."""
