"""
Schedule repository backed by a local YAML file.
"""

import asyncio
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..domain.exceptions import RepositoryUnavailable
from ..domain.models import Booking, ProviderSchedule
from .parsing import bookings_for_date, parse_bookings, parse_schedule


class YamlScheduleRepository:
    """
    Repository that reads provider schedules and bookings from YAML.

    The file is read on every call so edits show up without a restart,
    matching the "loaded fresh per request" lifecycle.

    Expected layout::

        providers:
          "42":
            schedule:
              working_days: [1, 2, 3, 4, 5]
              start_time: "09:00"
              end_time: "18:00"
              time_slot_interval: 30
              blocked_slots:
                - {date: "2025-03-10", start_time: "12:00", end_time: "13:00", reason: Lunch}
            bookings:
              "2025-03-10":
                - {start_time: "10:00", end_time: "11:00", status: confirmed}
    """

    def __init__(self, data_file: Path):
        """
        Initialize the repository.

        Args:
            data_file: Path to the YAML data file
        """
        self.data_file = Path(data_file)

    def _load_providers(self) -> Dict[str, Any]:
        """Load the provider mapping, keyed by provider id as text."""
        if not self.data_file.exists():
            raise RepositoryUnavailable(f"Schedule file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise RepositoryUnavailable(f"Could not read {self.data_file}: {exc}") from exc

        providers = data.get("providers", {}) if isinstance(data, dict) else None
        if not isinstance(providers, dict):
            raise RepositoryUnavailable(
                f"{self.data_file} must contain a 'providers' mapping at the root level."
            )

        return {str(key): value or {} for key, value in providers.items()}

    async def _provider_entry(self, provider_id: str) -> Optional[Dict[str, Any]]:
        # Blocking file read runs off the event loop
        providers = await asyncio.to_thread(self._load_providers)
        return providers.get(str(provider_id))

    async def get_provider_schedule(self, provider_id: str) -> Optional[ProviderSchedule]:
        entry = await self._provider_entry(provider_id)
        if entry is None or not entry.get("schedule"):
            return None
        return parse_schedule(provider_id, entry["schedule"])

    async def get_bookings(self, provider_id: str, day: date) -> List[Booking]:
        entry = await self._provider_entry(provider_id)
        if entry is None:
            return []

        try:
            records = bookings_for_date(entry.get("bookings"), day)
        except (AttributeError, ValueError) as exc:
            raise RepositoryUnavailable(
                f"Invalid bookings for provider '{provider_id}': {exc}"
            ) from exc

        return parse_bookings(records)
