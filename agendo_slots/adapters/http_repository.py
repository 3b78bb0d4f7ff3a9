"""
Marketplace API client for fetching provider schedules and bookings.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from ..domain.exceptions import RepositoryUnavailable
from ..domain.models import Booking, ProviderSchedule
from .parsing import parse_bookings, parse_schedule

logger = logging.getLogger(__name__)


class HttpScheduleRepository:
    """
    Client for the booking marketplace schedule endpoints.

    Uses ``/api/providers/{id}/schedule`` for working hours and blocked
    slots, and ``/api/bookings`` for the bookings of a day. Requests are
    blocking, so each call runs in a worker thread.
    """

    def __init__(self, base_url: str, access_token: Optional[str] = None, timeout: float = 10.0):
        """
        Initialize the API client.

        Args:
            base_url: Root URL of the marketplace API
            access_token: Optional bearer token
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if access_token:
            self.headers["Authorization"] = f"Bearer {access_token}"

    async def get_provider_schedule(self, provider_id: str) -> Optional[ProviderSchedule]:
        """
        Get the schedule of a provider.

        Returns:
            ProviderSchedule, or None if the provider has no schedule

        Raises:
            RepositoryUnavailable: If the API call fails
        """
        url = f"{self.base_url}/api/providers/{provider_id}/schedule"
        data = await asyncio.to_thread(self._get_json, url, None, True)

        if data is None:
            return None

        schedule = data.get("schedule") if isinstance(data, dict) else None
        if not schedule:
            return None

        return parse_schedule(provider_id, schedule)

    async def get_bookings(self, provider_id: str, day: date) -> List[Booking]:
        """
        Get the bookings of a provider on a given date.

        Raises:
            RepositoryUnavailable: If the API call fails
        """
        url = f"{self.base_url}/api/bookings"
        params = {"providerId": provider_id, "date": day.isoformat()}
        data = await asyncio.to_thread(self._get_json, url, params, False)

        records = data.get("bookings") if isinstance(data, dict) else None
        if records is None:
            raise RepositoryUnavailable(f"Malformed bookings response from {url}")

        return parse_bookings(records)

    def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]],
        allow_missing: bool,
    ) -> Any:
        """
        Perform a GET request and decode the JSON body.

        A 404 yields None when ``allow_missing`` is set.
        """
        logger.debug("GET %s params=%s", url, params)

        try:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)
            if allow_missing and response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise RepositoryUnavailable(f"Failed to fetch {url}: {e}") from e
        except ValueError as e:
            raise RepositoryUnavailable(f"Invalid JSON from {url}: {e}") from e
