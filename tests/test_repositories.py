"""
Tests for the YAML and HTTP schedule repositories.
"""

import asyncio
import logging
import threading
from datetime import date
from typing import Any, Dict, List

import pytest
import requests

from agendo_slots.adapters.http_repository import HttpScheduleRepository
from agendo_slots.adapters.yaml_repository import YamlScheduleRepository
from agendo_slots.domain.exceptions import RepositoryUnavailable
from agendo_slots.domain.models import BookingStatus, Service
from agendo_slots.domain.slot_engine import SlotEngine
from agendo_slots.services.availability import AvailabilityService

MONDAY = date(2025, 3, 10)

SCHEDULES_YAML = """
providers:
  "42":
    schedule:
      working_days: [1, 2, 3, 4, 5]
      start_time: "09:00"
      end_time: "18:00"
      time_slot_interval: 30
      blocked_slots:
        - {date: "2025-03-10", start_time: "12:00", end_time: "13:00", reason: Lunch}
        - {date: "2025-03-10", start_time: "14:00"}
    bookings:
      2025-03-10:
        - {start_time: "15:00", end_time: "16:00", status: cancelled}
        - {start_time: "10:00", end_time: "11:00"}
        - {start_time: "oops", end_time: "11:00"}
  "99": {}
"""


@pytest.fixture
def yaml_repository(tmp_path) -> YamlScheduleRepository:
    data_file = tmp_path / "schedules.yaml"
    data_file.write_text(SCHEDULES_YAML, encoding="utf-8")
    return YamlScheduleRepository(data_file)


class TestYamlScheduleRepository:
    """Tests for YamlScheduleRepository."""

    def test_get_provider_schedule(self, yaml_repository):
        schedule = asyncio.run(yaml_repository.get_provider_schedule("42"))

        assert schedule is not None
        assert schedule.provider_id == "42"
        assert schedule.working_days == frozenset({1, 2, 3, 4, 5})
        assert (schedule.start_time, schedule.end_time) == (540, 1080)
        # The blocked slot without an end time is skipped
        assert len(schedule.blocked_slots) == 1
        assert schedule.blocked_slots[0].reason == "Lunch"
        assert schedule.blocked_slots[0].date == MONDAY

    def test_unknown_or_empty_provider_has_no_schedule(self, yaml_repository):
        assert asyncio.run(yaml_repository.get_provider_schedule("7")) is None
        assert asyncio.run(yaml_repository.get_provider_schedule("99")) is None

    def test_get_bookings_sorted_and_skips_invalid(self, yaml_repository):
        bookings = asyncio.run(yaml_repository.get_bookings("42", MONDAY))

        assert [booking.start_time for booking in bookings] == [600, 900]
        assert bookings[1].status is BookingStatus.CANCELLED

    def test_get_bookings_other_date(self, yaml_repository):
        assert asyncio.run(yaml_repository.get_bookings("42", date(2025, 3, 11))) == []
        assert asyncio.run(yaml_repository.get_bookings("99", MONDAY)) == []

    def test_missing_file(self, tmp_path):
        repository = YamlScheduleRepository(tmp_path / "missing.yaml")

        with pytest.raises(RepositoryUnavailable, match="not found"):
            asyncio.run(repository.get_provider_schedule("42"))

    def test_invalid_schedule(self, tmp_path):
        data_file = tmp_path / "schedules.yaml"
        data_file.write_text(
            "providers:\n  '1':\n    schedule: {working_days: [1], start_time: '18:00', end_time: '09:00'}\n",
            encoding="utf-8",
        )
        repository = YamlScheduleRepository(data_file)

        with pytest.raises(RepositoryUnavailable, match="Invalid schedule"):
            asyncio.run(repository.get_provider_schedule("1"))


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeRequests:
    """Records calls and replays canned responses keyed by URL suffix."""

    def __init__(self, responses: Dict[str, FakeResponse]):
        self.responses = responses
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, url, headers=None, params=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        for suffix, response in self.responses.items():
            if url.endswith(suffix):
                return response
        raise requests.exceptions.ConnectionError(f"unexpected url {url}")


def _install(monkeypatch: pytest.MonkeyPatch, responses: Dict[str, FakeResponse]) -> FakeRequests:
    fake = FakeRequests(responses)
    monkeypatch.setattr("agendo_slots.adapters.http_repository.requests.get", fake)
    return fake


class TestHttpScheduleRepository:
    """Tests for HttpScheduleRepository."""

    def test_get_provider_schedule(self, monkeypatch):
        fake = _install(
            monkeypatch,
            {
                "/api/providers/42/schedule": FakeResponse(
                    payload={
                        "schedule": {
                            "workingDays": [1, 2, 3, 4, 5],
                            "startTime": "09:00",
                            "endTime": "18:00",
                            "timeSlotInterval": 30,
                            "blockedSlots": [
                                {"date": "2025-03-10", "startTime": "12:00", "endTime": "13:00"}
                            ],
                        }
                    }
                )
            },
        )
        repository = HttpScheduleRepository("https://agendo.example.com/", access_token="secret", timeout=3)

        schedule = asyncio.run(repository.get_provider_schedule("42"))

        assert schedule.time_slot_interval == 30
        assert schedule.blocked_slots[0].start_time == 720
        assert fake.calls[0]["url"] == "https://agendo.example.com/api/providers/42/schedule"
        assert fake.calls[0]["headers"]["Authorization"] == "Bearer secret"
        assert fake.calls[0]["timeout"] == 3

    def test_schedule_not_found(self, monkeypatch):
        _install(monkeypatch, {"/schedule": FakeResponse(status_code=404)})
        repository = HttpScheduleRepository("https://agendo.example.com")

        assert asyncio.run(repository.get_provider_schedule("42")) is None

    def test_null_schedule(self, monkeypatch):
        _install(monkeypatch, {"/schedule": FakeResponse(payload={"schedule": None})})
        repository = HttpScheduleRepository("https://agendo.example.com")

        assert asyncio.run(repository.get_provider_schedule("42")) is None

    def test_get_bookings(self, monkeypatch):
        fake = _install(
            monkeypatch,
            {
                "/api/bookings": FakeResponse(
                    payload={"bookings": [{"startTime": "10:00", "endTime": "11:00", "status": "pending"}]}
                )
            },
        )
        repository = HttpScheduleRepository("https://agendo.example.com")

        bookings = asyncio.run(repository.get_bookings("42", MONDAY))

        assert len(bookings) == 1
        assert bookings[0].status is BookingStatus.PENDING
        assert fake.calls[0]["params"] == {"providerId": "42", "date": "2025-03-10"}
        assert "Authorization" not in fake.calls[0]["headers"]

    def test_server_error_is_repository_unavailable(self, monkeypatch):
        _install(monkeypatch, {"/api/bookings": FakeResponse(status_code=500)})
        repository = HttpScheduleRepository("https://agendo.example.com")

        with pytest.raises(RepositoryUnavailable, match="Failed to fetch"):
            asyncio.run(repository.get_bookings("42", MONDAY))

    def test_bookings_404_is_not_treated_as_empty(self, monkeypatch):
        _install(monkeypatch, {"/api/bookings": FakeResponse(status_code=404)})
        repository = HttpScheduleRepository("https://agendo.example.com")

        with pytest.raises(RepositoryUnavailable):
            asyncio.run(repository.get_bookings("42", MONDAY))

    def test_connection_error(self, monkeypatch):
        _install(monkeypatch, {})
        repository = HttpScheduleRepository("https://agendo.example.com")

        with pytest.raises(RepositoryUnavailable):
            asyncio.run(repository.get_provider_schedule("42"))

    def test_invalid_json(self, monkeypatch):
        _install(monkeypatch, {"/api/bookings": FakeResponse(payload=ValueError("no json"))})
        repository = HttpScheduleRepository("https://agendo.example.com")

        with pytest.raises(RepositoryUnavailable, match="Invalid JSON"):
            asyncio.run(repository.get_bookings("42", MONDAY))

    def test_malformed_bookings_payload(self, monkeypatch):
        _install(monkeypatch, {"/api/bookings": FakeResponse(payload={"items": []})})
        repository = HttpScheduleRepository("https://agendo.example.com")

        with pytest.raises(RepositoryUnavailable, match="Malformed"):
            asyncio.run(repository.get_bookings("42", MONDAY))


STATUS_YAML = """
providers:
  "42":
    schedule:
      working_days: [1, 2, 3, 4, 5]
      start_time: "09:00"
      end_time: "18:00"
    bookings:
      "2025-03-10":
        - {start_time: "09:00", end_time: "10:00", status: scheduled}
        - {start_time: "10:00", end_time: "11:00", status: null}
        - {start_time: "11:00", end_time: "12:00", status: Confirmed}
        - {start_time: "13:00", end_time: "14:00"}
        - {start_time: "14:00", end_time: "15:00", status: rescheduled}
        - {start_time: "15:00", end_time: "16:00", status: Canceled}
"""


class TestBookingStatusParsing:
    """Bookings keep their interval unless explicitly cancelled."""

    @pytest.fixture
    def repository(self, tmp_path) -> YamlScheduleRepository:
        data_file = tmp_path / "schedules.yaml"
        data_file.write_text(STATUS_YAML, encoding="utf-8")
        return YamlScheduleRepository(data_file)

    def test_unusual_statuses_are_kept(self, repository):
        bookings = asyncio.run(repository.get_bookings("42", MONDAY))

        assert [booking.status for booking in bookings] == [
            BookingStatus.SCHEDULED,
            BookingStatus.CONFIRMED,
            BookingStatus.CONFIRMED,
            BookingStatus.CONFIRMED,
            BookingStatus.CONFIRMED,
            BookingStatus.CANCELLED,
        ]
        assert [booking.holds_slot for booking in bookings] == [True, True, True, True, True, False]

    def test_unknown_status_is_logged(self, repository, caplog):
        with caplog.at_level(logging.WARNING, logger="agendo_slots.adapters.parsing"):
            asyncio.run(repository.get_bookings("42", MONDAY))

        assert "rescheduled" in caplog.text

    def test_held_intervals_are_unavailable(self, repository):
        service = AvailabilityService(repository=repository, slot_engine=SlotEngine())

        result = asyncio.run(
            service.compute_available_slots("42", MONDAY, Service(duration_minutes=60))
        )

        slots = {slot.start_text: slot for slot in result.slots}
        for start in ("09:00", "10:00", "11:00", "13:00", "14:00"):
            assert not slots[start].is_available, start
        assert slots["15:00"].is_available

    def test_file_is_read_off_the_event_loop(self, repository, monkeypatch):
        loop_thread = threading.get_ident()
        read_threads = []
        load_providers = repository._load_providers

        def recording_load():
            read_threads.append(threading.get_ident())
            return load_providers()

        monkeypatch.setattr(repository, "_load_providers", recording_load)

        asyncio.run(repository.get_provider_schedule("42"))

        assert read_threads and loop_thread not in read_threads
