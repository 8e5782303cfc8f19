"""Tests for the event source adapters."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from fleetcal.domain.errors import SourceUnavailable
from fleetcal.domain.models import DateRange, Event, EventKind, EventScope, EventStatus
from fleetcal.repos.memory import InMemoryBookingStore, InMemoryEventSource
from fleetcal.services.source import (
    RecordEventSource,
    contract_to_event,
    maintenance_to_event,
    parse_record_date,
)

_ORG = "org-1"
_MARCH = DateRange(start=date(2025, 3, 1), end=date(2025, 4, 1))


def _contract(**overrides) -> dict:
    record = {
        "id": 42,
        "car_id": "V1",
        "make": "Toyota",
        "model": "Yaris",
        "renter_full_name": "Maria Papadopoulou",
        "pickup_date": "2025-03-10",
        "dropoff_date": "2025-03-15",
        "status": "active",
    }
    record.update(overrides)
    return record


def _maintenance(**overrides) -> dict:
    record = {
        "id": 7,
        "car_id": "V1",
        "make": "Toyota",
        "model": "Yaris",
        "maintenance_type": "inspection",
        "description": "KTEO",
        "performed_at": date(2025, 3, 20),
        "next_due_date": None,
    }
    record.update(overrides)
    return record


# ---------------------------------------------------------------------------
# Record normalization
# ---------------------------------------------------------------------------


def test_parse_record_date_accepts_dates_datetimes_and_strings():
    assert parse_record_date(date(2025, 3, 1)) == date(2025, 3, 1)
    assert parse_record_date(datetime(2025, 3, 1, 9, 30)) == date(2025, 3, 1)
    assert parse_record_date("2025-03-01") == date(2025, 3, 1)
    assert parse_record_date(None) is None
    assert parse_record_date("") is None


def test_contract_becomes_rental_event():
    event = contract_to_event(_contract())
    assert event.id == "rental-42"
    assert event.source_id == "42"
    assert event.vehicle_id == "V1"
    assert event.kind == EventKind.RENTAL
    assert event.start == date(2025, 3, 10)
    assert event.end == date(2025, 3, 15)
    assert event.status == EventStatus.CONFIRMED
    assert event.label == "Toyota Yaris - Maria Papadopoulou"
    assert event.customer_name == "Maria Papadopoulou"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("active", EventStatus.CONFIRMED),
        ("completed", EventStatus.COMPLETED),
        ("cancelled", EventStatus.CANCELLED),
        ("draft", EventStatus.PENDING),
        (None, EventStatus.PENDING),
    ],
)
def test_contract_status_mapping(raw, expected):
    assert contract_to_event(_contract(status=raw)).status == expected


def test_maintenance_is_single_day_event():
    event = maintenance_to_event(_maintenance())
    assert event.id == "maintenance-7"
    assert event.kind == EventKind.MAINTENANCE
    assert event.start == event.end == date(2025, 3, 20)
    assert event.label == "Toyota Yaris - Inspection"
    assert event.description == "KTEO"


def test_blocked_maintenance_becomes_block_event():
    event = maintenance_to_event(
        _maintenance(
            maintenance_type="blocked",
            performed_at=date(2025, 3, 5),
            next_due_date=date(2025, 3, 9),
        )
    )
    assert event.id == "block-7"
    assert event.kind == EventKind.BLOCK
    assert (event.start, event.end) == (date(2025, 3, 5), date(2025, 3, 9))


def test_contract_with_reversed_dates_is_rejected():
    with pytest.raises(ValueError):
        contract_to_event(_contract(pickup_date="2025-03-15", dropoff_date="2025-03-10"))


# ---------------------------------------------------------------------------
# RecordEventSource
# ---------------------------------------------------------------------------


def _store() -> InMemoryBookingStore:
    store = InMemoryBookingStore()
    store.add_contract(_ORG, _contract())
    store.add_contract(_ORG, _contract(id=43, car_id="V2"))
    store.add_contract(_ORG, _contract(id=44, pickup_date="2025-05-01", dropoff_date="2025-05-03"))
    store.add_contract("other-org", _contract(id=99))
    store.add_maintenance(_ORG, _maintenance())
    return store


def test_fetch_filters_by_org_vehicle_and_range():
    source = RecordEventSource(_store())
    events = source.fetch_events(EventScope(organization_id=_ORG, vehicle_ids={"V1"}), _MARCH)
    assert [e.id for e in events] == ["rental-42", "maintenance-7"]


def test_fetch_without_vehicle_filter_returns_whole_fleet():
    source = RecordEventSource(_store())
    events = source.fetch_events(EventScope(organization_id=_ORG), _MARCH)
    assert {e.id for e in events} == {"rental-42", "rental-43", "maintenance-7"}


def test_single_day_event_on_range_start_is_matched():
    source = RecordEventSource(_store())
    day = DateRange(start=date(2025, 3, 20), end=date(2025, 3, 20))
    events = source.fetch_events(EventScope(organization_id=_ORG), day)
    assert [e.id for e in events] == ["maintenance-7"]


def test_malformed_records_are_skipped():
    store = _store()
    store.add_contract(_ORG, _contract(id=45, pickup_date=None))
    store.add_contract(_ORG, {"car_id": "V1"})
    events = RecordEventSource(store).fetch_events(EventScope(organization_id=_ORG), _MARCH)
    assert {e.id for e in events} == {"rental-42", "rental-43", "maintenance-7"}


class _DownStore:
    def list_contracts(self, *args, **kwargs):
        raise ConnectionError("connection refused")

    def list_maintenance(self, *args, **kwargs):
        return []


def test_unreachable_store_raises_source_unavailable():
    source = RecordEventSource(_DownStore())
    with pytest.raises(SourceUnavailable):
        source.fetch_events(EventScope(organization_id=_ORG), _MARCH)


# ---------------------------------------------------------------------------
# InMemoryEventSource
# ---------------------------------------------------------------------------


def test_in_memory_source_scopes_by_organization():
    source = InMemoryEventSource()
    event = Event(
        id="rental-1",
        vehicle_id="V1",
        kind=EventKind.RENTAL,
        start=date(2025, 3, 10),
        end=date(2025, 3, 15),
    )
    source.add(_ORG, event)
    assert source.fetch_events(EventScope(organization_id=_ORG), _MARCH) == [event]
    assert source.fetch_events(EventScope(organization_id="other"), _MARCH) == []
