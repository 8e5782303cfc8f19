"""Tests for the single-vehicle conflict detector."""

from datetime import date

import pytest

from fleetcal.domain.errors import InvalidRange
from fleetcal.domain.models import (
    AvailabilityStatus,
    DateRange,
    Event,
    EventKind,
    EventScope,
    EventStatus,
)
from fleetcal.repos.memory import InMemoryBookingStore
from fleetcal.services.conflicts import check_availability, find_conflicts
from fleetcal.services.source import RecordEventSource


def _make_event(
    event_id: str,
    start: date,
    end: date,
    vehicle_id: str = "V1",
    kind: EventKind = EventKind.RENTAL,
    status: EventStatus = EventStatus.CONFIRMED,
    source_id: str | None = None,
) -> Event:
    return Event(
        id=event_id,
        vehicle_id=vehicle_id,
        kind=kind,
        start=start,
        end=end,
        status=status,
        source_id=source_id,
    )


_RENTAL = _make_event("rental-1", date(2025, 3, 10), date(2025, 3, 15), source_id="1")


def _check(start: date, end: date, events, **kwargs):
    return check_availability("V1", DateRange(start=start, end=end), events, **kwargs)


def test_overlapping_candidate_reports_the_rental():
    result = _check(date(2025, 3, 12), date(2025, 3, 13), [_RENTAL])
    assert result.available is False
    assert result.conflicts == [_RENTAL]
    assert result.status == AvailabilityStatus.RENTED


def test_abutting_candidate_is_available():
    """Back-to-back bookings are legal."""
    result = _check(date(2025, 3, 15), date(2025, 3, 18), [_RENTAL])
    assert result.available is True
    assert result.conflicts == []
    assert result.status == AvailabilityStatus.AVAILABLE


def test_candidate_ending_at_event_start_is_available():
    result = _check(date(2025, 3, 7), date(2025, 3, 10), [_RENTAL])
    assert result.available is True


def test_zero_length_candidate_checks_one_day():
    assert _check(date(2025, 3, 14), date(2025, 3, 14), [_RENTAL]).available is False
    assert _check(date(2025, 3, 15), date(2025, 3, 15), [_RENTAL]).available is True


def test_other_vehicles_are_ignored():
    other = _make_event("rental-2", date(2025, 3, 1), date(2025, 3, 30), vehicle_id="V2")
    assert _check(date(2025, 3, 12), date(2025, 3, 13), [other]).available is True


def test_cancelled_events_are_ignored():
    cancelled = _make_event(
        "rental-3", date(2025, 3, 10), date(2025, 3, 15), status=EventStatus.CANCELLED
    )
    assert _check(date(2025, 3, 12), date(2025, 3, 13), [cancelled]).available is True


def test_pending_events_still_conflict():
    pending = _make_event(
        "rental-4", date(2025, 3, 10), date(2025, 3, 15), status=EventStatus.PENDING
    )
    assert _check(date(2025, 3, 12), date(2025, 3, 13), [pending]).available is False


def test_self_exclusion_by_event_id():
    result = _check(
        _RENTAL.start, _RENTAL.end, [_RENTAL], exclude_event_id="rental-1"
    )
    assert result.available is True


def test_self_exclusion_by_contract_id():
    """Editing contract 1 must not collide with its own rental event."""
    result = _check(date(2025, 3, 11), date(2025, 3, 16), [_RENTAL], exclude_event_id="1")
    assert result.available is True


def test_contract_exclusion_keeps_maintenance_with_same_record_id():
    """Contract 7 and maintenance record 7 are different things."""
    store = InMemoryBookingStore()
    store.add_contract(
        "org-1",
        {"id": 7, "car_id": "V1", "pickup_date": "2025-03-10", "dropoff_date": "2025-03-15", "status": "active"},
    )
    store.add_maintenance(
        "org-1",
        {"id": 7, "car_id": "V1", "maintenance_type": "repair", "performed_at": "2025-03-16"},
    )
    events = RecordEventSource(store).fetch_events(
        EventScope(organization_id="org-1"),
        DateRange(start=date(2025, 3, 1), end=date(2025, 4, 1)),
    )

    result = _check(date(2025, 3, 10), date(2025, 3, 18), events, exclude_event_id="7")

    assert result.available is False
    assert [e.id for e in result.conflicts] == ["maintenance-7"]
    assert result.status == AvailabilityStatus.MAINTENANCE


def test_exclusion_keeps_other_conflicts():
    other = _make_event("rental-5", date(2025, 3, 14), date(2025, 3, 20))
    result = _check(
        date(2025, 3, 10), date(2025, 3, 16), [_RENTAL, other], exclude_event_id="rental-1"
    )
    assert result.conflicts == [other]


def test_conflicts_ordered_by_start_then_id():
    late = _make_event("b", date(2025, 3, 12), date(2025, 3, 14))
    early_b = _make_event("z", date(2025, 3, 11), date(2025, 3, 13))
    early_a = _make_event("a", date(2025, 3, 11), date(2025, 3, 12))
    found = find_conflicts("V1", date(2025, 3, 10), date(2025, 3, 20), [late, early_b, early_a])
    assert [e.id for e in found] == ["a", "z", "b"]


def test_status_follows_first_conflict_kind():
    maintenance = _make_event(
        "maintenance-1", date(2025, 3, 9), date(2025, 3, 9), kind=EventKind.MAINTENANCE
    )
    block = _make_event("block-1", date(2025, 3, 11), date(2025, 3, 12), kind=EventKind.BLOCK)
    result = _check(date(2025, 3, 9), date(2025, 3, 12), [_RENTAL, block, maintenance])
    assert result.status == AvailabilityStatus.MAINTENANCE
    assert [e.id for e in result.conflicts] == ["maintenance-1", "rental-1", "block-1"]


def test_reversed_candidate_is_rejected():
    with pytest.raises(InvalidRange):
        _check(date(2025, 3, 13), date(2025, 3, 12), [_RENTAL])


def test_no_events_means_available():
    assert _check(date(2025, 3, 12), date(2025, 3, 13), []).available is True
