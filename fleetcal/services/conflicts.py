"""Service for checking a single vehicle against a candidate booking."""

from __future__ import annotations

import logging
from datetime import date

from fleetcal.domain.models import (
    AvailabilityResult,
    AvailabilityStatus,
    DateRange,
    Event,
    EventKind,
)
from fleetcal.services.intervals import event_overlaps, is_active, require_ordered

logger = logging.getLogger(__name__)

KIND_TO_STATUS = {
    EventKind.RENTAL: AvailabilityStatus.RENTED,
    EventKind.MAINTENANCE: AvailabilityStatus.MAINTENANCE,
    EventKind.BLOCK: AvailabilityStatus.BLOCKED,
}


def event_sort_key(event: Event) -> tuple[date, str]:
    return (event.start, event.id)


def _is_excluded(event: Event, exclude_event_id: str | None) -> bool:
    if exclude_event_id is None:
        return False
    if event.id == exclude_event_id:
        return True
    # Contract ids only name rentals; maintenance record ids are a separate space.
    return event.kind == EventKind.RENTAL and event.source_id == exclude_event_id


def find_conflicts(
    vehicle_id: str,
    start: date,
    end: date,
    events: list[Event],
    exclude_event_id: str | None = None,
) -> list[Event]:
    """Return the vehicle's active events that overlap ``[start, end)``.

    ``exclude_event_id`` matches an event id, or the ``source_id`` of a rental,
    so a contract being edited can be checked without colliding with itself.
    Results are ordered by start date, then id.
    """
    conflicts = [
        event
        for event in events
        if event.vehicle_id == vehicle_id
        and is_active(event)
        and not _is_excluded(event, exclude_event_id)
        and event_overlaps(event, start, end)
    ]
    conflicts.sort(key=event_sort_key)
    return conflicts


def check_availability(
    vehicle_id: str,
    candidate: DateRange,
    events: list[Event],
    exclude_event_id: str | None = None,
) -> AvailabilityResult:
    """Decide whether *vehicle_id* is free for the candidate interval.

    The reported status comes from the earliest conflicting event's kind.
    """
    require_ordered(candidate.start, candidate.end)
    conflicts = find_conflicts(
        vehicle_id, candidate.start, candidate.end, events, exclude_event_id
    )
    if not conflicts:
        return AvailabilityResult(available=True)

    logger.debug(
        "Vehicle %s busy for %s..%s: %d conflict(s)",
        vehicle_id,
        candidate.start,
        candidate.end,
        len(conflicts),
    )
    return AvailabilityResult(
        available=False,
        conflicts=conflicts,
        status=KIND_TO_STATUS[conflicts[0].kind],
    )
