"""Service for auditing a whole fleet for overlapping bookings."""

from __future__ import annotations

import logging
from collections import defaultdict

from fleetcal.domain.models import (
    Conflict,
    ConflictKind,
    DateRange,
    Event,
    EventKind,
    EventStatus,
    Vehicle,
)
from fleetcal.services.conflicts import event_sort_key
from fleetcal.services.intervals import (
    ONE_DAY,
    is_active,
    occupied_end,
    overlaps,
    require_ordered,
)

logger = logging.getLogger(__name__)

SUGGESTED_RESOLUTIONS = {
    ConflictKind.DOUBLE_BOOKING: "Reschedule one of the bookings or move it to another vehicle",
    ConflictKind.MAINTENANCE_OVERLAP: "Move the maintenance or reassign the rental to another vehicle",
}


def classify(first: Event, second: Event) -> ConflictKind:
    if EventKind.MAINTENANCE in (first.kind, second.kind):
        return ConflictKind.MAINTENANCE_OVERLAP
    return ConflictKind.DOUBLE_BOOKING


def _both_pending(first: Event, second: Event) -> bool:
    # Two unconfirmed holds are not yet a real double-booking.
    return first.status == EventStatus.PENDING and second.status == EventStatus.PENDING


def _pair(vehicle: Vehicle, earlier: Event, current: Event) -> Conflict:
    kind = classify(earlier, current)
    window = DateRange(
        start=current.start,
        end=min(
            occupied_end(earlier.start, earlier.end),
            occupied_end(current.start, current.end),
        ),
    )
    return Conflict(
        vehicle_id=vehicle.id,
        vehicle_name=vehicle.display_name,
        kind=kind,
        events=[earlier, current],
        window=window,
        suggested_resolution=SUGGESTED_RESOLUTIONS[kind],
    )


def _scan_vehicle(vehicle: Vehicle, events: list[Event]) -> list[Conflict]:
    ordered = sorted(events, key=event_sort_key)
    conflicts: list[Conflict] = []
    previous: Event | None = None
    # Earlier event whose occupied span reaches furthest; catches bookings
    # nested inside it that are not adjacent to it in sorted order.
    reach: Event | None = None

    for current in ordered:
        candidates = [previous]
        if reach is not None and reach is not previous:
            candidates.append(reach)
        for earlier in candidates:
            if earlier is None or _both_pending(earlier, current):
                continue
            if occupied_end(earlier.start, earlier.end) > current.start:
                conflicts.append(_pair(vehicle, earlier, current))

        if reach is None or occupied_end(current.start, current.end) > occupied_end(
            reach.start, reach.end
        ):
            reach = current
        previous = current

    conflicts.sort(
        key=lambda c: (c.window.start, c.window.end, [e.id for e in c.events])
    )
    return conflicts


def detect_conflicts(
    vehicles: list[Vehicle], events: list[Event], date_range: DateRange
) -> list[Conflict]:
    """Report overlapping bookings per vehicle.

    Events are swept in ``(start, id)`` order and each one is compared with its
    predecessor.  It is also compared with the earlier event reaching furthest,
    when that is a different event, so bookings nested inside a long one are
    caught.  A chain a-b-c yields a-b and b-c only.  A conflict is
    ``maintenance_overlap`` when either side is maintenance, otherwise
    ``double_booking``.  Only conflicts whose window touches the inclusive
    *date_range* are returned.
    """
    require_ordered(date_range.start, date_range.end)

    by_vehicle: dict[str, list[Event]] = defaultdict(list)
    for event in events:
        if is_active(event):
            by_vehicle[event.vehicle_id].append(event)

    found: list[Conflict] = []
    seen: set[str] = set()
    for vehicle in vehicles:
        if vehicle.id in seen:
            continue
        seen.add(vehicle.id)
        for conflict in _scan_vehicle(vehicle, by_vehicle.get(vehicle.id, [])):
            if overlaps(
                conflict.window.start,
                conflict.window.end,
                date_range.start,
                date_range.end + ONE_DAY,
            ):
                found.append(conflict)

    if found:
        logger.warning(
            "Found %d conflict(s) across %d vehicle(s) between %s and %s",
            len(found),
            len({c.vehicle_id for c in found}),
            date_range.start,
            date_range.end,
        )
    return found
