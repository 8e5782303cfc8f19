"""Service for expanding events into a per-vehicle, per-day availability grid."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date

from fleetcal.domain.models import (
    AvailabilityDay,
    DateRange,
    Event,
    EventKind,
    Vehicle,
)
from fleetcal.services.calendar import AVAILABLE_COLOR, event_color
from fleetcal.services.conflicts import KIND_TO_STATUS
from fleetcal.services.intervals import ONE_DAY, event_overlaps, is_active, iter_days

logger = logging.getLogger(__name__)

# Lower rank wins when several events occupy the same day.
KIND_PRIORITY = {
    EventKind.BLOCK: 0,
    EventKind.MAINTENANCE: 1,
    EventKind.RENTAL: 2,
}


def priority_key(event: Event) -> tuple[int, date, str]:
    return (KIND_PRIORITY[event.kind], event.start, event.id)


def resolve_day(events: list[Event], day: date) -> Event | None:
    """Pick the event that determines a vehicle's status on *day*.

    ``events`` must already be sorted with :func:`priority_key`.
    """
    for event in events:
        if event_overlaps(event, day, day + ONE_DAY):
            return event
    return None


def _cell(vehicle: Vehicle, day: date, event: Event | None) -> AvailabilityDay:
    if event is None:
        return AvailabilityDay(
            vehicle_id=vehicle.id,
            vehicle_name=vehicle.display_name,
            day=day,
            color=AVAILABLE_COLOR,
        )
    return AvailabilityDay(
        vehicle_id=vehicle.id,
        vehicle_name=vehicle.display_name,
        day=day,
        status=KIND_TO_STATUS[event.kind],
        source_event_id=event.id,
        source_id=event.source_id,
        label=event.label or None,
        event_status=event.status,
        color=event_color(event.kind, event.status),
    )


def build_grid(
    vehicles: list[Vehicle], events: list[Event], date_range: DateRange
) -> list[AvailabilityDay]:
    """Return one AvailabilityDay per (vehicle, day) in the inclusive range.

    Vehicles keep their input order; days ascend.  When events collide on a
    day, ``block`` beats ``maintenance`` beats ``rental``, then the earliest
    start wins, then the lowest id.  Pending events occupy their days like
    confirmed ones; ``event_status`` tells a UI to render them as tentative.
    """
    days = iter_days(date_range)

    by_vehicle: dict[str, list[Event]] = defaultdict(list)
    for event in events:
        if is_active(event):
            by_vehicle[event.vehicle_id].append(event)
    for vehicle_events in by_vehicle.values():
        vehicle_events.sort(key=priority_key)

    grid: list[AvailabilityDay] = []
    seen: set[str] = set()
    for vehicle in vehicles:
        if vehicle.id in seen:
            continue
        seen.add(vehicle.id)
        vehicle_events = by_vehicle.get(vehicle.id, [])
        for day in days:
            grid.append(_cell(vehicle, day, resolve_day(vehicle_events, day)))

    logger.debug(
        "Built grid of %d cells for %d vehicle(s) over %d day(s)",
        len(grid),
        len(vehicles),
        len(days),
    )
    return grid
