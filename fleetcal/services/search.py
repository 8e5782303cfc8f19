"""Service for finding the next free slot for a vehicle."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from fleetcal.domain.errors import InvalidRange
from fleetcal.domain.models import DateRange, Event
from fleetcal.services.conflicts import check_availability

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_HORIZON_DAYS = 30


def find_next_available(
    vehicle_id: str,
    events: list[Event],
    from_date: date,
    duration_days: int,
    search_horizon_days: int = DEFAULT_SEARCH_HORIZON_DAYS,
) -> date | None:
    """Return the earliest start day, at or after *from_date*, when the vehicle
    is free for *duration_days* consecutive days.

    Candidate starts run from ``from_date`` to ``from_date + search_horizon_days``
    inclusive; ``None`` means nothing fits in that window.  A duration of zero
    checks a single day.

    Scans day by day, so cost is horizon x events.
    """
    if duration_days < 0:
        raise InvalidRange(f"duration_days must be >= 0, got {duration_days}")
    if search_horizon_days < 0:
        raise InvalidRange(
            f"search_horizon_days must be >= 0, got {search_horizon_days}"
        )

    vehicle_events = [e for e in events if e.vehicle_id == vehicle_id]
    for offset in range(search_horizon_days + 1):
        start = from_date + timedelta(days=offset)
        candidate = DateRange(start=start, end=start + timedelta(days=duration_days))
        if check_availability(vehicle_id, candidate, vehicle_events).available:
            return start

    logger.info(
        "No %d-day slot for vehicle %s within %d days of %s",
        duration_days,
        vehicle_id,
        search_horizon_days,
        from_date,
    )
    return None
