"""Calendar windows, display colours and utilization statistics."""

from __future__ import annotations

from collections import Counter
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from fleetcal.domain.models import (
    AvailabilityDay,
    AvailabilityStatus,
    CalendarStats,
    CalendarViewType,
    DateRange,
    Event,
    EventKind,
    EventStatus,
)
from fleetcal.services.intervals import is_active

AVAILABLE_COLOR = "#28a745"
UNKNOWN_COLOR = "#6c757d"

_RENTAL_COLORS = {
    EventStatus.CONFIRMED: "#007AFF",
    EventStatus.COMPLETED: "#28a745",
    EventStatus.CANCELLED: "#dc3545",
    EventStatus.PENDING: UNKNOWN_COLOR,
}

_KIND_COLORS = {
    EventKind.MAINTENANCE: "#ffc107",
    EventKind.BLOCK: "#dc3545",
}

STATS_DAY_COUNT = 3


def event_color(kind: EventKind, status: EventStatus | None = None) -> str:
    """Colour a calendar UI should use for an event of this kind/status."""
    if kind == EventKind.RENTAL:
        return _RENTAL_COLORS.get(status, UNKNOWN_COLOR)
    return _KIND_COLORS.get(kind, UNKNOWN_COLOR)


def calendar_window(view: CalendarViewType, anchor: date) -> DateRange:
    """Inclusive date range covered by a month/week/day view around *anchor*."""
    if view == CalendarViewType.MONTH:
        first = anchor.replace(day=1)
        last = first + relativedelta(months=1) - timedelta(days=1)
        return DateRange(start=first, end=last)
    if view == CalendarViewType.WEEK:
        return DateRange(start=anchor, end=anchor + timedelta(days=6))
    return DateRange(start=anchor, end=anchor)


def calendar_stats(
    grid: list[AvailabilityDay], events: list[Event], date_range: DateRange
) -> CalendarStats:
    """Summarize fleet usage over *date_range*.

    Utilization is the share of (vehicle, day) cells that are not available.
    Peak and low days are ranked by occupied cell count, ties by date.
    """
    total_bookings = sum(
        1
        for e in events
        if e.kind == EventKind.RENTAL
        and is_active(e)
        and date_range.start <= e.start <= date_range.end
    )

    occupied_per_day: Counter[date] = Counter()
    occupied = 0
    for cell in grid:
        occupied_per_day.setdefault(cell.day, 0)
        if cell.status != AvailabilityStatus.AVAILABLE:
            occupied_per_day[cell.day] += 1
            occupied += 1

    utilization = occupied / len(grid) if grid else 0.0

    by_busiest = sorted(occupied_per_day.items(), key=lambda kv: (-kv[1], kv[0]))
    by_quietest = sorted(occupied_per_day.items(), key=lambda kv: (kv[1], kv[0]))

    return CalendarStats(
        total_bookings=total_bookings,
        average_utilization=utilization,
        peak_days=[d for d, _ in by_busiest[:STATS_DAY_COUNT]],
        low_utilization_days=[d for d, _ in by_quietest[:STATS_DAY_COUNT]],
    )
