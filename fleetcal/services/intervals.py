"""Half-open date interval helpers shared by every availability component.

All boundary comparisons in the engine go through :func:`overlaps`.  Intervals
are ``[start, end)`` at day granularity; a zero-length interval ``[d, d]`` is
read as the single day ``[d, d + 1)``.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from dateutil.rrule import DAILY, rrule

from fleetcal.domain.errors import InvalidRange
from fleetcal.domain.models import DateRange, Event, EventStatus

ONE_DAY = timedelta(days=1)


def occupied_end(start: date, end: date) -> date:
    """Exclusive end of the days actually occupied by ``[start, end)``."""
    return end if end > start else start + ONE_DAY


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Return True if ``[a_start, a_end)`` and ``[b_start, b_end)`` share a day.

    Abutting intervals (``a_end == b_start``) do not overlap.
    """
    return a_start < occupied_end(b_start, b_end) and b_start < occupied_end(
        a_start, a_end
    )


def event_overlaps(event: Event, start: date, end: date) -> bool:
    return overlaps(event.start, event.end, start, end)


def is_active(event: Event) -> bool:
    """Cancelled events never take part in availability or conflict checks."""
    return event.status != EventStatus.CANCELLED


def require_ordered(start: date, end: date) -> None:
    if start > end:
        raise InvalidRange(
            f"Range start {start.isoformat()} is after end {end.isoformat()}",
            start=start,
            end=end,
        )


def iter_days(date_range: DateRange) -> list[date]:
    """Every calendar day in ``[start, end]``, inclusive of both ends."""
    require_ordered(date_range.start, date_range.end)
    rule = rrule(
        DAILY,
        dtstart=datetime.combine(date_range.start, time.min),
        until=datetime.combine(date_range.end, time.min),
    )
    return [dt.date() for dt in rule]
