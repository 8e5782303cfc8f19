"""Domain models for the fleet availability engine."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class EventKind(StrEnum):
    RENTAL = "rental"
    MAINTENANCE = "maintenance"
    BLOCK = "block"


class EventStatus(StrEnum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class AvailabilityStatus(StrEnum):
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"
    BLOCKED = "blocked"


class ConflictKind(StrEnum):
    DOUBLE_BOOKING = "double_booking"
    MAINTENANCE_OVERLAP = "maintenance_overlap"


class CalendarViewType(StrEnum):
    MONTH = "month"
    WEEK = "week"
    DAY = "day"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Event(BaseModel):
    """A contiguous span during which a vehicle cannot take new bookings.

    ``end`` is exclusive.  An event with ``start == end`` occupies that one day.
    """

    id: str
    vehicle_id: str
    kind: EventKind
    start: date
    end: date
    status: EventStatus = EventStatus.CONFIRMED
    source_id: str | None = None
    label: str = ""
    customer_name: str | None = None
    description: str | None = None

    @model_validator(mode="after")
    def _start_not_after_end(self) -> Event:
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self


class Vehicle(BaseModel):
    id: str
    display_name: str


class DateRange(BaseModel):
    start: date
    end: date


class EventScope(BaseModel):
    organization_id: str
    vehicle_ids: set[str] | None = None


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


class AvailabilityDay(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vehicle_id: str
    vehicle_name: str
    day: date = Field(alias="date")
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    source_event_id: str | None = None
    source_id: str | None = None
    label: str | None = None
    event_status: EventStatus | None = None
    color: str


class AvailabilityResult(BaseModel):
    available: bool
    conflicts: list[Event] = Field(default_factory=list)
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE


class Conflict(BaseModel):
    vehicle_id: str
    vehicle_name: str
    kind: ConflictKind
    events: list[Event] = Field(min_length=2)
    window: DateRange
    suggested_resolution: str | None = None


class CalendarView(BaseModel):
    type: CalendarViewType
    anchor: date
    window: DateRange
    events: list[Event] = Field(default_factory=list)


class CalendarStats(BaseModel):
    total_bookings: int
    average_utilization: float
    peak_days: list[date] = Field(default_factory=list)
    low_utilization_days: list[date] = Field(default_factory=list)


class AuditEntry(BaseModel):
    """One conflict observed by an administrative audit."""

    vehicle_id: str
    kind: ConflictKind
    event_ids: list[str]
    window: DateRange
    recorded_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Request DTOs
# ---------------------------------------------------------------------------


class CheckAvailabilityRequest(BaseModel):
    vehicle_id: str
    start: date
    end: date
    exclude_event_id: str | None = None
