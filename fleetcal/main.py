"""FastAPI application — HTTP surface of the fleet availability engine."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from fleetcal.config import Settings
from fleetcal.domain.bus import NotificationBus
from fleetcal.domain.errors import InvalidRange, SourceUnavailable
from fleetcal.domain.handlers import HandlerRegistry, publish_conflicts
from fleetcal.domain.models import (
    AuditEntry,
    AvailabilityDay,
    AvailabilityResult,
    CalendarStats,
    CalendarView,
    CalendarViewType,
    CheckAvailabilityRequest,
    Conflict,
    DateRange,
)
from fleetcal.engine import AvailabilityEngine
from fleetcal.repos.memory import (
    AuditLogRepository,
    InMemoryEventSource,
    InMemoryVehicleRegistry,
    seed_demo_fleet,
)

settings = Settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Fleet Availability Service")

# ── Singletons (created at import time for simplicity) ────────────────
notification_bus = NotificationBus()
event_source = InMemoryEventSource()
vehicle_registry = InMemoryVehicleRegistry()
audit_repo = AuditLogRepository()

handler_registry = HandlerRegistry(bus=notification_bus, audit_repo=audit_repo)

if settings.seed_demo:
    seed_demo_fleet(settings.organization_id, vehicle_registry, event_source)


def get_engine(organization_id: str | None = None) -> AvailabilityEngine:
    """Build an engine for one request; engines hold no state of their own."""
    return AvailabilityEngine(
        source=event_source,
        vehicles=vehicle_registry,
        organization_id=organization_id or settings.organization_id,
        search_horizon_days=settings.search_horizon_days,
    )


# ── Error handling ────────────────────────────────────────────────────


def _error_payload(*, code: str, message: str, retryable: bool = False) -> dict:
    return {"error": {"code": code, "message": message, "retryable": retryable}}


@app.exception_handler(InvalidRange)
async def invalid_range_handler(request: Request, exc: InvalidRange):
    return JSONResponse(
        status_code=400,
        content=_error_payload(code="INVALID_RANGE", message=str(exc)),
    )


@app.exception_handler(SourceUnavailable)
async def source_unavailable_handler(request: Request, exc: SourceUnavailable):
    # Transient: the client may retry or show a degraded calendar.
    logger.warning("Event source unavailable for %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content=_error_payload(
            code="SOURCE_UNAVAILABLE",
            message="Booking data is temporarily unavailable",
            retryable=True,
        ),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_payload(code="INTERNAL_ERROR", message="Internal server error"),
    )


# ── Routes ────────────────────────────────────────────────────────────


@app.post("/availability/check", response_model=AvailabilityResult)
def check_availability(
    payload: CheckAvailabilityRequest, organization_id: str | None = None
) -> AvailabilityResult:
    """Check a vehicle before confirming a new or edited rental."""
    return get_engine(organization_id).check_availability(
        payload.vehicle_id,
        DateRange(start=payload.start, end=payload.end),
        exclude_event_id=payload.exclude_event_id,
    )


@app.get("/availability/grid", response_model=list[AvailabilityDay])
def availability_grid(
    start: date,
    end: date,
    vehicle_ids: list[str] | None = Query(default=None),
    organization_id: str | None = None,
) -> list[AvailabilityDay]:
    """Per-vehicle, per-day status for calendar views."""
    return get_engine(organization_id).build_grid(
        vehicle_ids, DateRange(start=start, end=end)
    )


@app.get("/availability/next")
def next_available(
    vehicle_id: str,
    from_date: date,
    duration_days: int,
    organization_id: str | None = None,
) -> dict:
    """Suggest the earliest start date when the vehicle is free again."""
    found = get_engine(organization_id).find_next_available(
        vehicle_id, from_date, duration_days
    )
    return {
        "vehicle_id": vehicle_id,
        "from_date": from_date.isoformat(),
        "duration_days": duration_days,
        "next_available": found.isoformat() if found else None,
    }


@app.get("/conflicts", response_model=list[Conflict])
def audit_conflicts(
    start: date,
    end: date,
    vehicle_ids: list[str] | None = Query(default=None),
    organization_id: str | None = None,
) -> list[Conflict]:
    """Administrative audit: every double-booking and maintenance overlap."""
    engine = get_engine(organization_id)
    date_range = DateRange(start=start, end=end)
    found = engine.detect_conflicts(vehicle_ids, date_range)
    publish_conflicts(notification_bus, engine.organization_id, date_range, found)
    return found


@app.get("/conflicts/audit-log", response_model=list[AuditEntry])
def audit_log(vehicle_id: str | None = None) -> list[AuditEntry]:
    """Conflicts recorded by previous audits, oldest first."""
    if vehicle_id is not None:
        return audit_repo.list_for_vehicle(vehicle_id)
    return audit_repo.list_all()


@app.get("/calendar/stats", response_model=CalendarStats)
def calendar_stats(
    start: date,
    end: date,
    vehicle_ids: list[str] | None = Query(default=None),
    organization_id: str | None = None,
) -> CalendarStats:
    return get_engine(organization_id).calendar_stats(
        DateRange(start=start, end=end), vehicle_ids
    )


@app.get("/calendar/{view}", response_model=CalendarView)
def calendar_view(
    view: CalendarViewType,
    anchor: date,
    vehicle_ids: list[str] | None = Query(default=None),
    organization_id: str | None = None,
) -> CalendarView:
    """Events to draw on a month, week or day calendar."""
    return get_engine(organization_id).calendar_view(view, anchor, vehicle_ids)
