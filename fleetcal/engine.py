"""Availability engine: the entry points used by calendar and contract flows.

Each call validates its input, takes one fresh snapshot from the injected
EventSource and runs the pure service functions on it.  Nothing is cached
between calls.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, Protocol

from fleetcal.domain.errors import InvalidRange, SourceUnavailable, VehicleNotFound
from fleetcal.domain.models import (
    AvailabilityDay,
    AvailabilityResult,
    CalendarStats,
    CalendarView,
    CalendarViewType,
    Conflict,
    DateRange,
    Event,
    EventScope,
    Vehicle,
)
from fleetcal.services import calendar, conflicts, grid, scanner, search
from fleetcal.services.intervals import ONE_DAY, occupied_end, require_ordered
from fleetcal.services.source import STORE_ERRORS, EventSource

logger = logging.getLogger(__name__)


class VehicleRegistry(Protocol):
    def get(self, organization_id: str, vehicle_id: str) -> Vehicle:
        """Raises :class:`VehicleNotFound` for unknown ids."""
        ...

    def list_vehicles(self, organization_id: str) -> list[Vehicle]: ...


class AvailabilityEngine:
    def __init__(
        self,
        source: EventSource,
        vehicles: VehicleRegistry,
        organization_id: str,
        search_horizon_days: int = search.DEFAULT_SEARCH_HORIZON_DAYS,
    ) -> None:
        self.source = source
        self.vehicles = vehicles
        self.organization_id = organization_id
        self.search_horizon_days = search_horizon_days

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def check_availability(
        self,
        vehicle_id: str,
        candidate: DateRange,
        exclude_event_id: str | None = None,
    ) -> AvailabilityResult:
        """Is *vehicle_id* free for ``[candidate.start, candidate.end)``?"""
        require_ordered(candidate.start, candidate.end)
        events = self._fetch([vehicle_id], candidate.start, candidate.end)
        return conflicts.check_availability(
            vehicle_id, candidate, events, exclude_event_id
        )

    def build_grid(
        self, vehicle_ids: Iterable[str] | None, date_range: DateRange
    ) -> list[AvailabilityDay]:
        """Per-vehicle, per-day status for every day of the inclusive range.

        ``vehicle_ids=None`` means the organization's whole fleet.
        """
        require_ordered(date_range.start, date_range.end)
        fleet = self._resolve_vehicles(vehicle_ids)
        if not fleet:
            return []
        events = self._fetch(
            [v.id for v in fleet], date_range.start, date_range.end + ONE_DAY
        )
        return grid.build_grid(fleet, events, date_range)

    def find_next_available(
        self, vehicle_id: str, from_date: date, duration_days: int
    ) -> date | None:
        if duration_days < 0:
            raise InvalidRange(f"duration_days must be >= 0, got {duration_days}")
        last_start = from_date + timedelta(days=self.search_horizon_days)
        last_end = occupied_end(last_start, last_start + timedelta(days=duration_days))
        events = self._fetch([vehicle_id], from_date, last_end)
        return search.find_next_available(
            vehicle_id, events, from_date, duration_days, self.search_horizon_days
        )

    def detect_conflicts(
        self, vehicle_ids: Iterable[str] | None, date_range: DateRange
    ) -> list[Conflict]:
        require_ordered(date_range.start, date_range.end)
        fleet = self._resolve_vehicles(vehicle_ids)
        if not fleet:
            return []
        events = self._fetch(
            [v.id for v in fleet], date_range.start, date_range.end + ONE_DAY
        )
        return scanner.detect_conflicts(fleet, events, date_range)

    def calendar_view(
        self,
        view: CalendarViewType,
        anchor: date,
        vehicle_ids: Iterable[str] | None = None,
    ) -> CalendarView:
        """Events to draw on a month, week or day calendar around *anchor*."""
        window = calendar.calendar_window(view, anchor)
        ids = None if vehicle_ids is None else list(vehicle_ids)
        if ids == []:
            events: list[Event] = []
        else:
            events = self._fetch(ids, window.start, window.end + ONE_DAY)
        events.sort(key=conflicts.event_sort_key)
        return CalendarView(type=view, anchor=anchor, window=window, events=events)

    def calendar_stats(
        self, date_range: DateRange, vehicle_ids: Iterable[str] | None = None
    ) -> CalendarStats:
        require_ordered(date_range.start, date_range.end)
        fleet = self._resolve_vehicles(vehicle_ids)
        if not fleet:
            return calendar.calendar_stats([], [], date_range)
        events = self._fetch(
            [v.id for v in fleet], date_range.start, date_range.end + ONE_DAY
        )
        cells = grid.build_grid(fleet, events, date_range)
        return calendar.calendar_stats(cells, events, date_range)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_vehicles(self, vehicle_ids: Iterable[str] | None) -> list[Vehicle]:
        if vehicle_ids is None:
            return self.vehicles.list_vehicles(self.organization_id)

        fleet: list[Vehicle] = []
        for vehicle_id in dict.fromkeys(vehicle_ids):
            try:
                fleet.append(self.vehicles.get(self.organization_id, vehicle_id))
            except VehicleNotFound:
                # Unknown vehicles have no occupying events: fully available.
                logger.debug("Vehicle %s not in registry, treating as free", vehicle_id)
                fleet.append(Vehicle(id=vehicle_id, display_name=vehicle_id))
        return fleet

    def _fetch(
        self, vehicle_ids: list[str] | None, start: date, end: date
    ) -> list[Event]:
        scope = EventScope(
            organization_id=self.organization_id,
            vehicle_ids=set(vehicle_ids) if vehicle_ids is not None else None,
        )
        try:
            return list(self.source.fetch_events(scope, DateRange(start=start, end=end)))
        except STORE_ERRORS as exc:
            logger.error("Event source failed for org %s: %s", self.organization_id, exc)
            raise SourceUnavailable(str(exc)) from exc
