"""In-memory stores for events, raw booking records, vehicles and audit entries."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Any

from fleetcal.domain.errors import VehicleNotFound
from fleetcal.domain.models import (
    AuditEntry,
    DateRange,
    Event,
    EventKind,
    EventScope,
    EventStatus,
    Vehicle,
)
from fleetcal.services.source import in_scope


class InMemoryEventSource:
    """Dict-backed EventSource, keyed by organization then event id."""

    def __init__(self) -> None:
        self._store: dict[str, dict[str, Event]] = defaultdict(dict)

    def add(self, organization_id: str, event: Event) -> None:
        self._store[organization_id][event.id] = event

    def get(self, organization_id: str, event_id: str) -> Event | None:
        return self._store[organization_id].get(event_id)

    def list_all(self, organization_id: str) -> list[Event]:
        return list(self._store[organization_id].values())

    def delete(self, organization_id: str, event_id: str) -> None:
        self._store[organization_id].pop(event_id, None)

    def clear(self) -> None:
        self._store.clear()

    def fetch_events(self, scope: EventScope, date_range: DateRange) -> list[Event]:
        return [
            event
            for event in self._store[scope.organization_id].values()
            if in_scope(event, scope, date_range)
        ]


class InMemoryBookingStore:
    """List-backed raw record store shaped like the contracts/maintenance tables.

    Filtering is coarse (organization and vehicle only); date filtering is left
    to the adapter.
    """

    def __init__(self) -> None:
        self._contracts: list[tuple[str, dict[str, Any]]] = []
        self._maintenance: list[tuple[str, dict[str, Any]]] = []

    def add_contract(self, organization_id: str, record: dict[str, Any]) -> None:
        self._contracts.append((organization_id, record))

    def add_maintenance(self, organization_id: str, record: dict[str, Any]) -> None:
        self._maintenance.append((organization_id, record))

    def list_contracts(
        self,
        organization_id: str,
        start: date,
        end: date,
        vehicle_ids: set[str] | None = None,
    ) -> list[dict[str, Any]]:
        return _select(self._contracts, organization_id, vehicle_ids)

    def list_maintenance(
        self,
        organization_id: str,
        start: date,
        end: date,
        vehicle_ids: set[str] | None = None,
    ) -> list[dict[str, Any]]:
        return _select(self._maintenance, organization_id, vehicle_ids)


def _select(
    rows: list[tuple[str, dict[str, Any]]],
    organization_id: str,
    vehicle_ids: set[str] | None,
) -> list[dict[str, Any]]:
    return [
        record
        for org, record in rows
        if org == organization_id
        and (vehicle_ids is None or str(record.get("car_id")) in vehicle_ids)
    ]


class InMemoryVehicleRegistry:
    """Dict-backed fleet registry, keyed by organization then vehicle id."""

    def __init__(self) -> None:
        self._store: dict[str, dict[str, Vehicle]] = defaultdict(dict)

    def add(self, organization_id: str, vehicle: Vehicle) -> None:
        self._store[organization_id][vehicle.id] = vehicle

    def get(self, organization_id: str, vehicle_id: str) -> Vehicle:
        try:
            return self._store[organization_id][vehicle_id]
        except KeyError:
            raise VehicleNotFound(vehicle_id) from None

    def list_vehicles(self, organization_id: str) -> list[Vehicle]:
        return sorted(self._store[organization_id].values(), key=lambda v: v.id)

    def clear(self) -> None:
        self._store.clear()


class AuditLogRepository:
    """List-backed store for AuditEntry instances."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    def add(self, entry: AuditEntry) -> None:
        self._entries.append(entry)

    def list_for_vehicle(self, vehicle_id: str) -> list[AuditEntry]:
        return sorted(
            [e for e in self._entries if e.vehicle_id == vehicle_id],
            key=lambda e: e.recorded_at,
        )

    def list_all(self) -> list[AuditEntry]:
        return sorted(self._entries, key=lambda e: e.recorded_at)

    def clear(self) -> None:
        self._entries.clear()


# ---------------------------------------------------------------------------
# Seed data – a small fleet with one double-booking for the demo app
# ---------------------------------------------------------------------------


def seed_demo_fleet(
    organization_id: str,
    registry: InMemoryVehicleRegistry,
    source: InMemoryEventSource,
    today: date | None = None,
) -> None:
    today = today or date.today()

    for vehicle_id, name in (
        ("V1", "Toyota Yaris"),
        ("V2", "Fiat Panda"),
        ("V3", "Peugeot 208"),
    ):
        registry.add(organization_id, Vehicle(id=vehicle_id, display_name=name))

    source.add(
        organization_id,
        Event(
            id="rental-1001",
            vehicle_id="V1",
            kind=EventKind.RENTAL,
            start=today + timedelta(days=2),
            end=today + timedelta(days=7),
            source_id="1001",
            label="Toyota Yaris - Maria Papadopoulou",
            customer_name="Maria Papadopoulou",
        ),
    )
    source.add(
        organization_id,
        Event(
            id="rental-1002",
            vehicle_id="V2",
            kind=EventKind.RENTAL,
            start=today,
            end=today + timedelta(days=4),
            source_id="1002",
            label="Fiat Panda - Nikos Georgiou",
            customer_name="Nikos Georgiou",
        ),
    )
    source.add(
        organization_id,
        Event(
            id="rental-1003",
            vehicle_id="V2",
            kind=EventKind.RENTAL,
            start=today + timedelta(days=3),
            end=today + timedelta(days=7),
            status=EventStatus.PENDING,
            source_id="1003",
            label="Fiat Panda - Eleni Dimitriou",
            customer_name="Eleni Dimitriou",
        ),
    )
    source.add(
        organization_id,
        Event(
            id="maintenance-501",
            vehicle_id="V3",
            kind=EventKind.MAINTENANCE,
            start=today + timedelta(days=1),
            end=today + timedelta(days=1),
            source_id="501",
            label="Peugeot 208 - Inspection",
        ),
    )
