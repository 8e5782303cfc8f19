"""Event Source Adapter: reads booking records and normalizes them into Events.

The engine only depends on :class:`EventSource`.  Storage collaborators either
implement it directly or expose a :class:`BookingStore` of raw contract and
maintenance records that :class:`RecordEventSource` translates.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Protocol

import dateparser

from fleetcal.domain.errors import SourceUnavailable
from fleetcal.domain.models import DateRange, Event, EventKind, EventScope, EventStatus
from fleetcal.services.intervals import event_overlaps

logger = logging.getLogger(__name__)

# Store failures that mean "could not reach the data", as opposed to bad data.
STORE_ERRORS = (ConnectionError, TimeoutError, OSError)

_CONTRACT_STATUS = {
    "active": EventStatus.CONFIRMED,
    "completed": EventStatus.COMPLETED,
    "cancelled": EventStatus.CANCELLED,
}

_MAINTENANCE_LABELS = {
    "routine": "Routine maintenance",
    "repair": "Repair",
    "inspection": "Inspection",
    "emergency": "Emergency repair",
}

BLOCKED_MAINTENANCE_TYPE = "blocked"


class EventSource(Protocol):
    def fetch_events(self, scope: EventScope, date_range: DateRange) -> list[Event]:
        """Return events in *scope* whose interval intersects *date_range*.

        Raises :class:`SourceUnavailable` when the backing store is unreachable.
        """
        ...


class BookingStore(Protocol):
    """Raw record access offered by contract storage and maintenance logs."""

    def list_contracts(
        self,
        organization_id: str,
        start: date,
        end: date,
        vehicle_ids: set[str] | None = None,
    ) -> Iterable[dict[str, Any]]: ...

    def list_maintenance(
        self,
        organization_id: str,
        start: date,
        end: date,
        vehicle_ids: set[str] | None = None,
    ) -> Iterable[dict[str, Any]]: ...


def in_scope(event: Event, scope: EventScope, date_range: DateRange) -> bool:
    if scope.vehicle_ids is not None and event.vehicle_id not in scope.vehicle_ids:
        return False
    return event_overlaps(event, date_range.start, date_range.end)


def parse_record_date(value: Any) -> date | None:
    """Coerce a stored date field into a ``date``.

    Accepts ``date``/``datetime`` objects and free-form strings; returns None
    for empty or unparseable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = dateparser.parse(str(value), settings={"RETURN_AS_TIMEZONE_AWARE": False})
    if parsed is None:
        return None
    return parsed.date()


def _require_date(record: dict[str, Any], field: str) -> date:
    value = parse_record_date(record.get(field))
    if value is None:
        raise ValueError(f"unparseable {field}: {record.get(field)!r}")
    return value


def _vehicle_name(record: dict[str, Any]) -> str:
    return " ".join(p for p in (record.get("make"), record.get("model")) if p)


def contract_to_event(record: dict[str, Any]) -> Event:
    """Translate a rental contract record into a ``rental`` Event."""
    contract_id = str(record["id"])
    renter = record.get("renter_full_name")
    vehicle_name = _vehicle_name(record)
    label = " - ".join(p for p in (vehicle_name, renter) if p)
    return Event(
        id=f"rental-{contract_id}",
        vehicle_id=str(record["car_id"]),
        kind=EventKind.RENTAL,
        start=_require_date(record, "pickup_date"),
        end=_require_date(record, "dropoff_date"),
        status=_CONTRACT_STATUS.get(record.get("status"), EventStatus.PENDING),
        source_id=contract_id,
        label=label,
        customer_name=renter,
        description=f"Rental: {renter}" if renter else None,
    )


def maintenance_to_event(record: dict[str, Any]) -> Event:
    """Translate a maintenance log record into a ``maintenance`` or ``block`` Event.

    Ordinary maintenance occupies the single day it was performed.  Records of
    type ``blocked`` hold the vehicle from ``performed_at`` to ``next_due_date``.
    """
    record_id = str(record["id"])
    maintenance_type = record.get("maintenance_type")
    performed = _require_date(record, "performed_at")
    vehicle_name = _vehicle_name(record)

    if maintenance_type == BLOCKED_MAINTENANCE_TYPE:
        until = parse_record_date(record.get("next_due_date")) or performed
        return Event(
            id=f"block-{record_id}",
            vehicle_id=str(record["car_id"]),
            kind=EventKind.BLOCK,
            start=performed,
            end=until,
            source_id=record_id,
            label=" - ".join(p for p in (vehicle_name, "Blocked") if p),
            description=record.get("description"),
        )

    type_label = _MAINTENANCE_LABELS.get(maintenance_type, "Maintenance")
    return Event(
        id=f"maintenance-{record_id}",
        vehicle_id=str(record["car_id"]),
        kind=EventKind.MAINTENANCE,
        start=performed,
        end=performed,
        source_id=record_id,
        label=" - ".join(p for p in (vehicle_name, type_label) if p),
        description=record.get("description"),
    )


class RecordEventSource:
    """EventSource over a :class:`BookingStore` of raw records."""

    def __init__(self, store: BookingStore) -> None:
        self.store = store

    def fetch_events(self, scope: EventScope, date_range: DateRange) -> list[Event]:
        try:
            contracts = list(
                self.store.list_contracts(
                    scope.organization_id,
                    date_range.start,
                    date_range.end,
                    scope.vehicle_ids,
                )
            )
            maintenance = list(
                self.store.list_maintenance(
                    scope.organization_id,
                    date_range.start,
                    date_range.end,
                    scope.vehicle_ids,
                )
            )
        except STORE_ERRORS as exc:
            raise SourceUnavailable(f"Booking store unreachable: {exc}") from exc

        events = self._normalize(contracts, contract_to_event)
        events.extend(self._normalize(maintenance, maintenance_to_event))

        selected = [e for e in events if in_scope(e, scope, date_range)]
        selected.sort(key=lambda e: (e.start, e.id))
        logger.debug(
            "Fetched %d event(s) for org %s between %s and %s",
            len(selected),
            scope.organization_id,
            date_range.start,
            date_range.end,
        )
        return selected

    @staticmethod
    def _normalize(records: list[dict[str, Any]], convert) -> list[Event]:
        events: list[Event] = []
        for record in records:
            try:
                events.append(convert(record))
            except (KeyError, ValueError) as exc:
                logger.warning(
                    "Skipping malformed record %r: %s", record.get("id"), exc
                )
        return events
