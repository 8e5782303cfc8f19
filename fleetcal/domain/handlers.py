"""Audit notification handlers — wired up at application startup."""

from __future__ import annotations

import logging

from fleetcal.domain.bus import NotificationBus
from fleetcal.domain.events import AuditCompleted, ConflictDetected
from fleetcal.domain.models import AuditEntry, Conflict, DateRange
from fleetcal.repos.memory import AuditLogRepository

logger = logging.getLogger(__name__)


def publish_conflicts(
    bus: NotificationBus,
    organization_id: str,
    date_range: DateRange,
    found: list[Conflict],
) -> None:
    """Announce the result of an audit run on the bus."""
    for conflict in found:
        bus.publish(
            ConflictDetected(
                organization_id=organization_id,
                vehicle_id=conflict.vehicle_id,
                kind=conflict.kind,
                event_ids=[e.id for e in conflict.events],
                window_start=conflict.window.start,
                window_end=conflict.window.end,
            )
        )
    bus.publish(
        AuditCompleted(
            organization_id=organization_id,
            range_start=date_range.start,
            range_end=date_range.end,
            conflict_count=len(found),
        )
    )


class HandlerRegistry:
    """Wires audit handlers to the bus with access to the audit log."""

    def __init__(self, bus: NotificationBus, audit_repo: AuditLogRepository) -> None:
        self.bus = bus
        self.audit_repo = audit_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(ConflictDetected, self.on_conflict_detected)
        self.bus.subscribe(AuditCompleted, self.on_audit_completed)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_conflict_detected(self, message: ConflictDetected) -> None:
        self.audit_repo.add(
            AuditEntry(
                vehicle_id=message.vehicle_id,
                kind=message.kind,
                event_ids=message.event_ids,
                window=DateRange(start=message.window_start, end=message.window_end),
            )
        )
        logger.warning(
            "%s on vehicle %s (%s..%s): %s",
            message.kind,
            message.vehicle_id,
            message.window_start,
            message.window_end,
            ", ".join(message.event_ids),
        )

    def on_audit_completed(self, message: AuditCompleted) -> None:
        logger.info(
            "Audit for org %s %s..%s finished with %d conflict(s)",
            message.organization_id,
            message.range_start,
            message.range_end,
            message.conflict_count,
        )
