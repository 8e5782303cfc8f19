"""Domain events emitted around availability queries."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from fleetcal.domain.models import ConflictKind


class ConflictDetected(BaseModel):
    """Fired by an administrative audit for every overlap it finds."""

    organization_id: str
    vehicle_id: str
    kind: ConflictKind
    event_ids: list[str]
    window_start: date
    window_end: date


class AuditCompleted(BaseModel):
    """Fired once an audit run has finished, whether or not it found anything."""

    organization_id: str
    range_start: date
    range_end: date
    conflict_count: int
