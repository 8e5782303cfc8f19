"""Exceptions raised by the availability engine."""

from __future__ import annotations


class AvailabilityError(Exception):
    """Base class for engine errors."""


class SourceUnavailable(AvailabilityError):
    """The backing event store could not be reached.

    Never retried by the engine; the caller owns the retry policy.
    """


class InvalidRange(AvailabilityError, ValueError):
    """A date range or duration was malformed (e.g. ``start > end``)."""

    def __init__(self, message: str, start=None, end=None) -> None:
        super().__init__(message)
        self.start = start
        self.end = end


class VehicleNotFound(AvailabilityError):
    """A registry lookup found no vehicle with the given id."""

    def __init__(self, vehicle_id: str) -> None:
        super().__init__(f"Vehicle {vehicle_id} not found")
        self.vehicle_id = vehicle_id
