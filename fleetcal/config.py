"""Environment-driven settings for the availability service."""

from __future__ import annotations

import os

from fleetcal.services.search import DEFAULT_SEARCH_HORIZON_DAYS


class Settings:
    """Settings read from environment variables at construction time."""

    def __init__(self) -> None:
        self.organization_id: str = os.getenv("FLEETCAL_ORGANIZATION_ID", "default")
        self.log_level: str = os.getenv("FLEETCAL_LOG_LEVEL", "INFO").upper()
        self.seed_demo: bool = os.getenv("FLEETCAL_SEED_DEMO", "true").lower() == "true"

        horizon = os.getenv(
            "FLEETCAL_SEARCH_HORIZON_DAYS", str(DEFAULT_SEARCH_HORIZON_DAYS)
        )
        try:
            self.search_horizon_days: int = int(horizon)
        except ValueError:
            raise ValueError(
                f"FLEETCAL_SEARCH_HORIZON_DAYS must be an integer, got {horizon!r}"
            ) from None
        if self.search_horizon_days < 0:
            raise ValueError("FLEETCAL_SEARCH_HORIZON_DAYS must not be negative")
