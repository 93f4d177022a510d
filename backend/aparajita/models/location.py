"""Location sample model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LocationSample:
    """Latest known position of a user. Superseded by every accepted ingest."""

    user_id: str
    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: float | None = None  # meters
