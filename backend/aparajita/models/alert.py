"""Distress alert model."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime


class AlertState(str, enum.Enum):
    BROADCASTING = "BROADCASTING"
    TRACKED = "TRACKED"
    RESOLVED = "RESOLVED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self in (AlertState.RESOLVED, AlertState.EXPIRED)


class AlertTrigger(str, enum.Enum):
    MANUAL = "MANUAL"
    SAFE_EXIT = "SAFE_EXIT"
    FEED = "FEED"  # peer alert imported from an AlertSource


@dataclass
class DistressAlert:
    """Emergency broadcast raised by a user, visible to nearby users."""

    id: str
    source_user_id: str
    display_name: str
    latitude: float | None  # None if the source never reported a location
    longitude: float | None
    created_at: datetime
    state: AlertState = AlertState.BROADCASTING
    trigger: AlertTrigger = AlertTrigger.MANUAL
    observer_ids: set[str] = field(default_factory=set)
    resolved_at: datetime | None = None
    expired_at: datetime | None = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def copy(self) -> "DistressAlert":
        return replace(self, observer_ids=set(self.observer_ids))


@dataclass(frozen=True)
class ProximityResult:
    """Alert ranked by distance from an observer. Derived, never stored."""

    alert: DistressAlert
    distance_meters: float
    rank: int  # 1-based
