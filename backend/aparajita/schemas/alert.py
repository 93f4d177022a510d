"""Distress alert schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from aparajita.models.alert import DistressAlert, ProximityResult
from aparajita.services.geo_service import format_distance


class PanicRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    display_name: str | None = Field(default=None, max_length=80)


class TrackRequest(BaseModel):
    observer_id: str = Field(min_length=1, max_length=64)


class DistressAlertResponse(BaseModel):
    id: str
    source_user_id: str
    display_name: str
    latitude: float | None
    longitude: float | None
    created_at: datetime
    state: str  # BROADCASTING | TRACKED | RESOLVED | EXPIRED
    trigger: str  # MANUAL | SAFE_EXIT | FEED
    observer_ids: list[str] = []
    resolved_at: datetime | None = None
    expired_at: datetime | None = None

    @classmethod
    def from_alert(cls, alert: DistressAlert) -> "DistressAlertResponse":
        return cls(
            id=alert.id,
            source_user_id=alert.source_user_id,
            display_name=alert.display_name,
            latitude=alert.latitude,
            longitude=alert.longitude,
            created_at=alert.created_at,
            state=alert.state.value,
            trigger=alert.trigger.value,
            observer_ids=sorted(alert.observer_ids),
            resolved_at=alert.resolved_at,
            expired_at=alert.expired_at,
        )


class ProximityResultResponse(BaseModel):
    alert: DistressAlertResponse
    distance_meters: float
    distance_label: str
    rank: int

    @classmethod
    def from_result(cls, result: ProximityResult) -> "ProximityResultResponse":
        return cls(
            alert=DistressAlertResponse.from_alert(result.alert),
            distance_meters=round(result.distance_meters, 1),
            distance_label=format_distance(result.distance_meters),
            rank=result.rank,
        )


class DirectionsResponse(BaseModel):
    alert_id: str
    url: str
