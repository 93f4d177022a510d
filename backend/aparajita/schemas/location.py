"""Location schemas."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from aparajita.models.location import LocationSample


class LocationUpdate(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    latitude: float
    longitude: float
    timestamp: datetime | None = Field(default=None, description="Defaults to server time")
    accuracy: float | None = Field(default=None, description="Meters")
    display_name: str | None = Field(default=None, max_length=80)

    def to_sample(self) -> LocationSample:
        return LocationSample(
            user_id=self.user_id,
            latitude=self.latitude,
            longitude=self.longitude,
            timestamp=self.timestamp or datetime.now(timezone.utc),
            accuracy=self.accuracy,
        )


class LocationResponse(BaseModel):
    user_id: str
    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: float | None = None

    model_config = {"from_attributes": True}


class IngestResponse(BaseModel):
    accepted: bool
    refresh: bool
    moved_m: float | None
    location: LocationResponse
    share_url: str
