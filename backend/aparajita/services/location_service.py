"""Location ingest: validation, out-of-order dropping and lookup debounce."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, replace
from datetime import timezone

from aparajita.core.errors import InvalidCoordinate
from aparajita.core.safety_policies import REFRESH_DISTANCE_M
from aparajita.models.location import LocationSample
from aparajita.services.geo_service import sample_distance_m

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    accepted: bool
    sample: LocationSample
    moved_m: float | None = None  # distance from the previously stored sample
    refresh: bool = False  # location changed materially; lookups should refresh


def validate_sample(sample: LocationSample) -> LocationSample:
    """Raise InvalidCoordinate for malformed input; return the sample with an aware timestamp."""
    lat, lon = sample.latitude, sample.longitude
    if lat is None or lon is None or not math.isfinite(lat) or not math.isfinite(lon):
        raise InvalidCoordinate(f"Coordinates must be finite numbers, got ({lat}, {lon})")
    if not -90 <= lat <= 90:
        raise InvalidCoordinate(f"Latitude {lat} outside [-90, 90]")
    if not -180 <= lon <= 180:
        raise InvalidCoordinate(f"Longitude {lon} outside [-180, 180]")
    if sample.accuracy is not None and sample.accuracy < 0:
        raise InvalidCoordinate(f"Accuracy must be non-negative, got {sample.accuracy}")
    if sample.timestamp.tzinfo is None:
        sample = replace(sample, timestamp=sample.timestamp.replace(tzinfo=timezone.utc))
    return sample


class LocationIngestor:
    """Keeps the latest sample per user and decides when lookups should refresh."""

    def __init__(self, refresh_distance_m: float = REFRESH_DISTANCE_M) -> None:
        self.refresh_distance_m = refresh_distance_m
        self._current: dict[str, LocationSample] = {}
        # user_id -> sample at which lookups were last refreshed
        self._refreshed_at: dict[str, LocationSample] = {}
        self._lock = threading.Lock()

    def ingest(self, sample: LocationSample) -> IngestResult:
        sample = validate_sample(sample)
        with self._lock:
            previous = self._current.get(sample.user_id)
            if previous is not None and sample.timestamp < previous.timestamp:
                logger.debug(
                    "Dropping out-of-order sample for user=%s (%s < %s)",
                    sample.user_id,
                    sample.timestamp,
                    previous.timestamp,
                )
                return IngestResult(accepted=False, sample=sample)

            self._current[sample.user_id] = sample
            moved = sample_distance_m(previous, sample) if previous is not None else None

            anchor = self._refreshed_at.get(sample.user_id)
            refresh = anchor is None or sample_distance_m(anchor, sample) >= self.refresh_distance_m
            if refresh:
                self._refreshed_at[sample.user_id] = sample

        return IngestResult(accepted=True, sample=sample, moved_m=moved, refresh=refresh)

    def current(self, user_id: str) -> LocationSample | None:
        with self._lock:
            return self._current.get(user_id)

    def last_refresh_point(self, user_id: str) -> LocationSample | None:
        with self._lock:
            return self._refreshed_at.get(user_id)

    def snapshot(self) -> dict[str, LocationSample]:
        with self._lock:
            return dict(self._current)
