"""Geo distance and nearby-alert ranking service."""

import math
from typing import Iterable
from urllib.parse import urlencode

from aparajita.core.safety_policies import DEFAULT_PROXIMITY_RADIUS_M, EARTH_RADIUS_M
from aparajita.models.alert import DistressAlert, ProximityResult
from aparajita.models.location import LocationSample

MAPS_BASE_URL = "https://www.google.com/maps"


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two lat/lng points in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def sample_distance_m(a: LocationSample, b: LocationSample) -> float:
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def match_nearby(
    observer: LocationSample,
    active_alerts: Iterable[DistressAlert],
    radius_meters: float = DEFAULT_PROXIMITY_RADIUS_M,
) -> list[ProximityResult]:
    """
    Rank distress alerts around the observer:
      1. distance ascending
      2. creation time ascending (earlier alerts first)
      3. alert id, so equal inputs always produce the same order

    Only BROADCASTING / TRACKED alerts within radius_meters are returned.
    The observer's own alert and alerts with no location are skipped.
    """
    candidates: list[tuple[float, DistressAlert]] = []
    for alert in active_alerts:
        if alert.state.is_terminal or not alert.has_location:
            continue
        if alert.source_user_id == observer.user_id:
            continue
        dist = haversine_m(observer.latitude, observer.longitude, alert.latitude, alert.longitude)
        if dist > radius_meters:
            continue
        candidates.append((dist, alert))

    candidates.sort(key=lambda c: (c[0], c[1].created_at, c[1].id))
    return [
        ProximityResult(alert=alert, distance_meters=dist, rank=i)
        for i, (dist, alert) in enumerate(candidates, start=1)
    ]


def format_distance(meters: float) -> str:
    """Short label for a distance, e.g. '450m' or '1.2km'."""
    if meters < 1000:
        return f"{int(round(meters))}m"
    return f"{meters / 1000:.1f}km"


def directions_url(origin: LocationSample, alert: DistressAlert) -> str:
    """Walking directions from the observer to an alert."""
    query = urlencode(
        {
            "api": 1,
            "origin": f"{origin.latitude},{origin.longitude}",
            "destination": f"{alert.latitude},{alert.longitude}",
            "travelmode": "walking",
        }
    )
    return f"{MAPS_BASE_URL}/dir/?{query}"


def share_location_url(sample: LocationSample) -> str:
    return f"{MAPS_BASE_URL}?q={sample.latitude},{sample.longitude}"
