"""Haversine distance + nearby alert ranking tests."""

from datetime import datetime, timedelta, timezone

import pytest

from aparajita.models.alert import AlertState, DistressAlert
from aparajita.models.location import LocationSample
from aparajita.services.geo_service import (
    directions_url,
    format_distance,
    haversine_m,
    match_nearby,
    share_location_url,
)

T0 = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
BLR = (12.9716, 77.5946)

# ~111.195 m per 0.001 degree of latitude
DEG_PER_M = 1 / 111_195.0


def _alert(alert_id, lat, lon, created_at=T0, state=AlertState.BROADCASTING, user=None):
    return DistressAlert(
        id=alert_id,
        source_user_id=user or f"user-{alert_id}",
        display_name=f"User {alert_id}",
        latitude=lat,
        longitude=lon,
        created_at=created_at,
        state=state,
    )


def _observer(lat=BLR[0], lon=BLR[1], user_id="me"):
    return LocationSample(user_id=user_id, latitude=lat, longitude=lon, timestamp=T0)


@pytest.mark.parametrize(
    "point",
    [(0.0, 0.0), BLR, (40.7128, -74.006), (-33.8688, 151.2093), (89.9, 179.9)],
)
def test_distance_to_self_is_zero(point):
    assert haversine_m(*point, *point) == 0


@pytest.mark.parametrize(
    "a,b",
    [
        (BLR, (13.0827, 80.2707)),
        ((40.7128, -74.006), (34.0522, -118.2437)),
        ((0.0, 179.5), (0.0, -179.5)),
    ],
)
def test_distance_is_symmetric(a, b):
    assert haversine_m(*a, *b) == pytest.approx(haversine_m(*b, *a))


def test_one_degree_of_longitude_at_equator():
    assert haversine_m(0, 0, 0, 1) == pytest.approx(111_195, abs=1)


def test_antimeridian_is_short_hop():
    # 1 degree across the date line, not 359
    assert haversine_m(0, 179.5, 0, -179.5) == pytest.approx(111_195, abs=1)


def test_match_nearby_sorted_and_within_radius():
    alerts = [
        _alert("far", BLR[0] + 3000 * DEG_PER_M, BLR[1]),
        _alert("mid", BLR[0] + 700 * DEG_PER_M, BLR[1]),
        _alert("near", BLR[0] + 200 * DEG_PER_M, BLR[1]),
    ]

    results = match_nearby(_observer(), alerts, radius_meters=2000)

    assert [r.alert.id for r in results] == ["near", "mid"]
    assert [r.rank for r in results] == [1, 2]
    assert results[0].distance_meters == pytest.approx(200, abs=1)
    assert all(r.distance_meters <= 2000 for r in results)


def test_match_nearby_radius_is_overridable():
    alerts = [_alert("far", BLR[0] + 3000 * DEG_PER_M, BLR[1])]
    assert match_nearby(_observer(), alerts, radius_meters=2000) == []
    assert len(match_nearby(_observer(), alerts, radius_meters=5000)) == 1


def test_ties_broken_by_creation_time():
    """Equidistant alerts: earlier alert first."""
    lat = BLR[0] + 500 * DEG_PER_M
    alerts = [
        _alert("late", lat, BLR[1], created_at=T0 + timedelta(minutes=5)),
        _alert("early", lat, BLR[1], created_at=T0),
    ]

    results = match_nearby(_observer(), alerts)

    assert [r.alert.id for r in results] == ["early", "late"]
    assert results[0].distance_meters == results[1].distance_meters


def test_terminal_alerts_excluded():
    lat = BLR[0] + 100 * DEG_PER_M
    alerts = [
        _alert("b", lat, BLR[1], state=AlertState.BROADCASTING),
        _alert("t", lat, BLR[1], state=AlertState.TRACKED),
        _alert("r", lat, BLR[1], state=AlertState.RESOLVED),
        _alert("e", lat, BLR[1], state=AlertState.EXPIRED),
    ]

    ids = {r.alert.id for r in match_nearby(_observer(), alerts)}

    assert ids == {"b", "t"}


def test_own_alert_and_unlocated_alerts_excluded():
    alerts = [
        _alert("mine", BLR[0], BLR[1], user="me"),
        _alert("nowhere", None, None),
        _alert("other", BLR[0], BLR[1]),
    ]

    results = match_nearby(_observer(user_id="me"), alerts)

    assert [r.alert.id for r in results] == ["other"]
    assert results[0].distance_meters == 0


def test_format_distance():
    assert format_distance(0) == "0m"
    assert format_distance(449.6) == "450m"
    assert format_distance(999.4) == "999m"
    assert format_distance(1234) == "1.2km"
    assert format_distance(15_000) == "15.0km"


def test_map_links():
    me = _observer()
    alert = _alert("a", 12.975, 77.6)

    url = directions_url(me, alert)
    assert url.startswith("https://www.google.com/maps/dir/?")
    assert "travelmode=walking" in url
    assert "12.975" in url

    assert share_location_url(me) == "https://www.google.com/maps?q=12.9716,77.5946"
