"""Location ingest tests: validation, ordering, debounce."""

from datetime import datetime, timedelta, timezone

import pytest

from aparajita.core.errors import InvalidCoordinate
from aparajita.models.location import LocationSample
from aparajita.services.location_service import LocationIngestor

T0 = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
LAT, LON = 12.9716, 77.5946
DEG_PER_M = 1 / 111_195.0


def _sample(lat=LAT, lon=LON, seconds=0, user_id="u1", accuracy=None):
    return LocationSample(user_id, lat, lon, T0 + timedelta(seconds=seconds), accuracy)


@pytest.mark.parametrize(
    "lat,lon",
    [(90.0001, 0), (-91, 0), (0, 180.5), (0, -181), (float("nan"), 0), (0, float("inf"))],
)
def test_invalid_coordinates_rejected(lat, lon):
    ingestor = LocationIngestor()
    with pytest.raises(InvalidCoordinate):
        ingestor.ingest(_sample(lat, lon))
    assert ingestor.current("u1") is None


def test_boundary_coordinates_accepted():
    ingestor = LocationIngestor()
    assert ingestor.ingest(_sample(90, 180)).accepted
    assert ingestor.ingest(_sample(-90, -180, seconds=1)).accepted


def test_negative_accuracy_rejected():
    with pytest.raises(InvalidCoordinate):
        LocationIngestor().ingest(_sample(accuracy=-5))


def test_latest_sample_overwrites():
    ingestor = LocationIngestor()
    ingestor.ingest(_sample())
    ingestor.ingest(_sample(LAT + 0.01, seconds=10))
    assert ingestor.current("u1").latitude == pytest.approx(LAT + 0.01)


def test_out_of_order_sample_dropped_silently():
    ingestor = LocationIngestor()
    ingestor.ingest(_sample(seconds=10))

    result = ingestor.ingest(_sample(LAT + 0.05, seconds=5))

    assert result.accepted is False
    assert result.refresh is False
    assert ingestor.current("u1").timestamp == T0 + timedelta(seconds=10)


def test_naive_timestamp_treated_as_utc():
    ingestor = LocationIngestor()
    result = ingestor.ingest(LocationSample("u1", LAT, LON, datetime(2026, 10, 19, 12, 0)))
    assert result.sample.timestamp.tzinfo is timezone.utc


def test_moved_distance_from_previous_sample():
    ingestor = LocationIngestor()
    first = ingestor.ingest(_sample())
    second = ingestor.ingest(_sample(LAT + 250 * DEG_PER_M, seconds=5))

    assert first.moved_m is None
    assert second.moved_m == pytest.approx(250, abs=1)


def test_debounce_suppresses_small_moves():
    """40 m moves are suppressed; 150 m from the last refreshed point refreshes once."""
    ingestor = LocationIngestor(refresh_distance_m=100)

    first = ingestor.ingest(_sample())
    second = ingestor.ingest(_sample(LAT + 40 * DEG_PER_M, seconds=5))
    third = ingestor.ingest(_sample(LAT + 150 * DEG_PER_M, seconds=10))

    assert first.refresh is True
    assert second.refresh is False
    assert third.refresh is True
    assert ingestor.last_refresh_point("u1").latitude == pytest.approx(LAT + 150 * DEG_PER_M)


def test_debounce_measures_from_refresh_point_not_previous_sample():
    """Several small steps add up to a refresh once 100 m from the anchor."""
    ingestor = LocationIngestor(refresh_distance_m=100)
    ingestor.ingest(_sample())

    flags = [ingestor.ingest(_sample(LAT + m * DEG_PER_M, seconds=m)).refresh for m in (40, 80, 120)]

    assert flags == [False, False, True]


def test_users_are_debounced_independently():
    ingestor = LocationIngestor()
    assert ingestor.ingest(_sample(user_id="a")).refresh
    assert ingestor.ingest(_sample(user_id="b")).refresh
    assert set(ingestor.snapshot()) == {"a", "b"}
