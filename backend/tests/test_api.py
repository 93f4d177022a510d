"""HTTP API tests."""

from datetime import datetime, timedelta, timezone

DEG_PER_M = 1 / 111_195.0
LAT, LON = 12.9716, 77.5946


def _post_location(client, user_id, lat=LAT, lon=LON, **extra):
    return client.post("/location", json={"user_id": user_id, "latitude": lat, "longitude": lon, **extra})


def test_health_returns_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["active_alerts"] == 0


def test_post_location(client):
    r = _post_location(client, "priya", accuracy=12.5)
    assert r.status_code == 200
    body = r.json()
    assert body["accepted"] is True
    assert body["refresh"] is True
    assert body["location"]["latitude"] == LAT
    assert body["share_url"] == f"https://www.google.com/maps?q={LAT},{LON}"

    r = client.get("/location/priya")
    assert r.status_code == 200
    assert r.json()["accuracy"] == 12.5


def test_post_location_invalid_coordinates(client):
    r = _post_location(client, "priya", lat=95.0)
    assert r.status_code == 422
    assert "Latitude" in r.json()["detail"]
    assert client.get("/location/priya").status_code == 404


def test_out_of_order_location_not_accepted(client):
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    _post_location(client, "priya", timestamp=now.isoformat())
    r = _post_location(client, "priya", lat=LAT + 0.01, timestamp=(now - timedelta(minutes=1)).isoformat())

    assert r.status_code == 200
    assert r.json()["accepted"] is False
    assert r.json()["location"]["latitude"] == LAT


def test_panic_and_nearby(client):
    _post_location(client, "priya", lat=LAT + 450 * DEG_PER_M, display_name="Priya")
    _post_location(client, "helper")

    r = client.post("/panic", json={"user_id": "priya"})
    assert r.status_code == 200
    alert = r.json()
    assert alert["state"] == "BROADCASTING"
    assert alert["trigger"] == "MANUAL"
    assert alert["display_name"] == "Priya"

    again = client.post("/panic", json={"user_id": "priya"}).json()
    assert again["id"] == alert["id"]

    nearby = client.get("/alerts/nearby/helper").json()
    assert len(nearby) == 1
    assert nearby[0]["rank"] == 1
    assert nearby[0]["alert"]["id"] == alert["id"]
    assert nearby[0]["distance_label"] == "450m"

    assert client.get("/alerts/nearby/helper?radius_m=100").json() == []


def test_track_and_resolve(client):
    _post_location(client, "priya")
    alert_id = client.post("/panic", json={"user_id": "priya"}).json()["id"]

    r = client.post(f"/alerts/{alert_id}/track", json={"observer_id": "helper"})
    assert r.status_code == 200
    assert r.json()["state"] == "TRACKED"
    assert r.json()["observer_ids"] == ["helper"]

    r = client.post(f"/alerts/{alert_id}/resolve")
    assert r.status_code == 200
    assert r.json()["state"] == "RESOLVED"

    # idempotent
    assert client.post(f"/alerts/{alert_id}/resolve").status_code == 200

    r = client.post(f"/alerts/{alert_id}/track", json={"observer_id": "helper"})
    assert r.status_code == 409


def test_unknown_alert_returns_404(client):
    assert client.get("/alerts/missing").status_code == 404
    assert client.post("/alerts/missing/track", json={"observer_id": "h"}).status_code == 404
    assert client.post("/alerts/missing/resolve").status_code == 404


def test_directions(client):
    _post_location(client, "priya", lat=LAT + 0.003)
    alert_id = client.post("/panic", json={"user_id": "priya"}).json()["id"]

    assert client.get(f"/alerts/{alert_id}/directions?user_id=nobody").status_code == 400

    _post_location(client, "helper")
    r = client.get(f"/alerts/{alert_id}/directions?user_id=helper")
    assert r.status_code == 200
    assert "travelmode=walking" in r.json()["url"]


def test_safe_exit_configure_and_toggle(client):
    r = client.get("/safe-exit/priya")
    assert r.status_code == 200
    assert r.json()["state"] == "IDLE"

    r = client.post("/safe-exit/priya/toggle", json={"enable": True})
    assert r.status_code == 400

    r = client.put("/safe-exit/priya", json={"target_time": "5:30 PM", "notify_contact_ids": ["c1"]})
    assert r.status_code == 200
    assert r.json()["target_time"] == "17:30"
    assert r.json()["target_time_display"] == "5:30 PM"

    r = client.post("/safe-exit/priya/toggle", json={"enable": True})
    assert r.status_code == 200
    body = r.json()
    assert body["state"] == "ARMED"
    assert body["deadline"] is not None

    assert client.post("/safe-exit/priya/reset").status_code == 409

    r = client.post("/safe-exit/priya/toggle", json={"enable": False})
    assert r.json()["state"] == "CLEARED"


def test_safe_exit_empty_contacts_cannot_arm(client):
    client.put("/safe-exit/priya", json={"target_time": "17:30", "notify_contact_ids": []})
    r = client.post("/safe-exit/priya/toggle", json={"enable": True})
    assert r.status_code == 400
    assert client.get("/safe-exit/priya").json()["state"] == "IDLE"


def test_safe_exit_bad_time_format(client):
    r = client.put("/safe-exit/priya", json={"target_time": "25:00", "notify_contact_ids": ["c1"]})
    assert r.status_code == 422


def test_safe_exit_reset_after_trigger(client, engine):
    client.put("/safe-exit/priya", json={"target_time": "17:30", "notify_contact_ids": ["c1"]})
    client.post("/safe-exit/priya/toggle", json={"enable": True})
    deadline = engine.get_safe_exit("priya").deadline
    engine.tick_safe_exit(deadline + timedelta(minutes=1))

    body = client.get("/safe-exit/priya").json()
    assert body["state"] == "TRIGGERED"
    assert body["alert_id"] is not None
    assert client.post("/safe-exit/priya/toggle", json={"enable": True}).status_code == 409

    r = client.post("/safe-exit/priya/reset")
    assert r.status_code == 200
    assert r.json()["state"] == "IDLE"
    assert client.get(f"/alerts/{body['alert_id']}").json()["state"] == "BROADCASTING"


def test_lookup_endpoints(client, engine):
    r = client.get("/lookup/priya")
    assert r.status_code == 200
    assert r.json()["address"] == "Locating..."
    assert r.json()["police"] is None

    _post_location(client, "priya")
    engine.dispatcher.wait()

    body = client.get("/lookup/priya").json()
    assert body["address"].startswith("Street near")
    assert body["police"]["links"] == ["https://maps.example/police"]

    r = client.get("/lookup/priya/hotlines")
    assert r.status_code == 200
    assert {"name": "Women Helpline", "number": "1091"} in r.json()["hotlines"]

    r = client.get("/lookup/priya/legal")
    assert r.status_code == 200
    assert r.json()["area"] == body["address"]


def test_lookup_unavailable_maps_to_503(client, lookup):
    lookup.fail = True
    assert client.get("/lookup/priya/hotlines").status_code == 503
    assert client.get("/lookup/priya/legal").status_code == 503


def test_websocket_sends_snapshot_and_pong(client):
    _post_location(client, "helper")
    with client.websocket_connect("/ws?user_id=helper") as ws:
        first = ws.receive_json()
        assert first["event"] == "location.updated"
        assert first["data"]["location"]["user_id"] == "helper"
        assert first["data"]["nearby"] == []

        ws.send_text("ping")
        assert ws.receive_json() == {"event": "pong"}


def test_websocket_pushes_alert_changes(client):
    _post_location(client, "helper")
    _post_location(client, "priya", lat=LAT + 200 * DEG_PER_M)
    with client.websocket_connect("/ws?user_id=helper") as ws:
        ws.receive_json()
        alert_id = client.post("/panic", json={"user_id": "priya"}).json()["id"]

        pushed = ws.receive_json()
        assert pushed["event"] == "location.updated"
        assert [n["alert"]["id"] for n in pushed["data"]["nearby"]] == [alert_id]
