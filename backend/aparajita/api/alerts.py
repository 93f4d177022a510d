"""Distress alert API: panic, nearby, track, resolve."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from aparajita.core.deps import get_engine
from aparajita.core.errors import AlertNotFound, AlertTerminal
from aparajita.schemas.alert import (
    DirectionsResponse,
    DistressAlertResponse,
    PanicRequest,
    ProximityResultResponse,
    TrackRequest,
)
from aparajita.services.engine import SafetyEngine
from aparajita.services.geo_service import directions_url

router = APIRouter(tags=["alerts"])


@router.post("/panic", response_model=DistressAlertResponse)
def trigger_panic(
    data: PanicRequest,
    engine: SafetyEngine = Depends(get_engine),
):
    """Manual SOS. Returns the already-open alert if the user has one."""
    alert = engine.trigger_panic(data.user_id, display_name=data.display_name)
    return DistressAlertResponse.from_alert(alert)


# ---- nearby before {alert_id} path params ----


@router.get("/alerts/nearby/{user_id}", response_model=list[ProximityResultResponse])
def nearby_alerts(
    user_id: str,
    radius_m: float | None = Query(default=None, gt=0, le=50_000),
    engine: SafetyEngine = Depends(get_engine),
):
    """Active alerts around the user, nearest first (ties: oldest alert first)."""
    return [ProximityResultResponse.from_result(r) for r in engine.nearby(user_id, radius_m)]


@router.get("/alerts/{alert_id}", response_model=DistressAlertResponse)
def get_alert(
    alert_id: str,
    engine: SafetyEngine = Depends(get_engine),
):
    try:
        return DistressAlertResponse.from_alert(engine.get_alert(alert_id))
    except AlertNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/alerts/{alert_id}/track", response_model=DistressAlertResponse)
def track_alert(
    alert_id: str,
    data: TrackRequest,
    engine: SafetyEngine = Depends(get_engine),
):
    """Observer starts following an alert."""
    try:
        return DistressAlertResponse.from_alert(engine.track_alert(alert_id, data.observer_id))
    except AlertNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AlertTerminal as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/alerts/{alert_id}/resolve", response_model=DistressAlertResponse)
def resolve_alert(
    alert_id: str,
    engine: SafetyEngine = Depends(get_engine),
):
    """Clear an alert. Resolving an already resolved alert returns it unchanged."""
    try:
        return DistressAlertResponse.from_alert(engine.resolve_alert(alert_id))
    except AlertNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AlertTerminal as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/alerts/{alert_id}/directions", response_model=DirectionsResponse)
def alert_directions(
    alert_id: str,
    user_id: str = Query(..., min_length=1),
    engine: SafetyEngine = Depends(get_engine),
):
    """Walking directions from the user's current location to the alert."""
    try:
        alert = engine.get_alert(alert_id)
    except AlertNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    me = engine.current_location(user_id)
    if me is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Your location is not known yet")
    if not alert.has_location:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Alert has no location")
    return DirectionsResponse(alert_id=alert.id, url=directions_url(me, alert))
