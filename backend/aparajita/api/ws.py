"""WebSocket stream of self location + nearby alerts."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from aparajita.core.deps import get_engine
from aparajita.core.ws_manager import ws_manager
from aparajita.models.alert import ProximityResult
from aparajita.models.location import LocationSample
from aparajita.schemas.alert import ProximityResultResponse
from aparajita.schemas.location import LocationResponse
from aparajita.services.engine import SafetyEngine

logger = logging.getLogger(__name__)

router = APIRouter()

LOCATION_EVENT = "location.updated"


def location_payload(me: LocationSample | None, results: list[ProximityResult]) -> dict:
    return {
        "location": LocationResponse.model_validate(me).model_dump(mode="json") if me else None,
        "nearby": [ProximityResultResponse.from_result(r).model_dump(mode="json") for r in results],
    }


def push_location_update(user_id: str, me: LocationSample, results: list[ProximityResult]) -> None:
    """Engine subscriber: forward material changes to the user's sockets."""
    ws_manager.publish(user_id, LOCATION_EVENT, location_payload(me, results))


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, engine: SafetyEngine = Depends(get_engine)):
    """
    WebSocket endpoint. Client connects with ?user_id=<id>.
    Server pushes location.updated on every material location or alert-set change.
    """
    user_id = websocket.query_params.get("user_id")
    if not user_id:
        await websocket.close(code=4001, reason="Missing user_id")
        return

    await ws_manager.connect(websocket, user_id)
    try:
        # Initial snapshot so the client does not wait for the next change
        await websocket.send_json(
            {"event": LOCATION_EVENT, "data": location_payload(engine.current_location(user_id), engine.nearby(user_id))}
        )
        while True:
            data = await websocket.receive_text()
            # Echo pong for heartbeat
            if data == "ping":
                await websocket.send_text('{"event":"pong"}')
    except WebSocketDisconnect:
        pass
    finally:
        ws_manager.disconnect(websocket, user_id)
