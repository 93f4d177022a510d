"""Health check endpoint."""

from fastapi import APIRouter, Depends

from aparajita.core.deps import get_engine
from aparajita.core.ws_manager import ws_manager
from aparajita.services.engine import SafetyEngine

router = APIRouter(tags=["health"])


@router.get("/health")
def health(engine: SafetyEngine = Depends(get_engine)) -> dict:
    """Liveness plus a count of what the core is currently holding."""
    return {
        "status": "ok",
        "active_alerts": len(engine.alerts.active()),
        "armed_safe_exits": len(engine.safe_exit.armed_users()),
        "pending_dispatch": engine.dispatcher.pending_count,
        "ws_connections": ws_manager.total_connections,
    }
