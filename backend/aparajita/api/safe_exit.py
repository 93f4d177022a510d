"""Safe-exit timer API."""

from fastapi import APIRouter, Depends, HTTPException, status

from aparajita.core.deps import get_engine
from aparajita.core.errors import IncompleteConfig, InvalidTransition
from aparajita.schemas.safe_exit import SafeExitConfigUpdate, SafeExitResponse, SafeExitToggle
from aparajita.services.engine import SafetyEngine

router = APIRouter(prefix="/safe-exit", tags=["safe-exit"])


@router.get("/{user_id}", response_model=SafeExitResponse)
def get_safe_exit(
    user_id: str,
    engine: SafetyEngine = Depends(get_engine),
):
    return SafeExitResponse.from_config(engine.get_safe_exit(user_id))


@router.put("/{user_id}", response_model=SafeExitResponse)
def configure_safe_exit(
    user_id: str,
    data: SafeExitConfigUpdate,
    engine: SafetyEngine = Depends(get_engine),
):
    """Set departure time and contacts. An armed timer picks up the new deadline."""
    try:
        cfg = engine.configure_safe_exit(user_id, data.parsed_time(), data.notify_contact_ids)
    except IncompleteConfig as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return SafeExitResponse.from_config(cfg)


@router.post("/{user_id}/toggle", response_model=SafeExitResponse)
def toggle_safe_exit(
    user_id: str,
    data: SafeExitToggle,
    engine: SafetyEngine = Depends(get_engine),
):
    """Enable (arm) or disable the timer. Enabling needs a time and at least one contact."""
    try:
        cfg = engine.toggle_safe_exit(user_id, data.enable)
    except IncompleteConfig as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return SafeExitResponse.from_config(cfg)


@router.post("/{user_id}/reset", response_model=SafeExitResponse)
def reset_safe_exit(
    user_id: str,
    engine: SafetyEngine = Depends(get_engine),
):
    """Return a triggered timer to IDLE. The alert it raised stays until resolved."""
    try:
        cfg = engine.reset_safe_exit(user_id)
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return SafeExitResponse.from_config(cfg)
