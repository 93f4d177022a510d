"""Location ingest API."""

from fastapi import APIRouter, Depends, HTTPException, status

from aparajita.core.deps import get_engine
from aparajita.core.errors import InvalidCoordinate
from aparajita.schemas.location import IngestResponse, LocationResponse, LocationUpdate
from aparajita.services.engine import SafetyEngine
from aparajita.services.geo_service import share_location_url

router = APIRouter(tags=["location"])


@router.post("/location", response_model=IngestResponse)
def update_location(
    data: LocationUpdate,
    engine: SafetyEngine = Depends(get_engine),
):
    """User reports a location sample. Out-of-order samples come back with accepted=false."""
    try:
        result = engine.ingest_location(data.to_sample(), display_name=data.display_name)
    except InvalidCoordinate as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    current = engine.current_location(data.user_id) or result.sample
    return IngestResponse(
        accepted=result.accepted,
        refresh=result.refresh,
        moved_m=round(result.moved_m, 1) if result.moved_m is not None else None,
        location=LocationResponse.model_validate(current),
        share_url=share_location_url(current),
    )


@router.get("/location/{user_id}", response_model=LocationResponse)
def get_location(
    user_id: str,
    engine: SafetyEngine = Depends(get_engine),
):
    """Latest accepted sample for a user."""
    sample = engine.current_location(user_id)
    if not sample:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No location for user")
    return sample
