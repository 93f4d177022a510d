"""Address, police, hotline and legal-rights lookups."""

from fastapi import APIRouter, Depends, HTTPException, status

from aparajita.core.deps import get_engine
from aparajita.core.errors import LookupUnavailable
from aparajita.schemas.lookup import (
    HotlineResponse,
    HotlinesResponse,
    LegalRightsResponse,
    LookupContextResponse,
    PoliceInfoResponse,
)
from aparajita.services.engine import SafetyEngine

router = APIRouter(prefix="/lookup", tags=["lookup"])


@router.get("/{user_id}", response_model=LookupContextResponse)
def get_lookup_context(
    user_id: str,
    engine: SafetyEngine = Depends(get_engine),
):
    """Last known address and nearest police station (refreshed on material moves)."""
    ctx = engine.lookup_context(user_id)
    return LookupContextResponse(
        user_id=user_id,
        address=ctx.address,
        police=PoliceInfoResponse(text=ctx.police.text, links=list(ctx.police.links)) if ctx.police else None,
        refreshed_at=ctx.refreshed_at,
        last_error=ctx.last_error,
    )


@router.get("/{user_id}/hotlines", response_model=HotlinesResponse)
def get_hotlines(
    user_id: str,
    engine: SafetyEngine = Depends(get_engine),
):
    area = engine.area_description(user_id)
    try:
        hotlines = engine.hotlines(user_id)
    except LookupUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return HotlinesResponse(area=area, hotlines=[HotlineResponse(name=h.name, number=h.number) for h in hotlines])


@router.get("/{user_id}/legal", response_model=LegalRightsResponse)
def get_legal_rights(
    user_id: str,
    engine: SafetyEngine = Depends(get_engine),
):
    area = engine.area_description(user_id)
    try:
        text = engine.legal_rights(user_id)
    except LookupUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return LegalRightsResponse(area=area, text=text)
