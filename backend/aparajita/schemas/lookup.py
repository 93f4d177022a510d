"""Lookup schemas."""

from datetime import datetime

from pydantic import BaseModel


class PoliceInfoResponse(BaseModel):
    text: str
    links: list[str]


class LookupContextResponse(BaseModel):
    user_id: str
    address: str
    police: PoliceInfoResponse | None
    refreshed_at: datetime | None
    last_error: str | None


class HotlineResponse(BaseModel):
    name: str
    number: str


class HotlinesResponse(BaseModel):
    area: str
    hotlines: list[HotlineResponse]


class LegalRightsResponse(BaseModel):
    area: str
    text: str
