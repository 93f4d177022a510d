"""Results of the external lookup adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from aparajita.core.safety_policies import UNKNOWN_ADDRESS


@dataclass(frozen=True)
class PoliceInfo:
    text: str
    links: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Hotline:
    name: str
    number: str


@dataclass
class LookupContext:
    """Last known lookup values for a user. Kept as-is when a refresh fails."""

    address: str = UNKNOWN_ADDRESS
    police: PoliceInfo | None = None
    refreshed_at: datetime | None = None
    last_error: str | None = None
