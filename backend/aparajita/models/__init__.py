"""Domain models held in memory by the safety core."""

from __future__ import annotations

from aparajita.models.alert import AlertState, AlertTrigger, DistressAlert, ProximityResult
from aparajita.models.location import LocationSample
from aparajita.models.lookup import Hotline, LookupContext, PoliceInfo
from aparajita.models.safe_exit import EmergencyContact, SafeExitConfig, SafeExitState

__all__ = [
    "AlertState",
    "AlertTrigger",
    "DistressAlert",
    "EmergencyContact",
    "Hotline",
    "LocationSample",
    "LookupContext",
    "PoliceInfo",
    "ProximityResult",
    "SafeExitConfig",
    "SafeExitState",
]
