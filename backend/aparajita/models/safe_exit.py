"""Safe-exit timer model."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime, time


class SafeExitState(str, enum.Enum):
    IDLE = "IDLE"
    ARMED = "ARMED"
    TRIGGERED = "TRIGGERED"
    CLEARED = "CLEARED"


@dataclass
class SafeExitConfig:
    """Per-user deadline protocol. Only the state fields cycle."""

    user_id: str
    target_time: time | None = None
    notify_contact_ids: set[str] = field(default_factory=set)
    state: SafeExitState = SafeExitState.IDLE
    armed_at: datetime | None = None
    deadline: datetime | None = None
    triggered_at: datetime | None = None
    alert_id: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.target_time is not None and bool(self.notify_contact_ids)

    def copy(self) -> "SafeExitConfig":
        return replace(self, notify_contact_ids=set(self.notify_contact_ids))


@dataclass(frozen=True)
class EmergencyContact:
    """Contact owned by the contact-list collaborator; the core keeps only ids."""

    id: str
    name: str
    relation: str
    phone: str
