"""Safe-exit schemas."""

from datetime import datetime, time

from pydantic import BaseModel, Field, field_validator

from aparajita.models.safe_exit import SafeExitConfig
from aparajita.services.safe_exit_service import format_12h, parse_target_time


class SafeExitConfigUpdate(BaseModel):
    target_time: str | None = Field(default=None, description="HH:MM (24h) or h:MM AM/PM, e.g. 17:30 or 5:30 PM")
    notify_contact_ids: list[str] = Field(default_factory=list)

    @field_validator("target_time")
    @classmethod
    def validate_time_format(cls, v: str | None) -> str | None:
        if v is None:
            return v
        parse_target_time(v)
        return v

    def parsed_time(self) -> time | None:
        return parse_target_time(self.target_time) if self.target_time else None


class SafeExitToggle(BaseModel):
    enable: bool


class SafeExitResponse(BaseModel):
    user_id: str
    target_time: str | None  # HH:MM
    target_time_display: str | None  # h:MM AM/PM
    notify_contact_ids: list[str]
    state: str  # IDLE | ARMED | TRIGGERED | CLEARED
    armed_at: datetime | None
    deadline: datetime | None
    triggered_at: datetime | None
    alert_id: str | None

    @classmethod
    def from_config(cls, cfg: SafeExitConfig) -> "SafeExitResponse":
        return cls(
            user_id=cfg.user_id,
            target_time=cfg.target_time.strftime("%H:%M") if cfg.target_time else None,
            target_time_display=format_12h(cfg.target_time) if cfg.target_time else None,
            notify_contact_ids=sorted(cfg.notify_contact_ids),
            state=cfg.state.value,
            armed_at=cfg.armed_at,
            deadline=cfg.deadline,
            triggered_at=cfg.triggered_at,
            alert_id=cfg.alert_id,
        )
