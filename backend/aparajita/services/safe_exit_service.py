"""Safe-exit timer state machine."""

from __future__ import annotations

import logging
import re
import threading
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Iterable

from aparajita.core.errors import IncompleteConfig, InvalidTransition
from aparajita.models.safe_exit import SafeExitConfig, SafeExitState

logger = logging.getLogger(__name__)

_TIME_24H = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_TIME_12H = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")

# Receives a copy of the config that just triggered; returns the id of the alert it raised
TriggerHandler = Callable[[SafeExitConfig], "str | None"]


def parse_target_time(value: str) -> time:
    """Parse 'HH:MM' (24h) or 'h:MM AM/PM' (12h) into a wall-clock time."""
    m12 = _TIME_12H.match(value)
    if m12:
        hour, minute, period = int(m12.group(1)), int(m12.group(2)), m12.group(3).upper()
        if not 1 <= hour <= 12 or not 0 <= minute <= 59:
            raise ValueError(f"Invalid 12-hour time '{value}'")
        if period == "PM" and hour < 12:
            hour += 12
        if period == "AM" and hour == 12:
            hour = 0
        return time(hour, minute)

    m24 = _TIME_24H.match(value)
    if m24:
        hour, minute = int(m24.group(1)), int(m24.group(2))
        if not 0 <= hour <= 23 or not 0 <= minute <= 59:
            raise ValueError(f"Invalid time '{value}'")
        return time(hour, minute)

    raise ValueError(f"Must be HH:MM or h:MM AM/PM, got '{value}'")


def format_12h(value: time) -> str:
    period = "PM" if value.hour >= 12 else "AM"
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d} {period}"


def compute_deadline(target: time, armed_at: datetime, tz: tzinfo) -> datetime:
    """Next occurrence of target in tz strictly after armed_at.

    A target already passed today rolls over to tomorrow.
    """
    local = armed_at.astimezone(tz)
    deadline = datetime.combine(local.date(), target, tzinfo=tz)
    if deadline <= local:
        deadline = datetime.combine(local.date() + timedelta(days=1), target, tzinfo=tz)
    return deadline


class SafeExitMachine:
    """Per-user IDLE / ARMED / TRIGGERED / CLEARED machine driven by tick()."""

    def __init__(self, tz: tzinfo = timezone.utc, on_trigger: TriggerHandler | None = None) -> None:
        self.tz = tz
        self._on_trigger = on_trigger
        self._configs: dict[str, SafeExitConfig] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> SafeExitConfig:
        with self._lock:
            return self._get_or_create(user_id).copy()

    def configure(
        self,
        user_id: str,
        target_time: time | None,
        notify_contact_ids: Iterable[str],
        now: datetime | None = None,
    ) -> SafeExitConfig:
        """Store target time and contacts.

        An armed timer keeps its arming day and gets the deadline of the new
        target on that day. An overdue armed timer keeps its deadline so the
        next tick still fires.
        """
        contacts = {c for c in notify_contact_ids if c}
        with self._lock:
            cfg = self._get_or_create(user_id)
            if cfg.state == SafeExitState.ARMED:
                if target_time is None or not contacts:
                    raise IncompleteConfig("An armed safe exit needs a target time and at least one contact")
                now = now or datetime.now(timezone.utc)
                overdue = cfg.deadline is not None and now >= cfg.deadline
                if not overdue:
                    cfg.deadline = compute_deadline(target_time, cfg.armed_at or now, self.tz)
            cfg.target_time = target_time
            cfg.notify_contact_ids = contacts
            result = cfg.copy()

        logger.info("Safe exit configured: user=%s target=%s contacts=%s", user_id, target_time, len(contacts))
        return result

    def arm(self, user_id: str, now: datetime | None = None) -> SafeExitConfig:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            cfg = self._get_or_create(user_id)
            if cfg.state == SafeExitState.ARMED:
                return cfg.copy()
            if cfg.state == SafeExitState.TRIGGERED:
                raise InvalidTransition("Safe exit already triggered; reset it before arming again")
            if not cfg.is_complete:
                raise IncompleteConfig("Set a target time and at least one contact before enabling safe exit")

            cfg.state = SafeExitState.ARMED
            cfg.armed_at = now
            cfg.deadline = compute_deadline(cfg.target_time, now, self.tz)
            cfg.triggered_at = None
            cfg.alert_id = None
            result = cfg.copy()

        logger.info("Safe exit armed: user=%s deadline=%s", user_id, result.deadline)
        return result

    def disable(self, user_id: str) -> SafeExitConfig:
        """ARMED -> CLEARED. Any other state is left alone."""
        with self._lock:
            cfg = self._get_or_create(user_id)
            if cfg.state == SafeExitState.ARMED:
                cfg.state = SafeExitState.CLEARED
                cfg.deadline = None
                logger.info("Safe exit cleared: user=%s", user_id)
            return cfg.copy()

    def toggle(self, user_id: str, enable: bool, now: datetime | None = None) -> SafeExitConfig:
        if enable:
            return self.arm(user_id, now)
        return self.disable(user_id)

    def reset(self, user_id: str) -> SafeExitConfig:
        """TRIGGERED -> IDLE. The alert it raised is left for the user to resolve."""
        with self._lock:
            cfg = self._get_or_create(user_id)
            if cfg.state == SafeExitState.ARMED:
                raise InvalidTransition("Safe exit is armed; disable it instead")
            if cfg.state == SafeExitState.TRIGGERED:
                cfg.state = SafeExitState.IDLE
                cfg.armed_at = None
                cfg.deadline = None
                logger.info("Safe exit reset: user=%s", user_id)
            return cfg.copy()

    def tick(self, now: datetime | None = None) -> list[SafeExitConfig]:
        """Trigger every armed timer whose deadline has passed."""
        now = now or datetime.now(timezone.utc)
        fired: list[SafeExitConfig] = []
        with self._lock:
            for cfg in self._configs.values():
                if cfg.state == SafeExitState.ARMED and cfg.deadline is not None and now >= cfg.deadline:
                    cfg.state = SafeExitState.TRIGGERED
                    cfg.triggered_at = now
                    fired.append(cfg.copy())

        for cfg in fired:
            logger.warning("Safe exit triggered: user=%s deadline=%s", cfg.user_id, cfg.deadline)
            alert_id = self._run_trigger(cfg)
            if alert_id is None:
                continue
            with self._lock:
                current = self._configs[cfg.user_id]
                if current.state == SafeExitState.TRIGGERED:
                    current.alert_id = alert_id
            cfg.alert_id = alert_id
        return fired

    def armed_users(self) -> list[str]:
        with self._lock:
            return [uid for uid, cfg in self._configs.items() if cfg.state == SafeExitState.ARMED]

    def _run_trigger(self, cfg: SafeExitConfig) -> str | None:
        if self._on_trigger is None:
            return None
        try:
            return self._on_trigger(cfg)
        except Exception:  # noqa: BLE001
            logger.exception("Safe exit trigger handler failed for user=%s", cfg.user_id)
            return None

    def _get_or_create(self, user_id: str) -> SafeExitConfig:
        cfg = self._configs.get(user_id)
        if cfg is None:
            cfg = SafeExitConfig(user_id=user_id)
            self._configs[user_id] = cfg
        return cfg
