"""Distress alert lifecycle service."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

from aparajita.core.errors import AlertNotFound, AlertTerminal
from aparajita.core.safety_policies import ALERT_TTL_MINUTES, TERMINAL_ALERT_RETENTION_MINUTES
from aparajita.models.alert import AlertState, AlertTrigger, DistressAlert
from aparajita.models.location import LocationSample

logger = logging.getLogger(__name__)

# Called with a copy of the alert and the event name: created | tracked | moved | resolved | expired
AlertListener = Callable[[DistressAlert, str], None]


def _new_alert_id() -> str:
    return uuid.uuid4().hex


class AlertLifecycleManager:
    """Owns the active-alert set.

    BROADCASTING -> TRACKED -> RESOLVED, and BROADCASTING/TRACKED -> EXPIRED
    once the TTL elapses. At most one non-terminal alert per source user.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=ALERT_TTL_MINUTES),
        retention: timedelta = timedelta(minutes=TERMINAL_ALERT_RETENTION_MINUTES),
        id_factory: Callable[[], str] = _new_alert_id,
    ) -> None:
        self.ttl = ttl
        self.retention = retention
        self._id_factory = id_factory
        self._alerts: dict[str, DistressAlert] = {}
        # source_user_id -> id of its non-terminal alert
        self._open_by_user: dict[str, str] = {}
        self._listeners: list[AlertListener] = []
        self._lock = threading.Lock()

    def add_listener(self, listener: AlertListener) -> None:
        self._listeners.append(listener)

    def create_alert(
        self,
        source_user_id: str,
        display_name: str,
        location: LocationSample | None,
        trigger: AlertTrigger = AlertTrigger.MANUAL,
        now: datetime | None = None,
    ) -> DistressAlert:
        """Create an alert, or return the user's open alert unchanged if one exists."""
        now = now or datetime.now(timezone.utc)
        with self._lock:
            open_id = self._open_by_user.get(source_user_id)
            if open_id is not None:
                existing = self._alerts[open_id]
                logger.info("Alert already open for user=%s: %s", source_user_id, open_id)
                return existing.copy()

            alert = DistressAlert(
                id=self._id_factory(),
                source_user_id=source_user_id,
                display_name=display_name,
                latitude=location.latitude if location else None,
                longitude=location.longitude if location else None,
                created_at=now,
                trigger=trigger,
            )
            self._alerts[alert.id] = alert
            self._open_by_user[source_user_id] = alert.id
            created = alert.copy()

        logger.info("Alert created: id=%s user=%s trigger=%s", created.id, source_user_id, trigger.value)
        self._notify(created, "created")
        return created

    def track(self, alert_id: str, observer_id: str) -> DistressAlert:
        """Mark an alert as being followed by an observer."""
        with self._lock:
            alert = self._require_open(alert_id)
            alert.observer_ids.add(observer_id)
            alert.state = AlertState.TRACKED
            tracked = alert.copy()

        logger.info("Alert tracked: id=%s observer=%s", alert_id, observer_id)
        self._notify(tracked, "tracked")
        return tracked

    def update_location(self, alert_id: str, latitude: float, longitude: float) -> DistressAlert:
        """Move an open alert to the source user's latest position."""
        with self._lock:
            alert = self._require_open(alert_id)
            if alert.latitude == latitude and alert.longitude == longitude:
                return alert.copy()
            alert.latitude = latitude
            alert.longitude = longitude
            moved = alert.copy()

        logger.debug("Alert moved: id=%s", alert_id)
        self._notify(moved, "moved")
        return moved

    def resolve(self, alert_id: str, now: datetime | None = None) -> DistressAlert:
        """Resolve an open alert. Resolving twice is a no-op."""
        now = now or datetime.now(timezone.utc)
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                raise AlertNotFound(alert_id)
            if alert.state == AlertState.RESOLVED:
                return alert.copy()
            if alert.state == AlertState.EXPIRED:
                raise AlertTerminal(alert_id, alert.state.value)
            alert.state = AlertState.RESOLVED
            alert.resolved_at = now
            self._open_by_user.pop(alert.source_user_id, None)
            resolved = alert.copy()

        logger.info("Alert resolved: id=%s", alert_id)
        self._notify(resolved, "resolved")
        return resolved

    def sweep(self, now: datetime | None = None) -> list[DistressAlert]:
        """Expire open alerts past their TTL and prune old terminal ones.

        Returns the alerts expired by this pass.
        """
        now = now or datetime.now(timezone.utc)
        expired: list[DistressAlert] = []
        with self._lock:
            for alert in self._alerts.values():
                if alert.state.is_terminal:
                    continue
                if now - alert.created_at >= self.ttl:
                    alert.state = AlertState.EXPIRED
                    alert.expired_at = now
                    self._open_by_user.pop(alert.source_user_id, None)
                    expired.append(alert.copy())

            stale = [
                a.id
                for a in self._alerts.values()
                if a.state.is_terminal and now - (a.resolved_at or a.expired_at or a.created_at) >= self.retention
            ]
            for alert_id in stale:
                del self._alerts[alert_id]

        if expired or stale:
            logger.info("Alert sweep: expired=%s pruned=%s", len(expired), len(stale))
        for alert in expired:
            self._notify(alert, "expired")
        return expired

    def get(self, alert_id: str) -> DistressAlert:
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                raise AlertNotFound(alert_id)
            return alert.copy()

    def active(self) -> list[DistressAlert]:
        """Snapshot of every non-terminal alert."""
        with self._lock:
            return [a.copy() for a in self._alerts.values() if not a.state.is_terminal]

    def for_user(self, source_user_id: str) -> DistressAlert | None:
        """The user's open alert, if any."""
        with self._lock:
            open_id = self._open_by_user.get(source_user_id)
            return self._alerts[open_id].copy() if open_id else None

    def _require_open(self, alert_id: str) -> DistressAlert:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise AlertNotFound(alert_id)
        if alert.state.is_terminal:
            raise AlertTerminal(alert_id, alert.state.value)
        return alert

    def _notify(self, alert: DistressAlert, event: str) -> None:
        for listener in self._listeners:
            try:
                listener(alert, event)
            except Exception:  # noqa: BLE001
                logger.exception("Alert listener failed on %s for %s", event, alert.id)
