"""Safety engine: wires ingest, proximity, alert lifecycle and safe exit together."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Iterable
from zoneinfo import ZoneInfo

from aparajita.core.config import Settings
from aparajita.core.dispatch import Dispatcher
from aparajita.core.errors import LookupUnavailable
from aparajita.core.safety_policies import (
    ALERT_TTL_MINUTES,
    DEFAULT_AREA_DESCRIPTION,
    DEFAULT_PROXIMITY_RADIUS_M,
    REFRESH_DISTANCE_M,
    TERMINAL_ALERT_RETENTION_MINUTES,
    UNKNOWN_ADDRESS,
)
from aparajita.models.alert import AlertTrigger, DistressAlert, ProximityResult
from aparajita.models.location import LocationSample
from aparajita.models.lookup import Hotline, LookupContext
from aparajita.models.safe_exit import SafeExitConfig
from aparajita.services.alert_feed import AlertSource
from aparajita.services.alert_service import AlertLifecycleManager
from aparajita.services.geo_service import haversine_m, match_nearby
from aparajita.services.location_service import IngestResult, LocationIngestor
from aparajita.services.lookup_service import LocationLookup
from aparajita.services.notify_service import ContactNotifier
from aparajita.services.safe_exit_service import SafeExitMachine

logger = logging.getLogger(__name__)

# Receives (user_id, current location, ranked nearby alerts) on every material change
ProximitySubscriber = Callable[[str, LocationSample, list[ProximityResult]], None]


class SafetyEngine:
    """Single entry point used by the API and the background loops."""

    def __init__(
        self,
        lookup: LocationLookup,
        notifier: ContactNotifier,
        dispatcher: Dispatcher,
        alert_source: AlertSource | None = None,
        *,
        radius_m: float = DEFAULT_PROXIMITY_RADIUS_M,
        refresh_distance_m: float = REFRESH_DISTANCE_M,
        alert_ttl: timedelta = timedelta(minutes=ALERT_TTL_MINUTES),
        alert_retention: timedelta = timedelta(minutes=TERMINAL_ALERT_RETENTION_MINUTES),
        tz: tzinfo = timezone.utc,
    ) -> None:
        self.lookup = lookup
        self.notifier = notifier
        self.dispatcher = dispatcher
        self.alert_source = alert_source
        self.radius_m = radius_m

        self.ingestor = LocationIngestor(refresh_distance_m=refresh_distance_m)
        self.alerts = AlertLifecycleManager(ttl=alert_ttl, retention=alert_retention)
        self.safe_exit = SafeExitMachine(tz=tz, on_trigger=self._on_safe_exit_triggered)
        self.alerts.add_listener(self._on_alert_changed)

        self._lookups: dict[str, LookupContext] = {}
        self._display_names: dict[str, str] = {}
        self._lock = threading.Lock()
        self._subscribers: list[ProximitySubscriber] = []

    # ---------- Location + proximity ----------

    def ingest_location(self, sample: LocationSample, display_name: str | None = None) -> IngestResult:
        result = self.ingestor.ingest(sample)
        if display_name and result.accepted:
            with self._lock:
                self._display_names[sample.user_id] = display_name

        if result.accepted and result.refresh:
            logger.debug("Material location change: user=%s", sample.user_id)
            s = result.sample
            self.dispatcher.submit(f"lookup refresh {s.user_id}", self._refresh_lookups, s.user_id, s.latitude, s.longitude)
            self._publish(s.user_id)
        return result

    def current_location(self, user_id: str) -> LocationSample | None:
        return self.ingestor.current(user_id)

    def nearby(self, user_id: str, radius_m: float | None = None) -> list[ProximityResult]:
        """Ranked active alerts around the user; empty until the user reports a location."""
        me = self.ingestor.current(user_id)
        if me is None:
            return []
        return match_nearby(me, self.alerts.active(), radius_m if radius_m is not None else self.radius_m)

    def subscribe(self, subscriber: ProximitySubscriber) -> None:
        self._subscribers.append(subscriber)

    # ---------- Alerts ----------

    def trigger_panic(self, user_id: str, display_name: str | None = None, now: datetime | None = None) -> DistressAlert:
        """Manual SOS. Always returns the user's open alert, creating it if needed."""
        if display_name:
            with self._lock:
                self._display_names[user_id] = display_name
        return self.alerts.create_alert(
            user_id,
            self._display_name(user_id),
            self.ingestor.current(user_id),
            trigger=AlertTrigger.MANUAL,
            now=now,
        )

    def track_alert(self, alert_id: str, observer_id: str) -> DistressAlert:
        return self.alerts.track(alert_id, observer_id)

    def resolve_alert(self, alert_id: str, now: datetime | None = None) -> DistressAlert:
        return self.alerts.resolve(alert_id, now=now)

    def get_alert(self, alert_id: str) -> DistressAlert:
        return self.alerts.get(alert_id)

    def sweep_alerts(self, now: datetime | None = None) -> list[DistressAlert]:
        return self.alerts.sweep(now)

    def sync_feed(self, now: datetime | None = None) -> int:
        """Import peer alerts from the alert source; resolve feed alerts that disappeared.

        Returns the number of peer alerts seen.
        """
        if self.alert_source is None:
            return 0
        now = now or datetime.now(timezone.utc)
        try:
            peers = self.alert_source.fetch()
        except LookupUnavailable as exc:
            logger.warning("Alert feed unavailable: %s", exc)
            return 0

        live = set()
        for peer in peers:
            live.add(peer.source_user_id)
            location = LocationSample(peer.source_user_id, peer.latitude, peer.longitude, now)
            alert = self.alerts.create_alert(
                peer.source_user_id, peer.display_name, location, trigger=AlertTrigger.FEED, now=now
            )
            if alert.trigger == AlertTrigger.FEED and (alert.latitude, alert.longitude) != (peer.latitude, peer.longitude):
                self.alerts.update_location(alert.id, peer.latitude, peer.longitude)

        for alert in self.alerts.active():
            if alert.trigger == AlertTrigger.FEED and alert.source_user_id not in live:
                self.alerts.resolve(alert.id, now=now)
        return len(peers)

    # ---------- Safe exit ----------

    def configure_safe_exit(
        self,
        user_id: str,
        target_time: time | None,
        notify_contact_ids: Iterable[str],
        now: datetime | None = None,
    ) -> SafeExitConfig:
        return self.safe_exit.configure(user_id, target_time, notify_contact_ids, now=now)

    def toggle_safe_exit(self, user_id: str, enable: bool, now: datetime | None = None) -> SafeExitConfig:
        return self.safe_exit.toggle(user_id, enable, now=now)

    def reset_safe_exit(self, user_id: str) -> SafeExitConfig:
        return self.safe_exit.reset(user_id)

    def get_safe_exit(self, user_id: str) -> SafeExitConfig:
        return self.safe_exit.get(user_id)

    def tick_safe_exit(self, now: datetime | None = None) -> list[SafeExitConfig]:
        return self.safe_exit.tick(now)

    # ---------- Lookups ----------

    def lookup_context(self, user_id: str) -> LookupContext:
        with self._lock:
            ctx = self._lookups.get(user_id)
            return replace(ctx) if ctx else LookupContext()

    def area_description(self, user_id: str) -> str:
        address = self.lookup_context(user_id).address
        return address if address != UNKNOWN_ADDRESS else DEFAULT_AREA_DESCRIPTION

    def hotlines(self, user_id: str) -> list[Hotline]:
        return self._on_demand("hotlines", self.lookup.get_hotlines, self.area_description(user_id))

    def legal_rights(self, user_id: str) -> str:
        return self._on_demand("legal rights", self.lookup.get_legal_rights, self.area_description(user_id))

    def close(self) -> None:
        self.dispatcher.shutdown()

    # ---------- internals ----------

    def _display_name(self, user_id: str) -> str:
        with self._lock:
            return self._display_names.get(user_id, user_id)

    def _on_demand(self, label: str, fn, area: str):
        try:
            return fn(area)
        except LookupUnavailable:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Lookup %s failed", label)
            raise LookupUnavailable(f"{label} lookup failed: {exc}") from exc

    def _refresh_lookups(self, user_id: str, latitude: float, longitude: float) -> None:
        """Runs on the dispatcher. Keeps last known values when a lookup fails."""
        address = police = None
        errors: list[str] = []
        try:
            address = self.lookup.reverse_geocode(latitude, longitude)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Reverse geocode failed for user=%s: %s", user_id, exc)
            errors.append(str(exc))
        try:
            police = self.lookup.find_nearest_police_station(latitude, longitude)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Police lookup failed for user=%s: %s", user_id, exc)
            errors.append(str(exc))

        with self._lock:
            ctx = self._lookups.setdefault(user_id, LookupContext())
            if address:
                ctx.address = address
            if police is not None:
                ctx.police = police
            ctx.refreshed_at = datetime.now(timezone.utc)
            ctx.last_error = "; ".join(errors) or None

    def _on_safe_exit_triggered(self, cfg: SafeExitConfig) -> str:
        alert = self.alerts.create_alert(
            cfg.user_id,
            self._display_name(cfg.user_id),
            self.ingestor.current(cfg.user_id),
            trigger=AlertTrigger.SAFE_EXIT,
            now=cfg.triggered_at,
        )
        for contact_id in sorted(cfg.notify_contact_ids):
            self.dispatcher.submit(f"notify {contact_id}", self._notify_contact, contact_id, alert.id)
        return alert.id

    def _notify_contact(self, contact_id: str, alert_id: str) -> None:
        try:
            self.notifier.notify_contact(contact_id, alert_id)
        except LookupUnavailable as exc:
            logger.warning("Contact %s not notified of alert %s: %s", contact_id, alert_id, exc)

    def _on_alert_changed(self, alert: DistressAlert, event: str) -> None:
        """Push fresh proximity lists to every user the change can affect."""
        if not alert.has_location:
            return
        for user_id, me in self.ingestor.snapshot().items():
            if user_id == alert.source_user_id:
                continue
            # A moved alert may have left the radius of users who listed it
            if event != "moved" and haversine_m(me.latitude, me.longitude, alert.latitude, alert.longitude) > self.radius_m:
                continue
            self._publish(user_id)

    def _publish(self, user_id: str) -> None:
        if not self._subscribers:
            return
        me = self.ingestor.current(user_id)
        if me is None:
            return
        results = self.nearby(user_id)
        for subscriber in self._subscribers:
            try:
                subscriber(user_id, me, results)
            except Exception:  # noqa: BLE001
                logger.exception("Proximity subscriber failed for user=%s", user_id)


def create_engine(config: Settings) -> SafetyEngine:
    """Build an engine with the production adapters described by config."""
    from aparajita.services.alert_feed import HttpAlertSource
    from aparajita.services.lookup_service import AILocationLookup
    from aparajita.services.notify_service import WebhookContactNotifier

    return SafetyEngine(
        lookup=AILocationLookup(config.lookup_provider),
        notifier=WebhookContactNotifier(config.notify_webhook_url, config.notify_timeout_seconds),
        dispatcher=Dispatcher(max_workers=config.dispatch_workers),
        alert_source=HttpAlertSource(config.alert_feed_url) if config.alert_feed_url else None,
        radius_m=config.proximity_radius_m,
        refresh_distance_m=config.refresh_distance_m,
        alert_ttl=timedelta(minutes=config.alert_ttl_minutes),
        alert_retention=timedelta(minutes=config.terminal_alert_retention_minutes),
        tz=ZoneInfo(config.timezone),
    )
