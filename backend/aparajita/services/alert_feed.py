"""Peer distress alert feeds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Protocol

import httpx

from aparajita.core.config import settings
from aparajita.core.errors import LookupUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeerAlert:
    """An alert broadcast by another user, as reported by a feed."""

    source_user_id: str
    display_name: str
    latitude: float
    longitude: float


class AlertSource(Protocol):
    """Current set of peer alerts. Raises LookupUnavailable on failure."""

    def fetch(self) -> list[PeerAlert]: ...


class StaticAlertSource:
    """Fixed set of peer alerts, replaced in place by tests and demos."""

    def __init__(self, alerts: Iterable[PeerAlert] = ()) -> None:
        self.alerts = list(alerts)

    def fetch(self) -> list[PeerAlert]:
        return list(self.alerts)


class HttpAlertSource:
    """Polls a peer-location service returning a JSON list of alerts."""

    def __init__(self, url: str | None = None, timeout: float | None = None) -> None:
        self.url = url if url is not None else settings.alert_feed_url
        self.timeout = timeout if timeout is not None else settings.lookup_timeout_seconds

    def fetch(self) -> list[PeerAlert]:
        try:
            response = httpx.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            rows = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise LookupUnavailable(f"Alert feed request failed: {exc}") from exc

        if not isinstance(rows, list):
            raise LookupUnavailable("Alert feed must return a JSON list")
        return [alert for alert in (_parse_row(row) for row in rows) if alert is not None]


def _parse_row(row: Any) -> PeerAlert | None:
    try:
        lat = float(row["latitude"])
        lon = float(row["longitude"])
        user_id = str(row["user_id"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Skipping malformed feed row: %r", row)
        return None
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        logger.warning("Skipping feed row with invalid coordinates: %r", row)
        return None
    return PeerAlert(
        source_user_id=user_id,
        display_name=str(row.get("display_name") or user_id),
        latitude=lat,
        longitude=lon,
    )
