"""Keeps a map renderer's markers in step with proximity results."""

from __future__ import annotations

from typing import Protocol

from aparajita.models.alert import ProximityResult
from aparajita.models.location import LocationSample

SELF_MARKER_ID = "self"


class MapRenderer(Protocol):
    """Platform map capability. The core never holds the underlying map handle."""

    def set_center(self, latitude: float, longitude: float) -> None: ...

    def upsert_marker(self, marker_id: str, latitude: float, longitude: float, label: str) -> None: ...

    def remove_marker(self, marker_id: str) -> None: ...


class MarkerSync:
    """Diffs each proximity update into marker operations on one renderer."""

    def __init__(self, renderer: MapRenderer) -> None:
        self.renderer = renderer
        self._alert_markers: set[str] = set()
        self.focused_alert_id: str | None = None

    def focus(self, alert_id: str | None) -> None:
        """Follow a tracked alert instead of the user's own position (None to stop)."""
        self.focused_alert_id = alert_id

    def update(self, me: LocationSample, results: list[ProximityResult]) -> None:
        self.renderer.upsert_marker(SELF_MARKER_ID, me.latitude, me.longitude, "You")

        seen: set[str] = set()
        for result in results:
            alert = result.alert
            seen.add(alert.id)
            self.renderer.upsert_marker(alert.id, alert.latitude, alert.longitude, f"{alert.display_name} - SOS ACTIVE")

        for stale in sorted(self._alert_markers - seen):
            self.renderer.remove_marker(stale)
        self._alert_markers = seen

        if self.focused_alert_id is not None and self.focused_alert_id not in seen:
            self.focused_alert_id = None

        if self.focused_alert_id is None:
            self.renderer.set_center(me.latitude, me.longitude)
        else:
            focused = next(r.alert for r in results if r.alert.id == self.focused_alert_id)
            self.renderer.set_center(focused.latitude, focused.longitude)
