"""Pytest fixtures."""

import os
import threading

os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from aparajita.core.deps import get_engine
from aparajita.core.dispatch import Dispatcher
from aparajita.core.errors import LookupUnavailable
from aparajita.main import app
from aparajita.models.lookup import Hotline, PoliceInfo
from aparajita.services.alert_feed import StaticAlertSource
from aparajita.services.engine import SafetyEngine


class FakeLookup:
    """Records calls; set fail=True to make every lookup raise LookupUnavailable."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail = False
        self._lock = threading.Lock()

    def _record(self, *call) -> None:
        with self._lock:
            self.calls.append(call)
        if self.fail:
            raise LookupUnavailable(f"{call[0]} offline")

    def reverse_geocode(self, latitude, longitude):
        self._record("geocode", latitude, longitude)
        return f"Street near {latitude:.4f},{longitude:.4f}"

    def find_nearest_police_station(self, latitude, longitude):
        self._record("police", latitude, longitude)
        return PoliceInfo(text="Cubbon Park Police Station", links=["https://maps.example/police"])

    def get_hotlines(self, area_description):
        self._record("hotlines", area_description)
        return [Hotline(name="Women Helpline", number="1091"), Hotline(name="Police", number="112")]

    def get_legal_rights(self, area_description):
        self._record("legal", area_description)
        return f"Your rights in {area_description}."

    def count(self, kind: str) -> int:
        with self._lock:
            return sum(1 for c in self.calls if c[0] == kind)


class RecordingNotifier:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail = False
        self._lock = threading.Lock()

    def notify_contact(self, contact_id, alert_id):
        with self._lock:
            self.calls.append((contact_id, alert_id))
        if self.fail:
            raise LookupUnavailable("gateway down")
        return True


@pytest.fixture
def lookup():
    return FakeLookup()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def feed():
    return StaticAlertSource()


@pytest.fixture
def engine(lookup, notifier, feed):
    eng = SafetyEngine(lookup=lookup, notifier=notifier, dispatcher=Dispatcher(max_workers=2), alert_source=feed)
    yield eng
    eng.close()


@pytest.fixture
def client(engine):
    """Test client bound to a fresh engine."""
    app.dependency_overrides[get_engine] = lambda: engine
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
