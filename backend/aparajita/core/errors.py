"""Typed, recoverable errors raised by the safety core."""

from __future__ import annotations


class SafetyError(Exception):
    """Base class for every error the core surfaces to callers."""


class InvalidCoordinate(SafetyError):
    """Location sample outside the valid latitude/longitude range."""


class IncompleteConfig(SafetyError):
    """Safe-exit armed without a target time or without contacts."""


class InvalidTransition(SafetyError):
    """Safe-exit operation not allowed in the current state."""


class AlertNotFound(SafetyError):
    """No alert with the given id."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Alert {alert_id} not found")
        self.alert_id = alert_id


class AlertTerminal(SafetyError):
    """Alert is already resolved or expired."""

    def __init__(self, alert_id: str, state: str) -> None:
        super().__init__(f"Alert {alert_id} is already {state}")
        self.alert_id = alert_id
        self.state = state


class LookupUnavailable(SafetyError):
    """An external adapter (geocode, hotline, legal, notify, feed) failed."""
