"""Emergency contact notification."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from aparajita.core.config import settings
from aparajita.core.errors import LookupUnavailable

logger = logging.getLogger(__name__)


class ContactNotifier(Protocol):
    """Delivers an alert to one emergency contact. Raises LookupUnavailable on failure."""

    def notify_contact(self, contact_id: str, alert_id: str) -> bool: ...


class WebhookContactNotifier:
    """Posts {contact_id, alert_id} to a delivery webhook (SMS/push gateway)."""

    def __init__(self, url: str | None = None, timeout: float | None = None) -> None:
        self.url = url if url is not None else settings.notify_webhook_url
        self.timeout = timeout if timeout is not None else settings.notify_timeout_seconds

    def notify_contact(self, contact_id: str, alert_id: str) -> bool:
        if not self.url:
            raise LookupUnavailable("NOTIFY_WEBHOOK_URL is not configured")
        try:
            response = httpx.post(
                self.url,
                json={"contact_id": contact_id, "alert_id": alert_id},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise LookupUnavailable(f"Notification to contact {contact_id} failed: {exc}") from exc
        logger.info("Contact notified: contact=%s alert=%s", contact_id, alert_id)
        return True
