"""Operational notifications for ingestion and learning events."""

from typing import Any, Dict, Optional, Protocol

import httpx

from lextrust.core.config import settings
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Notifier(Protocol):
    async def notify(self, event: str, payload: Dict[str, Any]) -> None:
        ...


class NoopNotifier:
    """Discards every event."""

    async def notify(self, event: str, payload: Dict[str, Any]) -> None:
        return None


class LoggingNotifier:
    """Writes events to the application log."""

    async def notify(self, event: str, payload: Dict[str, Any]) -> None:
        LOGGER.warning(f"Notification: {event}", extra={"event": event, "payload": payload})


class WebhookNotifier:
    """POSTs events as JSON to an alert webhook.

    Delivery failures are logged; a broken alert channel must not fail the
    pipeline that raised the alert.
    """

    def __init__(self, url: str, timeout: Optional[float] = None):
        self.url = url
        self.timeout = timeout or settings.http_timeout

    async def notify(self, event: str, payload: Dict[str, Any]) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json={"event": event, "payload": payload})
            if response.status_code >= 300:
                LOGGER.warning(
                    f"Alert webhook returned {response.status_code}",
                    extra={"event": event, "status_code": response.status_code},
                )
        except httpx.HTTPError as e:
            LOGGER.warning(f"Alert webhook delivery failed: {str(e)}", extra={"event": event})


def build_notifier() -> Notifier:
    """Webhook notifier when ``ALERT_WEBHOOK_URL`` is set, else logging."""
    if settings.notifier.webhook_url:
        return WebhookNotifier(settings.notifier.webhook_url)
    return LoggingNotifier()
