"""Notifier adapters for went-live alerts."""

import logging
from typing import List, Optional

import httpx

from ...domain.ports.notifier import NotifierPort

logger = logging.getLogger(__name__)


def build_message(display_name: str, platform_label: str) -> dict:
    """Title and body of a went-live notification."""
    return {
        "title": f"{display_name} is live",
        "body": f"Click to open on {platform_label}.",
    }


class LoggingNotifier:
    """Writes went-live notifications to the application log."""

    async def notify_went_live(self, display_name: str, platform_label: str, url: str) -> None:
        message = build_message(display_name, platform_label)
        logger.info(f"🔔 {message['title']} - {message['body']} {url}")


class WebhookNotifier:
    """Posts went-live notifications as JSON to a webhook."""

    def __init__(self, webhook_url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        """Initialize the notifier.

        Args:
            webhook_url: Endpoint receiving the JSON payload
            timeout: Request timeout in seconds
            client: Preconfigured client, mainly for tests
        """
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._client = client

    async def notify_went_live(self, display_name: str, platform_label: str, url: str) -> None:
        payload = {**build_message(display_name, platform_label), "platform": platform_label, "url": url}
        try:
            if self._client is not None:
                response = await self._client.post(self.webhook_url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"❌ Failed to send webhook notification for {display_name}: {e}")


class CompositeNotifier:
    """Fans a notification out to several notifiers."""

    def __init__(self, notifiers: List[NotifierPort]):
        self._notifiers = list(notifiers)

    async def notify_went_live(self, display_name: str, platform_label: str, url: str) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.notify_went_live(display_name, platform_label, url)
            except Exception as e:
                logger.warning(f"⚠️ {type(notifier).__name__} failed: {e}")

    @property
    def notifiers(self) -> List[NotifierPort]:
        return list(self._notifiers)
