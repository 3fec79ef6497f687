"""
Webhook notifier.

Posts a prepared notification payload to the configured webhook URL.
"""

import logging
from typing import Optional

import requests

from .config import WEBHOOK_PLACEHOLDER
from .report import NotificationPayload


logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Raised when the webhook transport fails."""
    pass


class WebhookNotifier:
    """
    Delivers payloads to a Discord-compatible webhook.

    An empty or placeholder URL turns delivery into a logged no-op.
    """

    def __init__(self, url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        """
        Initialize webhook notifier.

        Args:
            url: Webhook URL
            timeout: Request timeout in seconds
            session: Optional requests session to reuse
        """
        self.url = url
        self.timeout = timeout
        self.session = session

    @property
    def is_configured(self) -> bool:
        return bool(self.url) and self.url != WEBHOOK_PLACEHOLDER

    def deliver(self, payload: NotificationPayload) -> bool:
        """
        Send a payload.

        Args:
            payload: Notification payload

        Returns:
            True if sent, False if skipped because no webhook is configured

        Raises:
            DeliveryError: If the request fails or the endpoint rejects it
        """
        if not self.is_configured:
            logger.warning("Webhook URL not configured. Skipping notification.")
            return False

        post = self.session.post if self.session is not None else requests.post

        try:
            response = post(self.url, json=payload.to_dict(), timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else 'unknown'
            raise DeliveryError(f"Webhook rejected notification (HTTP {status}): {e}")
        except requests.RequestException as e:
            raise DeliveryError(f"Failed to send notification: {e}")

        logger.info("Notification sent successfully.")
        return True
