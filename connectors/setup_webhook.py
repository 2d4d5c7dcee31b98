"""
Notifies the automation backend that a user finished onboarding.

The call is fire-and-forget from the user's point of view: a failing
webhook is logged and reported, never raised.
"""

import logging
from datetime import datetime, timezone

import httpx

logger = logging.getLogger(__name__)


class SetupWebhook:
    """POSTs ``setup_complete`` events to a webhook URL."""

    def __init__(self, url: str, client: httpx.Client | None = None, timeout: float = 10.0):
        self.url = url
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def notify_setup_complete(self, user_id: str, email: str, provider: str, status: str, folder_id: str) -> bool:
        """Send the event. Returns True when the webhook answered with a 2xx."""
        payload = {
            "event": "setup_complete",
            "user_id": user_id,
            "email": email,
            "provider": provider,
            "folder_id": folder_id,
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            r = self._client.post(self.url, json=payload)
            r.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Webhook failed for user {user_id}: {e}")
            return False
        logger.info(f"Setup-complete webhook sent for user {user_id}, folder {folder_id}")
        return True

    def close(self):
        self._client.close()
