"""Notification Client - Imperative Shell.

This module delivers formatted notifications to the user's notification
channel. Delivery goes to a webhook when one is configured; otherwise the
notification is only logged. All formatting is in the core module.
"""

import logging
from dataclasses import dataclass

import requests

from src.core.formatter import Notification, format_webhook_payload


logger = logging.getLogger(__name__)


# Default timeout for webhook requests (seconds)
DEFAULT_TIMEOUT = 10


@dataclass
class NotificationResponse:
    """Result of delivering one notification.

    Attributes:
        success: Whether the notification was delivered
        status_code: HTTP status code (0 when no HTTP call was made)
        error: Error message if failed
    """
    success: bool
    status_code: int
    error: str | None = None


class NotificationClient:
    """Client for delivering notifications.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        webhook_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize notification client.

        Args:
            webhook_url: Incoming webhook URL (None to only log)
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    def send(self, notification: Notification) -> NotificationResponse:
        """Deliver a notification.

        This method performs HTTP I/O when a webhook is configured.

        Args:
            notification: Notification from the formatter

        Returns:
            NotificationResponse indicating success or failure
        """
        if not self.webhook_url:
            logger.info(
                "Notification (no webhook configured): %s | %s",
                notification.title,
                notification.body.replace("\n", " | "),
            )
            return NotificationResponse(success=True, status_code=0)

        logger.info("Sending notification %s to webhook", notification.tag)

        try:
            response = requests.post(
                self.webhook_url,
                json=format_webhook_payload(notification),
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )

            if 200 <= response.status_code < 300:
                logger.info("Notification %s delivered", notification.tag)
                return NotificationResponse(
                    success=True,
                    status_code=response.status_code,
                )
            else:
                error_text = response.text
                logger.warning(
                    "Notification webhook returned non-2xx: %d - %s",
                    response.status_code,
                    error_text,
                )
                return NotificationResponse(
                    success=False,
                    status_code=response.status_code,
                    error=error_text,
                )

        except requests.Timeout:
            logger.error("Notification webhook request timed out")
            return NotificationResponse(
                success=False,
                status_code=0,
                error="Request timed out",
            )
        except requests.RequestException as e:
            logger.error("Notification webhook request failed: %s", str(e))
            return NotificationResponse(
                success=False,
                status_code=0,
                error=str(e),
            )
