"""
HTTP webhook notifier.

Posts digests as JSON to a delivery endpoint, e.g. a transactional
email service.
"""

import logging
import math
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import requests

from planningalerts.digest.types import ComposedMessage
from .base import Notifier, NotificationResult

logger = logging.getLogger(__name__)

# Longest wait honoured from a Retry-After header, in seconds
MAX_RETRY_AFTER = 60.0
DEFAULT_RETRY_AFTER = 1.0


def retry_delay(header: Optional[str]) -> float:
    """
    Seconds to wait before retrying a rate limited request.

    Args:
        header: Retry-After value, either delay-seconds or an HTTP-date

    Returns:
        Delay clamped to [0, MAX_RETRY_AFTER]
    """
    if not header:
        return DEFAULT_RETRY_AFTER
    try:
        delay = float(header)
    except ValueError:
        try:
            when = parsedate_to_datetime(header)
        except (TypeError, ValueError):
            logger.warning(f"Unparseable Retry-After header: {header!r}")
            return DEFAULT_RETRY_AFTER
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        delay = (when - datetime.now(timezone.utc)).total_seconds()
    if math.isnan(delay):
        return DEFAULT_RETRY_AFTER
    return min(max(delay, 0.0), MAX_RETRY_AFTER)


class WebhookNotifier(Notifier):
    """Sends digests to an HTTP webhook."""

    def __init__(self, webhook_url: str, timeout: float = 10):
        """
        Initialize webhook notifier.

        Args:
            webhook_url: Endpoint receiving the JSON payload
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    def send(self, message: ComposedMessage) -> NotificationResult:
        """Post digest to the webhook."""
        try:
            payload = self._create_payload(message)
            response = self._post(payload)

            if response.ok:
                logger.info(f"Digest for {message.recipient} posted to webhook")
                return NotificationResult(success=True, channel="webhook")
            else:
                return NotificationResult(
                    success=False,
                    channel="webhook",
                    error=f"HTTP {response.status_code}: {response.text}",
                )

        except requests.exceptions.ConnectionError as e:
            return NotificationResult(
                success=False,
                channel="webhook",
                error=f"Connection error: {str(e)}",
            )
        except Exception as e:
            return NotificationResult(
                success=False,
                channel="webhook",
                error=str(e),
            )

    def _post(self, payload: dict[str, Any]) -> requests.Response:
        """Post payload, waiting once if the endpoint rate limits us."""
        response = requests.post(
            self.webhook_url,
            json=payload,
            timeout=self.timeout,
        )

        if response.status_code == 429:
            delay = retry_delay(response.headers.get("Retry-After"))
            logger.warning(f"Webhook rate limited, retrying after {delay:.0f}s")
            time.sleep(delay)
            response = requests.post(
                self.webhook_url,
                json=payload,
                timeout=self.timeout,
            )

        return response

    def _create_payload(self, message: ComposedMessage) -> dict[str, Any]:
        """Create webhook payload."""
        return {
            "to": message.recipient,
            "from": {"email": message.sender, "name": message.sender_name},
            "subject": message.subject,
            "parts": [
                {"content_type": content_type, "body": body}
                for content_type, body in message.parts
            ],
        }
