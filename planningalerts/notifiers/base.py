"""
Base notifier classes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Any

from planningalerts.digest.types import ComposedMessage


@dataclass
class NotificationResult:
    """Result of a delivery attempt."""

    success: bool
    channel: str
    error: Optional[str] = None


class Notifier(ABC):
    """Abstract base class for digest transports."""

    @abstractmethod
    def send(self, message: ComposedMessage) -> NotificationResult:
        """
        Deliver a composed digest.

        Args:
            message: Digest to deliver

        Returns:
            NotificationResult indicating success or failure
        """
        pass


class NotifierFactory:
    """Factory for creating notifier instances."""

    @staticmethod
    def create(config: dict[str, Any]) -> Notifier:
        """
        Create a notifier from configuration.

        Args:
            config: Notifier configuration dict

        Returns:
            Appropriate Notifier instance

        Raises:
            ValueError: If notifier type is unknown
        """
        notifier_type = config.get("type")

        if notifier_type == "email":
            from .email import EmailNotifier

            return EmailNotifier(
                smtp_host=config.get("smtp_host", ""),
                smtp_port=config.get("smtp_port", 587),
                smtp_user=config.get("smtp_user", ""),
                smtp_password=config.get("smtp_password", ""),
                use_tls=config.get("use_tls", True),
            )

        elif notifier_type == "webhook":
            from .webhook import WebhookNotifier

            return WebhookNotifier(
                webhook_url=config.get("url", ""),
                timeout=config.get("timeout", 10),
            )

        else:
            raise ValueError(f"Unknown notifier type: {notifier_type}")
