"""
Email SMTP notifier.
"""

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr

from planningalerts.digest.types import ComposedMessage
from .base import Notifier, NotificationResult

logger = logging.getLogger(__name__)


class EmailNotifier(Notifier):
    """Sends digests as multipart emails over SMTP."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        smtp_user: str = "",
        smtp_password: str = "",
        use_tls: bool = True,
    ):
        """
        Initialize email notifier.

        Args:
            smtp_host: SMTP server hostname
            smtp_port: SMTP server port
            smtp_user: SMTP username, empty to skip login
            smtp_password: SMTP password
            use_tls: Whether to upgrade the connection with STARTTLS
        """
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.use_tls = use_tls

    def send(self, message: ComposedMessage) -> NotificationResult:
        """Send digest via email."""
        try:
            mime_message = self._create_message(message)

            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                if self.use_tls:
                    server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(mime_message)

            logger.info(f"Digest email sent to {message.recipient}")
            return NotificationResult(success=True, channel="email")

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed for {self.smtp_user}: {e}")
            return NotificationResult(
                success=False,
                channel="email",
                error=f"Authentication failed: {str(e)}",
            )
        except Exception as e:
            logger.error(f"Failed to send digest email to {message.recipient}: {e}")
            return NotificationResult(
                success=False,
                channel="email",
                error=f"SMTP error: {str(e)}",
            )

    def _create_message(self, message: ComposedMessage) -> MIMEMultipart:
        """Create MIME message with the plain text part first."""
        mime_message = MIMEMultipart("alternative")
        mime_message["Subject"] = message.subject
        mime_message["From"] = formataddr((message.sender_name, message.sender))
        mime_message["To"] = message.recipient

        for content_type, body in message.parts:
            subtype = content_type.split("/", 1)[1]
            mime_message.attach(MIMEText(body, subtype, "utf-8"))

        return mime_message
