"""
Digest run over all active alerts.
"""

import logging
from datetime import datetime
from typing import Optional

from planningalerts.database.connection import Database
from planningalerts.database.models import Alert
from planningalerts.database.repository import (
    AlertRepository,
    ApplicationRepository,
    CommentRepository,
    StatRepository,
)
from planningalerts.digest.composer import DigestComposer
from planningalerts.digest.stats import CounterStore, DeliveryRecorder
from planningalerts.digest.types import (
    ApplicationSummary,
    CommentSummary,
    ComposedMessage,
    DigestError,
)
from planningalerts.notifiers.base import Notifier

logger = logging.getLogger(__name__)


class PlanningAlertsApp:
    """Main PlanningAlerts digest application."""

    def __init__(
        self,
        db: Database,
        notifiers: list[Notifier],
        composer: Optional[DigestComposer] = None,
        stats: Optional[CounterStore] = None,
        dry_run: bool = False,
    ):
        """
        Initialize app.

        Args:
            db: Database instance
            notifiers: Transports each digest is handed to
            composer: Digest composer (defaults to one with default links)
            stats: Counter store (defaults to the stats table)
            dry_run: Compose digests without sending or recording them
        """
        self.db = db
        self.notifiers = notifiers
        self.composer = composer or DigestComposer()
        self.dry_run = dry_run

        self.alert_repo = AlertRepository(db)
        self.application_repo = ApplicationRepository(db)
        self.comment_repo = CommentRepository(db)

        self.recorder = DeliveryRecorder(stats or StatRepository(db))

    def run_digests(self, now: Optional[datetime] = None) -> int:
        """
        Send digests for every active alert with something new.

        Args:
            now: Start of the run (defaults to now). Only matches and
                comments up to this time are sent, and it becomes each
                alert's last_sent.

        Returns:
            Number of digests sent
        """
        now = now or datetime.now()
        sent = 0
        for alert in self.alert_repo.list_active():
            try:
                if self.process_alert(alert, now=now):
                    sent += 1
            except Exception as e:
                logger.error(f"Error processing alert {alert.id}: {e}")

        logger.info(f"Digest run complete: {sent} sent")
        return sent

    def build_message(
        self, alert: Alert, until: Optional[datetime] = None
    ) -> Optional[ComposedMessage]:
        """Compose the digest for an alert, or None if nothing is new."""
        applications = self.application_repo.list_new_for_alert(alert, until=until)
        comments = self.comment_repo.list_new_for_alert(alert, until=until)
        if not applications and not comments:
            return None

        return self.composer.compose(
            alert,
            [ApplicationSummary.from_record(a) for a in applications],
            [CommentSummary.from_record(c, a) for c, a in comments],
        )

    def process_alert(self, alert: Alert, now: Optional[datetime] = None) -> bool:
        """
        Compose, deliver and record the digest for one alert.

        Args:
            alert: Alert to process
            now: Upper bound for new content and the new last_sent

        Returns:
            True if the digest was handed to at least one transport
        """
        now = now or datetime.now()
        try:
            message = self.build_message(alert, until=now)
        except DigestError as e:
            logger.error(f"Could not compose digest for alert {alert.id}: {e}")
            return False

        if message is None:
            logger.debug(f"Nothing new for alert {alert.id}")
            return False

        if self.dry_run:
            logger.info(f"[dry run] Would send to {message.recipient}: {message.subject}")
            return False

        results = [notifier.send(message) for notifier in self.notifiers]
        for result in results:
            if not result.success:
                logger.warning(
                    f"Delivery via {result.channel} failed for alert {alert.id}: {result.error}"
                )

        if not any(result.success for result in results):
            return False

        self.record(alert, message.application_count, now)
        return True

    def record(self, alert: Alert, application_count: int, at: datetime) -> None:
        """Update the counters and the stored last_sent in one transaction."""
        previous = alert.last_sent
        try:
            with self.db.transaction():
                self.recorder.record_delivery(alert, application_count, at=at)
                self.alert_repo.update_last_sent(alert)
        except Exception:
            alert.last_sent = previous
            raise
