"""
Delivery statistics and alert watermark updates.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)

EMAILS_SENT = "emails_sent"
APPLICATIONS_SENT = "applications_sent"


class CounterStore(ABC):
    """Storage for cumulative named counters."""

    @abstractmethod
    def increment(self, name: str, amount: int = 1) -> None:
        """Atomically add amount to a counter."""
        pass

    @abstractmethod
    def get(self, name: str) -> int:
        """Current value of a counter, 0 if never incremented."""
        pass


class InMemoryCounterStore(CounterStore):
    """Process-local counter store."""

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._lock = threading.Lock()

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + amount

    def get(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)


class DeliveryRecorder:
    """Records a delivered digest: statistics plus the alert's last_sent."""

    def __init__(self, store: CounterStore):
        """
        Initialize recorder.

        Args:
            store: Counter store receiving the emails/applications sent totals
        """
        self.store = store
        self._lock = threading.Lock()

    def record_delivery(
        self,
        alert: Any,
        application_count: int,
        at: Optional[datetime] = None,
    ) -> datetime:
        """
        Record one sent digest.

        Must be called exactly once per message handed to a transport;
        calling it twice counts the digest twice.

        Args:
            alert: Alert the digest was sent for
            application_count: Number of applications in the digest
            at: Time of the send (defaults to now)

        Returns:
            The timestamp stored as the alert's last_sent
        """
        if application_count < 0:
            raise ValueError(f"application_count must be >= 0, got {application_count}")

        sent_at = at or datetime.now()
        with self._lock:
            self.store.increment(EMAILS_SENT, 1)
            self.store.increment(APPLICATIONS_SENT, application_count)
            alert.last_sent = sent_at

        logger.info(
            f"Recorded digest for alert {getattr(alert, 'id', None)}: "
            f"{application_count} applications, last_sent={sent_at.isoformat()}"
        )
        return sent_at
