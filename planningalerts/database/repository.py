"""
Repository classes for CRUD operations.
"""

from datetime import datetime
from typing import Optional

from planningalerts.digest.stats import CounterStore
from .connection import Database
from .models import Alert, Application, Comment, AlertMatch


def _to_datetime(value) -> Optional[datetime]:
    """Parse a stored timestamp."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


class AlertRepository:
    """CRUD operations for alerts."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, alert: Alert) -> Alert:
        """Create a new alert."""
        cursor = self.db.connection.cursor()
        cursor.execute(
            """
            INSERT INTO alerts
            (email, address, lat, lng, radius_meters, confirm_id, confirmed, unsubscribed, last_sent)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                alert.email,
                alert.address,
                alert.lat,
                alert.lng,
                alert.radius_meters,
                alert.confirm_id,
                1 if alert.confirmed else 0,
                1 if alert.unsubscribed else 0,
                alert.last_sent.isoformat() if alert.last_sent else None,
            ),
        )
        self.db.commit()
        alert.id = cursor.lastrowid
        return alert

    def get_by_id(self, alert_id: int) -> Optional[Alert]:
        """Get alert by ID."""
        cursor = self.db.connection.cursor()
        cursor.execute("SELECT * FROM alerts WHERE id = ?", (alert_id,))
        row = cursor.fetchone()
        if row is None:
            return None
        return self._row_to_alert(row)

    def get_by_confirm_id(self, confirm_id: str) -> Optional[Alert]:
        """Get alert by its confirmation token."""
        cursor = self.db.connection.cursor()
        cursor.execute("SELECT * FROM alerts WHERE confirm_id = ?", (confirm_id,))
        row = cursor.fetchone()
        if row is None:
            return None
        return self._row_to_alert(row)

    def list_all(self) -> list[Alert]:
        """List all alerts."""
        cursor = self.db.connection.cursor()
        cursor.execute("SELECT * FROM alerts ORDER BY id")
        return [self._row_to_alert(row) for row in cursor.fetchall()]

    def list_active(self) -> list[Alert]:
        """List confirmed alerts that have not been unsubscribed."""
        cursor = self.db.connection.cursor()
        cursor.execute(
            """
            SELECT * FROM alerts
            WHERE confirmed = 1 AND unsubscribed = 0
            ORDER BY id
            """
        )
        return [self._row_to_alert(row) for row in cursor.fetchall()]

    def update_last_sent(self, alert: Alert) -> None:
        """Persist the alert's last_sent watermark."""
        cursor = self.db.connection.cursor()
        cursor.execute(
            "UPDATE alerts SET last_sent = ? WHERE id = ?",
            (alert.last_sent.isoformat() if alert.last_sent else None, alert.id),
        )
        self.db.commit()

    def unsubscribe(self, alert_id: int) -> None:
        """Stop sending digests for an alert."""
        cursor = self.db.connection.cursor()
        cursor.execute("UPDATE alerts SET unsubscribed = 1 WHERE id = ?", (alert_id,))
        self.db.commit()

    def _row_to_alert(self, row) -> Alert:
        """Convert database row to Alert."""
        return Alert(
            id=row["id"],
            email=row["email"],
            address=row["address"],
            lat=row["lat"],
            lng=row["lng"],
            radius_meters=row["radius_meters"],
            confirm_id=row["confirm_id"],
            confirmed=bool(row["confirmed"]),
            unsubscribed=bool(row["unsubscribed"]),
            last_sent=_to_datetime(row["last_sent"]),
            created_at=_to_datetime(row["created_at"]),
        )


class ApplicationRepository:
    """CRUD operations for planning applications."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, application: Application) -> Application:
        """Create a new application."""
        if application.date_scraped is None:
            application.date_scraped = datetime.now()
        cursor = self.db.connection.cursor()
        cursor.execute(
            """
            INSERT INTO applications
            (address, description, council_reference, lat, lng, date_scraped)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                application.address,
                application.description,
                application.council_reference,
                application.lat,
                application.lng,
                application.date_scraped.isoformat(),
            ),
        )
        self.db.commit()
        application.id = cursor.lastrowid
        return application

    def get_by_id(self, application_id: int) -> Optional[Application]:
        """Get application by ID."""
        cursor = self.db.connection.cursor()
        cursor.execute("SELECT * FROM applications WHERE id = ?", (application_id,))
        row = cursor.fetchone()
        if row is None:
            return None
        return self._row_to_application(row)

    def list_new_for_alert(
        self, alert: Alert, until: Optional[datetime] = None
    ) -> list[Application]:
        """
        Applications matched to the alert since its last digest.

        Args:
            alert: Alert to look up
            until: Ignore matches recorded after this time

        Returns:
            Applications in the order they were matched
        """
        query = """
            SELECT a.* FROM applications a
            JOIN alert_matches m ON a.id = m.application_id
            WHERE m.alert_id = ?
        """
        params: list = [alert.id]
        if alert.last_sent is not None:
            query += " AND m.matched_at > ?"
            params.append(alert.last_sent.isoformat())
        if until is not None:
            query += " AND m.matched_at <= ?"
            params.append(until.isoformat())
        query += " ORDER BY m.matched_at, a.id"

        cursor = self.db.connection.cursor()
        cursor.execute(query, params)
        return [self._row_to_application(row) for row in cursor.fetchall()]

    @staticmethod
    def _row_to_application(row) -> Application:
        """Convert database row to Application."""
        return Application(
            id=row["id"],
            address=row["address"],
            description=row["description"],
            council_reference=row["council_reference"],
            lat=row["lat"],
            lng=row["lng"],
            date_scraped=_to_datetime(row["date_scraped"]),
        )


class CommentRepository:
    """CRUD operations for comments."""

    def __init__(self, db: Database):
        self.db = db

    def create(self, comment: Comment) -> Comment:
        """Create a new comment."""
        if comment.created_at is None:
            comment.created_at = datetime.now()
        cursor = self.db.connection.cursor()
        cursor.execute(
            """
            INSERT INTO comments (application_id, name, text, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (
                comment.application_id,
                comment.name,
                comment.text,
                comment.created_at.isoformat(),
            ),
        )
        self.db.commit()
        comment.id = cursor.lastrowid
        return comment

    def list_for_application(self, application_id: int) -> list[Comment]:
        """List comments on an application, oldest first."""
        cursor = self.db.connection.cursor()
        cursor.execute(
            """
            SELECT * FROM comments
            WHERE application_id = ?
            ORDER BY created_at, id
            """,
            (application_id,),
        )
        return [self._row_to_comment(row) for row in cursor.fetchall()]

    def list_new_for_alert(
        self, alert: Alert, until: Optional[datetime] = None
    ) -> list[tuple[Comment, Application]]:
        """
        Comments posted since the alert's last digest on applications matched to it.

        Args:
            alert: Alert to look up
            until: Ignore comments posted after this time

        Returns:
            List of (comment, application it was posted on) pairs
        """
        query = """
            SELECT c.id AS c_id, c.application_id, c.name, c.text, c.created_at,
                   a.id, a.address, a.description, a.council_reference,
                   a.lat, a.lng, a.date_scraped
            FROM comments c
            JOIN applications a ON a.id = c.application_id
            JOIN alert_matches m ON m.application_id = a.id
            WHERE m.alert_id = ?
        """
        params: list = [alert.id]
        if alert.last_sent is not None:
            query += " AND c.created_at > ?"
            params.append(alert.last_sent.isoformat())
        if until is not None:
            query += " AND c.created_at <= ?"
            params.append(until.isoformat())
        query += " ORDER BY c.created_at, c.id"

        cursor = self.db.connection.cursor()
        cursor.execute(query, params)
        return [
            (
                Comment(
                    id=row["c_id"],
                    application_id=row["application_id"],
                    name=row["name"],
                    text=row["text"],
                    created_at=_to_datetime(row["created_at"]),
                ),
                ApplicationRepository._row_to_application(row),
            )
            for row in cursor.fetchall()
        ]

    def _row_to_comment(self, row) -> Comment:
        """Convert database row to Comment."""
        return Comment(
            id=row["id"],
            application_id=row["application_id"],
            name=row["name"],
            text=row["text"],
            created_at=_to_datetime(row["created_at"]),
        )


class MatchRepository:
    """Alert/application matches recorded by the geographic matcher."""

    def __init__(self, db: Database):
        self.db = db

    def add(
        self,
        alert_id: int,
        application_id: int,
        matched_at: Optional[datetime] = None,
    ) -> AlertMatch:
        """Record that an application falls within an alert's radius."""
        match = AlertMatch(
            alert_id=alert_id,
            application_id=application_id,
            matched_at=matched_at or datetime.now(),
        )
        cursor = self.db.connection.cursor()
        cursor.execute(
            """
            INSERT INTO alert_matches (alert_id, application_id, matched_at)
            VALUES (?, ?, ?)
            """,
            (match.alert_id, match.application_id, match.matched_at.isoformat()),
        )
        self.db.commit()
        match.id = cursor.lastrowid
        return match


class StatRepository(CounterStore):
    """Cumulative counters stored in the stats table."""

    def __init__(self, db: Database):
        self.db = db

    def increment(self, name: str, amount: int = 1) -> None:
        """Add amount to a counter in a single statement."""
        cursor = self.db.connection.cursor()
        cursor.execute(
            """
            INSERT INTO stats (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = value + excluded.value
            """,
            (name, amount),
        )
        self.db.commit()

    def get(self, name: str) -> int:
        """Get a counter value."""
        cursor = self.db.connection.cursor()
        cursor.execute("SELECT value FROM stats WHERE key = ?", (name,))
        row = cursor.fetchone()
        return row["value"] if row else 0
