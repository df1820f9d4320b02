"""
SQLite database connection and schema management.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional


class Database:
    """SQLite database connection manager."""

    def __init__(self, db_path: str):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:" for in-memory DB.
        """
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None
        self._transaction_depth = 0
        self._connect()

    def _connect(self) -> None:
        """Establish database connection."""
        if self.db_path != ":memory:":
            # Ensure parent directory exists
            path = Path(self.db_path)
            path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = sqlite3.connect(self.db_path)
        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA foreign_keys = ON")

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the database connection."""
        if self._connection is None:
            raise sqlite3.ProgrammingError("Database connection is closed")
        return self._connection

    def initialize(self) -> None:
        """Create database schema if it doesn't exist."""
        cursor = self.connection.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS alerts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT NOT NULL,
                address TEXT NOT NULL,
                lat REAL NOT NULL,
                lng REAL NOT NULL,
                radius_meters REAL NOT NULL,
                confirm_id TEXT UNIQUE,
                confirmed INTEGER NOT NULL DEFAULT 1,
                unsubscribed INTEGER NOT NULL DEFAULT 0,
                last_sent TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS applications (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                address TEXT NOT NULL,
                description TEXT,
                council_reference TEXT,
                lat REAL,
                lng REAL,
                date_scraped TIMESTAMP NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS comments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                application_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                text TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL,
                FOREIGN KEY (application_id) REFERENCES applications(id) ON DELETE CASCADE
            )
        """)

        # Written by the geographic matcher, read when building digests
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS alert_matches (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                alert_id INTEGER NOT NULL,
                application_id INTEGER NOT NULL,
                matched_at TIMESTAMP NOT NULL,
                FOREIGN KEY (alert_id) REFERENCES alerts(id) ON DELETE CASCADE,
                FOREIGN KEY (application_id) REFERENCES applications(id) ON DELETE CASCADE,
                UNIQUE (alert_id, application_id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS stats (
                key TEXT PRIMARY KEY,
                value INTEGER NOT NULL DEFAULT 0
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_comments_application ON comments(application_id)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_alert_matches_alert
            ON alert_matches(alert_id, matched_at)
        """)

        self.connection.commit()

    def commit(self) -> None:
        """Commit pending writes unless a transaction() block is open."""
        if self._transaction_depth == 0:
            self.connection.commit()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Group repository writes into a single commit.

        Writes made inside the block are committed together when it exits,
        or rolled back if it raises.
        """
        self._transaction_depth += 1
        try:
            yield self.connection
        except BaseException:
            self._transaction_depth -= 1
            if self._transaction_depth == 0:
                self.connection.rollback()
            raise
        self._transaction_depth -= 1
        if self._transaction_depth == 0:
            self.connection.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
