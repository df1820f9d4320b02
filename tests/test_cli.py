"""
CLI helper tests.
"""

import pytest

from planningalerts.cli import add_alert, preview_composer, preview_digest, show_stats
from planningalerts.config import load_config
from planningalerts.database.models import Application
from planningalerts.database.repository import (
    AlertRepository,
    ApplicationRepository,
    MatchRepository,
)


class TestCliHelpers:
    """Test the functions behind the management commands."""

    def test_add_alert(self, db):
        """Should create a confirmed alert with an unsubscribe token."""
        alert = add_alert(db, "a@example.com", "1 Main St", 1.0, 2.0, 2000)

        stored = AlertRepository(db).get_by_id(alert.id)
        assert stored.email == "a@example.com"
        assert stored.confirmed is True
        assert stored.confirm_id

    def test_show_stats_empty(self, db):
        """Should report zero counters on a fresh database."""
        assert show_stats(db) == {"emails_sent": 0, "applications_sent": 0}

    def test_preview_digest(self, db):
        """Should compose the pending digest without recording it."""
        alert = add_alert(db, "a@example.com", "1 Main St", 1.0, 2.0, 2000)
        application = ApplicationRepository(db).create(Application(address="5 High St"))
        MatchRepository(db).add(alert.id, application.id)

        composer = preview_composer(base_url="https://example.org")
        message = preview_digest(db, alert.id, composer=composer)

        assert message.subject == "1 new planning application near 1 Main St"
        assert "https://example.org/applications/" in message.text_body
        assert show_stats(db)["emails_sent"] == 0
        assert AlertRepository(db).get_by_id(alert.id).last_sent is None

    def test_preview_nothing_new(self, db):
        """Should return None when nothing is pending."""
        alert = add_alert(db, "a@example.com", "1 Main St", 1.0, 2.0, 2000)
        assert preview_digest(db, alert.id) is None

    def test_preview_unknown_alert(self, db):
        """Should raise for an unknown alert."""
        with pytest.raises(ValueError, match="Alert not found"):
            preview_digest(db, 42)

    def test_preview_uses_configured_sender(self, db, tmp_path):
        """Should preview with the configured site URL and sender."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "site:\n"
            "  base_url: https://www.planningalerts.org.au\n"
            "  sender_email: alerts@example.org\n"
            "  sender_name: Example Alerts\n"
        )
        alert = add_alert(db, "a@example.com", "1 Main St", 1.0, 2.0, 2000)
        application = ApplicationRepository(db).create(Application(address="5 High St"))
        MatchRepository(db).add(alert.id, application.id)

        composer = preview_composer(load_config(str(path)))
        message = preview_digest(db, alert.id, composer=composer)

        assert message.sender == "alerts@example.org"
        assert message.sender_name == "Example Alerts"
        assert "https://www.planningalerts.org.au/applications/" in message.text_body

    def test_preview_base_url_overrides_config(self, tmp_path):
        """Should let --base-url replace the configured site URL."""
        path = tmp_path / "config.yaml"
        path.write_text("site:\n  sender_email: alerts@example.org\n")

        composer = preview_composer(load_config(str(path)), base_url="https://staging.example.org")

        assert composer.sender == "alerts@example.org"
        assert composer.link_builder.build_link(1).startswith("https://staging.example.org/")
