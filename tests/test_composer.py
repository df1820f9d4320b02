"""
Digest composer tests.
Tests for subject wording, golden bodies and link rendering.
"""

import re
from types import SimpleNamespace

import pytest

from planningalerts.digest.composer import (
    DigestComposer,
    digest_subject,
    radius_in_words,
)
from planningalerts.digest.links import LinkBuilder
from planningalerts.digest.types import (
    ApplicationSummary,
    CommentSummary,
    InvalidInputError,
    RenderingInconsistencyError,
)


@pytest.fixture
def composer():
    """Composer using the development site URL."""
    return DigestComposer(link_builder=LinkBuilder("http://dev.planningalerts.org.au"))


def contains_link(html: str, url: str, text: str) -> bool:
    """Whether html has an anchor to url (ampersands escaped) showing text."""
    href = re.escape(url.replace("&", "&amp;"))
    return re.search(f'<a href="{href}"[^>]*>{re.escape(text)}</a>', html) is not None


class TestDigestSubject:
    """Test subject line wording."""

    def test_one_comment(self, composer, alert, c1):
        """Should use the singular in the comment line."""
        email = composer.compose(alert, [], [c1])
        assert email.subject == f"1 new comment on planning applications near {alert.address}"

    def test_two_comments(self, composer, alert, c1, c2):
        """Should use the plural in the comment line."""
        email = composer.compose(alert, [], [c1, c2])
        assert email.subject == f"2 new comments on planning applications near {alert.address}"

    def test_comment_and_applications(self, composer, alert, a1, a2, c1):
        """Should mention comments first, then applications."""
        email = composer.compose(alert, [a1, a2], [c1])
        assert email.subject == (
            f"1 new comment and 2 new planning applications near {alert.address}"
        )

    def test_one_application(self, composer, alert, a1):
        """Should use the singular (application) in the subject line."""
        email = composer.compose(alert, [a1])
        assert email.subject == f"1 new planning application near {alert.address}"

    def test_two_applications(self, composer, alert, a1, a2):
        """Should have a sensible subject line."""
        email = composer.compose(alert, [a1, a2])
        assert email.subject == f"2 new planning applications near {alert.address}"

    @pytest.mark.parametrize(
        "comments,applications,expected",
        [
            (1, 0, "1 new comment on planning applications near X"),
            (3, 0, "3 new comments on planning applications near X"),
            (0, 1, "1 new planning application near X"),
            (0, 12, "12 new planning applications near X"),
            (1, 1, "1 new comment and 1 new planning application near X"),
            (2, 1, "2 new comments and 1 new planning application near X"),
            (5, 7, "5 new comments and 7 new planning applications near X"),
        ],
    )
    def test_subject_grammar(self, comments, applications, expected):
        """Should switch between singular and plural at a count of one."""
        assert digest_subject(comments, applications, "X") == expected


class TestTwoApplicationDigest:
    """Test a digest with two new planning applications."""

    @pytest.fixture
    def email(self, composer, alert, a1, a2):
        return composer.compose(alert, [a1, a2])

    def test_sent_to_alert_email(self, email, alert):
        """Should be sent to the user's email address."""
        assert email.recipient == alert.email

    def test_sent_from_main_address(self, email):
        """Should be from the main planningalerts email address."""
        assert email.sender == "contact@planningalerts.org.au"
        assert email.sender_name == "PlanningAlerts.org.au"

    def test_two_parts_plain_first(self, email):
        """Should be a multipart email with plain text before HTML."""
        assert len(email.parts) == 2
        assert [content_type for content_type, _ in email.parts] == ["text/plain", "text/html"]

    def test_text_layout(self, email, regression_dir):
        """Should nicely format a list of multiple planning applications."""
        assert email.text_body == (regression_dir / "email1.txt").read_text()

    def test_html_layout(self, email, regression_dir):
        """Should have a specific layout."""
        assert email.html_body == (regression_dir / "email1.html").read_text()

    def test_html_contains_links(self, email):
        """Should contain links to the applications."""
        assert contains_link(
            email.html_body,
            "http://dev.planningalerts.org.au/applications/1?utm_medium=email&utm_source=alerts",
            "Foo Street, Bar",
        )
        assert contains_link(
            email.html_body,
            "http://dev.planningalerts.org.au/applications/2?utm_medium=email&utm_source=alerts",
            "Bar Street, Foo",
        )

    def test_html_contains_descriptions(self, email):
        """Should contain application descriptions."""
        assert "Knock something down" in email.html_body
        assert "Put something up" in email.html_body

    def test_text_has_no_markup(self, email):
        """Should show addresses and descriptions as plain text."""
        assert "Foo Street, Bar" in email.text_body
        assert "Knock something down" in email.text_body
        assert "<" not in email.text_body
        assert "&amp;" not in email.text_body

    def test_links_match_link_builder(self, email, composer):
        """Should record the tracked link of every application."""
        assert email.links == (
            (1, composer.link_builder.build_link(1)),
            (2, composer.link_builder.build_link(2)),
        )

    def test_counts(self, email):
        """Should report how many applications and comments it covers."""
        assert email.application_count == 2
        assert email.comment_count == 0


class TestMixedDigest:
    """Test a digest with comments and applications."""

    def test_text_layout(self, composer, alert, a1, a2, c1, regression_dir):
        """Should nicely format (in text) a list of multiple planning applications."""
        email = composer.compose(alert, [a1, a2], [c1])
        assert email.text_body == (regression_dir / "email2.txt").read_text()

    def test_comment_links_to_its_application(self, composer, alert, c1):
        """Should link the commented application's address."""
        email = composer.compose(alert, [], [c1])
        assert contains_link(
            email.html_body,
            "http://dev.planningalerts.org.au/applications/3?utm_medium=email&utm_source=alerts",
            "2 Foo Parade, Glenbrook NSW 2773",
        )
        assert "I think this is a great idea" in email.html_body
        assert "Matthew Landauer" in email.text_body

    def test_comments_only_has_no_application_section(self, composer, alert, c1):
        """Should leave out the applications heading when there are none."""
        email = composer.compose(alert, [], [c1])
        assert "NEW PLANNING APPLICATIONS" not in email.text_body
        assert "New planning applications" not in email.html_body
        assert "NEW COMMENTS" in email.text_body


class TestComposerBehaviour:
    """Test purity, escaping and optional fields."""

    def test_idempotent(self, composer, alert, a1, a2, c1):
        """Should give identical output for identical input."""
        first = composer.compose(alert, [a1, a2], [c1])
        second = composer.compose(alert, [a1, a2], [c1])
        assert first == second

    def test_does_not_touch_alert(self, composer, alert, a1):
        """Should leave the alert's watermark alone."""
        composer.compose(alert, [a1])
        assert alert.last_sent is None

    def test_optional_fields_omitted(self, composer, alert, a3):
        """Should skip missing description and council reference."""
        email = composer.compose(alert, [a3])
        assert "Council reference" not in email.text_body
        assert 'class="description"' not in email.html_body

    def test_html_escaping(self, composer, alert):
        """Should escape markup in record text."""
        app = ApplicationSummary(id=9, address="1 <Main> St", description="Cafe & bar")
        email = composer.compose(alert, [app])
        assert "1 &lt;Main&gt; St" in email.html_body
        assert "Cafe &amp; bar" in email.html_body
        assert "1 <Main> St" in email.text_body

    def test_no_unsubscribe_without_confirm_id(self, composer, alert, a1):
        """Should omit the unsubscribe link when the alert has no token."""
        alert.confirm_id = None
        email = composer.compose(alert, [a1])
        assert "unsubscribe" not in email.text_body.lower()

    def test_adapts_plain_records(self, composer, alert):
        """Should accept any records exposing the summary fields."""
        application = SimpleNamespace(id=4, address="5 High St", description="Shed")
        comment = SimpleNamespace(id=8, name="Sam", text="Fine by me", application=application)
        email = composer.compose(alert, [application], [comment])
        assert email.subject == f"1 new comment and 1 new planning application near {alert.address}"
        assert "5 High St" in email.text_body

    def test_custom_sender(self, alert, a1):
        """Should use the configured sender."""
        composer = DigestComposer(sender="alerts@example.org", sender_name="Example")
        email = composer.compose(alert, [a1])
        assert email.sender == "alerts@example.org"
        assert email.sender_name == "Example"


class TestInvalidInput:
    """Test composition errors."""

    def test_nothing_new(self, composer, alert):
        """Should refuse to compose an empty digest."""
        with pytest.raises(InvalidInputError):
            composer.compose(alert, [], [])

    def test_application_without_id(self, composer, alert):
        """Should reject an application that cannot be linked."""
        with pytest.raises(InvalidInputError, match="no id"):
            composer.compose(alert, [ApplicationSummary(id=None, address="1 Main St")])

    def test_application_without_address(self, composer, alert):
        """Should reject an application without an address."""
        with pytest.raises(InvalidInputError, match="no address"):
            composer.compose(alert, [ApplicationSummary(id=1, address="")])

    def test_comment_without_application(self, composer, alert):
        """Should reject a comment that is not attached to an application."""
        comment = CommentSummary(id=1, name="A", text="B", application=None)
        with pytest.raises(InvalidInputError):
            composer.compose(alert, [], [comment])

    def test_comment_without_name(self, composer, alert, a3):
        """Should reject a comment record with no commenter name."""
        record = SimpleNamespace(id=7, text="Too tall")
        comment = CommentSummary.from_record(record, a3)
        with pytest.raises(InvalidInputError, match="no commenter name"):
            composer.compose(alert, [], [comment])

    def test_comment_without_text(self, composer, alert, a3):
        """Should reject a comment with an empty body."""
        comment = CommentSummary(id=8, name="Jane Citizen", text="", application=a3)
        with pytest.raises(InvalidInputError, match="no text"):
            composer.compose(alert, [], [comment])

    def test_inconsistent_rendering(self, composer, alert, a1, monkeypatch):
        """Should fail loudly if the two bodies disagree."""
        original = composer._html_entries

        def drop_one(facts):
            entries = original(facts)
            entries["applications"] = entries["applications"][:-1]
            return entries

        monkeypatch.setattr(composer, "_html_entries", drop_one)
        with pytest.raises(RenderingInconsistencyError):
            composer.compose(alert, [a1])


class TestRadiusInWords:
    """Test radius formatting."""

    @pytest.mark.parametrize(
        "meters,expected",
        [
            (200, "200 m"),
            (800, "800 m"),
            (999.4, "999 m"),
            (999.6, "1 km"),
            (1000, "1 km"),
            (1500, "1.5 km"),
            (2000, "2 km"),
        ],
    )
    def test_radius(self, meters, expected):
        """Should use metres below a kilometre."""
        assert radius_in_words(meters) == expected
