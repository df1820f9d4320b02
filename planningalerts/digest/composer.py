"""
Digest composition: subject line, plain text and HTML bodies.

Both bodies are rendered from a single DigestFacts value so that they
always describe the same applications and comments in the same order.
"""

import logging
from dataclasses import dataclass
from html import escape
from typing import Any, Optional, Sequence

from .links import LinkBuilder
from .types import (
    ApplicationSummary,
    CommentSummary,
    ComposedMessage,
    InvalidInputError,
    RenderingInconsistencyError,
)

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "contact@planningalerts.org.au"
DEFAULT_SENDER_NAME = "PlanningAlerts.org.au"

HTML_STYLE = """\
body { font-family: Arial, sans-serif; margin: 0; padding: 20px; color: #333; }
h2 { font-size: 18px; border-bottom: 1px solid #ddd; }
.application, .comment { margin-bottom: 20px; }
.address a { font-weight: bold; color: #2a6ebb; }
.reference, .footer { color: #888; font-size: 12px; }"""


def _count_phrase(count: int, noun: str) -> str:
    """'1 new comment', '2 new comments'."""
    if count == 1:
        return f"{count} {noun}"
    return f"{count} {noun}s"


def digest_subject(comment_count: int, application_count: int, address: str) -> str:
    """
    Build the digest subject line.

    The comment clause always comes first. On its own it reads
    "on planning applications"; alongside applications that wording is
    dropped.

    Args:
        comment_count: Number of new comments
        application_count: Number of new applications
        address: The alert's address

    Returns:
        Subject line
    """
    comments = _count_phrase(comment_count, "new comment")
    applications = _count_phrase(application_count, "new planning application")

    if comment_count and application_count:
        lead = f"{comments} and {applications}"
    elif comment_count:
        lead = f"{comments} on planning applications"
    else:
        lead = applications

    return f"{lead} near {address}"


def radius_in_words(radius_meters: float) -> str:
    """Format a search radius, e.g. '800 m' or '1.5 km'."""
    meters = int(round(radius_meters))
    if meters < 1000:
        return f"{meters} m"
    return f"{round(meters / 1000, 1):g} km"


@dataclass(frozen=True)
class ApplicationLine:
    """Application resolved to display strings."""

    application_id: int
    address: str
    description: Optional[str]
    council_reference: Optional[str]
    url: str


@dataclass(frozen=True)
class CommentLine:
    """Comment resolved to display strings."""

    application_id: int
    name: str
    text: str
    application_address: str
    url: str


@dataclass(frozen=True)
class DigestFacts:
    """Everything either body shows, in display order."""

    recipient: str
    subject: str
    alert_address: str
    radius: str
    applications: tuple[ApplicationLine, ...]
    comments: tuple[CommentLine, ...]
    unsubscribe_url: Optional[str] = None


class DigestComposer:
    """Composes digest messages for alerts."""

    def __init__(
        self,
        link_builder: Optional[LinkBuilder] = None,
        sender: str = DEFAULT_SENDER,
        sender_name: str = DEFAULT_SENDER_NAME,
    ):
        """
        Initialize composer.

        Args:
            link_builder: Builds tracked application URLs
            sender: From address of every digest
            sender_name: Display name for the From header
        """
        self.link_builder = link_builder or LinkBuilder()
        self.sender = sender
        self.sender_name = sender_name

    def compose(
        self,
        alert: Any,
        applications: Sequence[Any],
        comments: Sequence[Any] = (),
    ) -> ComposedMessage:
        """
        Compose a digest for an alert.

        Args:
            alert: Alert with email, address and radius_meters
            applications: New applications (ApplicationSummary or records)
            comments: New comments (CommentSummary or records)

        Returns:
            ComposedMessage with subject and both bodies

        Raises:
            InvalidInputError: If there is nothing to send or a record
                lacks a field needed for rendering
            RenderingInconsistencyError: If the bodies disagree
        """
        facts = self.build_facts(alert, applications, comments)

        text_entries = self._text_entries(facts)
        html_entries = self._html_entries(facts)
        for kind in ("applications", "comments"):
            expected = len(getattr(facts, kind))
            if not (len(text_entries[kind]) == len(html_entries[kind]) == expected):
                raise RenderingInconsistencyError(
                    f"Rendered {kind} disagree: {len(text_entries[kind])} text, "
                    f"{len(html_entries[kind])} html, {expected} expected"
                )

        links = tuple(
            (line.application_id, line.url)
            for line in (*facts.applications, *facts.comments)
        )

        logger.debug(f"Composed digest for {facts.recipient}: {facts.subject}")

        return ComposedMessage(
            recipient=facts.recipient,
            sender=self.sender,
            sender_name=self.sender_name,
            subject=facts.subject,
            text_body=self._text_body(facts, text_entries),
            html_body=self._html_body(facts, html_entries),
            links=links,
            application_count=len(facts.applications),
            comment_count=len(facts.comments),
        )

    def build_facts(
        self,
        alert: Any,
        applications: Sequence[Any],
        comments: Sequence[Any],
    ) -> DigestFacts:
        """Validate input and resolve it to display strings."""
        apps = [
            a if isinstance(a, ApplicationSummary) else ApplicationSummary.from_record(a)
            for a in applications
        ]
        notes = [
            c if isinstance(c, CommentSummary)
            else CommentSummary.from_record(c, getattr(c, "application", None))
            for c in comments
        ]

        if not apps and not notes:
            raise InvalidInputError("No new applications or comments to send")

        for app in apps:
            self._check_application(app)
        for note in notes:
            if note.application is None:
                raise InvalidInputError(f"Comment {note.id} has no application")
            if not note.name:
                raise InvalidInputError(f"Comment {note.id} has no commenter name")
            if not note.text:
                raise InvalidInputError(f"Comment {note.id} has no text")
            self._check_application(note.application)

        unsubscribe_url = None
        confirm_id = getattr(alert, "confirm_id", None)
        if confirm_id:
            unsubscribe_url = self.link_builder.unsubscribe_link(confirm_id)

        return DigestFacts(
            recipient=alert.email,
            subject=digest_subject(len(notes), len(apps), alert.address),
            alert_address=alert.address,
            radius=radius_in_words(alert.radius_meters),
            applications=tuple(
                ApplicationLine(
                    application_id=app.id,
                    address=app.address,
                    description=app.description or None,
                    council_reference=app.council_reference or None,
                    url=self.link_builder.build_link(app.id),
                )
                for app in apps
            ),
            comments=tuple(
                CommentLine(
                    application_id=note.application.id,
                    name=note.name,
                    text=note.text,
                    application_address=note.application.address,
                    url=self.link_builder.build_link(note.application.id),
                )
                for note in notes
            ),
            unsubscribe_url=unsubscribe_url,
        )

    @staticmethod
    def _check_application(app: ApplicationSummary) -> None:
        if app.id is None:
            raise InvalidInputError(f"Application at {app.address!r} has no id")
        if not app.address:
            raise InvalidInputError(f"Application {app.id} has no address")

    # Plain text

    def _text_entries(self, facts: DigestFacts) -> dict[str, list[str]]:
        applications = []
        for line in facts.applications:
            rows = [line.address]
            if line.description:
                rows.append(line.description)
            if line.council_reference:
                rows.append(f"Council reference: {line.council_reference}")
            rows.append(line.url)
            applications.append("\n".join(rows))

        comments = [
            f"{line.name} commented on {line.application_address}:\n"
            f"\"{line.text}\"\n"
            f"{line.url}"
            for line in facts.comments
        ]

        return {"applications": applications, "comments": comments}

    def _text_body(self, facts: DigestFacts, entries: dict[str, list[str]]) -> str:
        sections = []
        if entries["applications"]:
            sections.append(_text_section("New planning applications", entries["applications"]))
        if entries["comments"]:
            sections.append(_text_section("New comments", entries["comments"]))

        footer = [
            "--",
            "You are receiving this email because you created an alert for "
            f"{facts.alert_address} within {facts.radius}.",
        ]
        if facts.unsubscribe_url:
            footer.append(f"To unsubscribe: {facts.unsubscribe_url}")
        sections.append("\n".join(footer))

        return "\n\n".join(sections) + "\n"

    # HTML

    def _html_entries(self, facts: DigestFacts) -> dict[str, list[str]]:
        applications = []
        for line in facts.applications:
            rows = [
                '<div class="application">',
                f'<p class="address"><a href="{escape(line.url)}">{escape(line.address)}</a></p>',
            ]
            if line.description:
                rows.append(f'<p class="description">{escape(line.description)}</p>')
            if line.council_reference:
                rows.append(
                    f'<p class="reference">Council reference: {escape(line.council_reference)}</p>'
                )
            rows.append("</div>")
            applications.append("\n".join(rows))

        comments = [
            "\n".join([
                '<div class="comment">',
                f'<p class="commenter">{escape(line.name)} commented on '
                f'<a href="{escape(line.url)}">{escape(line.application_address)}</a></p>',
                f"<blockquote>{escape(line.text)}</blockquote>",
                "</div>",
            ])
            for line in facts.comments
        ]

        return {"applications": applications, "comments": comments}

    def _html_body(self, facts: DigestFacts, entries: dict[str, list[str]]) -> str:
        rows = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '<meta charset="utf-8">',
            f"<title>{escape(facts.subject)}</title>",
            "<style>",
            HTML_STYLE,
            "</style>",
            "</head>",
            "<body>",
        ]
        if entries["applications"]:
            rows.append("<h2>New planning applications</h2>")
            rows.extend(entries["applications"])
        if entries["comments"]:
            rows.append("<h2>New comments</h2>")
            rows.extend(entries["comments"])

        rows.append(
            '<p class="footer">You are receiving this email because you created an alert for '
            f"{escape(facts.alert_address)} within {escape(facts.radius)}.</p>"
        )
        if facts.unsubscribe_url:
            rows.append(
                f'<p class="footer"><a href="{escape(facts.unsubscribe_url)}">Unsubscribe</a></p>'
            )
        rows.extend(["</body>", "</html>"])

        return "\n".join(rows) + "\n"


def _text_section(title: str, entries: list[str]) -> str:
    heading = title.upper()
    return "\n".join([heading, "=" * len(heading), ""]) + "\n" + "\n\n".join(entries)
