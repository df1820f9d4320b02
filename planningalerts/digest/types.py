"""
Digest value types and errors.
"""

from dataclasses import dataclass
from typing import Any, Optional


class DigestError(Exception):
    """Base class for digest composition errors."""

    pass


class InvalidInputError(DigestError):
    """Raised when a digest cannot be composed from the given records."""

    pass


class RenderingInconsistencyError(DigestError):
    """Raised when the text and HTML renderings disagree."""

    pass


@dataclass(frozen=True)
class ApplicationSummary:
    """Planning application as shown in a digest."""

    id: Optional[int]
    address: str
    description: Optional[str] = None
    council_reference: Optional[str] = None

    @classmethod
    def from_record(cls, record: Any) -> "ApplicationSummary":
        """
        Adapt any application-like record.

        Args:
            record: Object exposing id and address, and optionally
                description and council_reference

        Returns:
            ApplicationSummary with the record's values
        """
        return cls(
            id=getattr(record, "id", None),
            address=getattr(record, "address", None),
            description=getattr(record, "description", None),
            council_reference=getattr(record, "council_reference", None),
        )


@dataclass(frozen=True)
class CommentSummary:
    """New comment on a previously matched application."""

    id: Optional[int]
    name: Optional[str]
    text: Optional[str]
    application: Optional[ApplicationSummary]

    @classmethod
    def from_record(cls, record: Any, application: Any) -> "CommentSummary":
        """
        Adapt a comment record and the application it was posted on.

        Args:
            record: Object exposing id, name and text
            application: Application record or ApplicationSummary

        Returns:
            CommentSummary referencing an ApplicationSummary
        """
        if application is not None and not isinstance(application, ApplicationSummary):
            application = ApplicationSummary.from_record(application)
        return cls(
            id=getattr(record, "id", None),
            name=getattr(record, "name", None),
            text=getattr(record, "text", None),
            application=application,
        )


@dataclass(frozen=True)
class ComposedMessage:
    """A fully rendered digest ready to hand to a transport."""

    recipient: str
    sender: str
    sender_name: str
    subject: str
    text_body: str
    html_body: str
    links: tuple[tuple[int, str], ...] = ()
    application_count: int = 0
    comment_count: int = 0

    @property
    def parts(self) -> list[tuple[str, str]]:
        """Content parts in transport order: plain text, then HTML."""
        return [
            ("text/plain", self.text_body),
            ("text/html", self.html_body),
        ]
