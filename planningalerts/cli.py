"""
CLI commands for PlanningAlerts.
"""

import argparse
import secrets
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

from planningalerts.app import PlanningAlertsApp
from planningalerts.config import AppConfig, load_config
from planningalerts.database.connection import Database
from planningalerts.database.repository import (
    AlertRepository,
    ApplicationRepository,
    CommentRepository,
    MatchRepository,
    StatRepository,
)
from planningalerts.database.models import Alert, Application, Comment
from planningalerts.digest.composer import DigestComposer
from planningalerts.digest.links import LinkBuilder
from planningalerts.digest.stats import APPLICATIONS_SENT, EMAILS_SENT
from planningalerts.digest.types import ComposedMessage
from planningalerts.main import build_composer

DEFAULT_DB_PATH = "data/planningalerts.db"


def add_alert(
    db: Database,
    email: str,
    address: str,
    lat: float,
    lng: float,
    radius_meters: float,
) -> Alert:
    """Add a new confirmed alert."""
    repo = AlertRepository(db)
    alert = Alert(
        email=email,
        address=address,
        lat=lat,
        lng=lng,
        radius_meters=radius_meters,
        confirm_id=secrets.token_hex(10),
    )
    return repo.create(alert)


def show_stats(db: Database) -> dict:
    """Read the delivery counters."""
    repo = StatRepository(db)
    return {
        EMAILS_SENT: repo.get(EMAILS_SENT),
        APPLICATIONS_SENT: repo.get(APPLICATIONS_SENT),
    }


def preview_composer(
    config: Optional[AppConfig] = None,
    base_url: Optional[str] = None,
) -> DigestComposer:
    """
    Composer used for previews.

    Args:
        config: Loaded configuration supplying the site URL and sender
        base_url: Site URL overriding the configured one

    Returns:
        DigestComposer matching what the digest run would send
    """
    if config is not None:
        composer = build_composer(config)
    else:
        composer = DigestComposer()
    if base_url:
        composer.link_builder = LinkBuilder(base_url)
    return composer


def preview_digest(
    db: Database,
    alert_id: int,
    composer: Optional[DigestComposer] = None,
) -> Optional[ComposedMessage]:
    """Compose the pending digest for an alert without sending it."""
    alert = AlertRepository(db).get_by_id(alert_id)
    if alert is None:
        raise ValueError(f"Alert not found: {alert_id}")

    app = PlanningAlertsApp(
        db=db,
        notifiers=[],
        composer=composer or DigestComposer(),
        dry_run=True,
    )
    return app.build_message(alert)


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="PlanningAlerts CLI")
    parser.add_argument("--config", help="Path to config file (site URL, sender, database)")
    parser.add_argument("--db", help="Database path (defaults to the configured one)")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # Alert commands
    alert_parser = subparsers.add_parser("alert", help="Alert management")
    alert_subparsers = alert_parser.add_subparsers(dest="action")

    add_alert_parser = alert_subparsers.add_parser("add", help="Add alert")
    add_alert_parser.add_argument("--email", required=True, help="Contact email")
    add_alert_parser.add_argument("--address", required=True, help="Street address")
    add_alert_parser.add_argument("--lat", type=float, required=True)
    add_alert_parser.add_argument("--lng", type=float, required=True)
    add_alert_parser.add_argument(
        "--radius", type=float, default=2000, help="Radius in meters"
    )

    alert_subparsers.add_parser("list", help="List alerts")

    unsubscribe_parser = alert_subparsers.add_parser("unsubscribe", help="Unsubscribe alert")
    unsubscribe_parser.add_argument("--alert", type=int, required=True, help="Alert ID")

    # Application commands
    application_parser = subparsers.add_parser("application", help="Application management")
    application_subparsers = application_parser.add_subparsers(dest="action")

    add_application_parser = application_subparsers.add_parser("add", help="Add application")
    add_application_parser.add_argument("--address", required=True)
    add_application_parser.add_argument("--description")
    add_application_parser.add_argument("--reference", help="Council reference")

    # Match commands
    match_parser = subparsers.add_parser("match", help="Alert/application matches")
    match_subparsers = match_parser.add_subparsers(dest="action")

    add_match_parser = match_subparsers.add_parser("add", help="Match application to alert")
    add_match_parser.add_argument("--alert", type=int, required=True, help="Alert ID")
    add_match_parser.add_argument("--application", type=int, required=True)

    # Comment commands
    comment_parser = subparsers.add_parser("comment", help="Comment management")
    comment_subparsers = comment_parser.add_subparsers(dest="action")

    add_comment_parser = comment_subparsers.add_parser("add", help="Add comment")
    add_comment_parser.add_argument("--application", type=int, required=True)
    add_comment_parser.add_argument("--name", required=True)
    add_comment_parser.add_argument("--text", required=True)

    # Stats commands
    stats_parser = subparsers.add_parser("stats", help="Delivery statistics")
    stats_subparsers = stats_parser.add_subparsers(dest="action")
    stats_subparsers.add_parser("show", help="Show counters")

    # Digest commands
    digest_parser = subparsers.add_parser("digest", help="Digest tools")
    digest_subparsers = digest_parser.add_subparsers(dest="action")

    preview_parser = digest_subparsers.add_parser("preview", help="Preview pending digest")
    preview_parser.add_argument("--alert", type=int, required=True, help="Alert ID")
    preview_parser.add_argument("--base-url", help="Override the configured site URL")
    preview_parser.add_argument("--html", action="store_true", help="Print the HTML body")

    # DB commands
    db_parser = subparsers.add_parser("db", help="Database management")
    db_subparsers = db_parser.add_subparsers(dest="action")
    db_subparsers.add_parser("migrate", help="Create missing tables")

    args = parser.parse_args()

    config = load_config(args.config) if args.config else None
    if args.db:
        db_path = args.db
    elif config is not None:
        db_path = config.database.path
    else:
        db_path = DEFAULT_DB_PATH

    db = Database(db_path)
    db.initialize()

    if args.command == "alert":
        if args.action == "add":
            alert = add_alert(
                db,
                email=args.email,
                address=args.address,
                lat=args.lat,
                lng=args.lng,
                radius_meters=args.radius,
            )
            print(f"Created alert with ID: {alert.id}")
        elif args.action == "list":
            for alert in AlertRepository(db).list_all():
                status = "unsubscribed" if alert.unsubscribed else "active"
                print(
                    f"ID: {alert.id}, Email: {alert.email}, Address: {alert.address}, "
                    f"Last sent: {alert.last_sent or 'never'} ({status})"
                )
        elif args.action == "unsubscribe":
            AlertRepository(db).unsubscribe(args.alert)
            print(f"Unsubscribed alert {args.alert}")

    elif args.command == "application":
        if args.action == "add":
            application = ApplicationRepository(db).create(
                Application(
                    address=args.address,
                    description=args.description,
                    council_reference=args.reference,
                )
            )
            print(f"Created application with ID: {application.id}")

    elif args.command == "match":
        if args.action == "add":
            MatchRepository(db).add(args.alert, args.application)
            print(f"Matched application {args.application} to alert {args.alert}")

    elif args.command == "comment":
        if args.action == "add":
            comment = CommentRepository(db).create(
                Comment(application_id=args.application, name=args.name, text=args.text)
            )
            print(f"Created comment with ID: {comment.id}")

    elif args.command == "stats":
        if args.action == "show":
            for name, value in show_stats(db).items():
                print(f"{name}: {value}")

    elif args.command == "digest":
        if args.action == "preview":
            composer = preview_composer(config, base_url=args.base_url)
            message = preview_digest(db, args.alert, composer=composer)
            if message is None:
                print("Nothing new for this alert")
            else:
                print(f"To: {message.recipient}")
                print(f"Subject: {message.subject}")
                print()
                print(message.html_body if args.html else message.text_body)

    elif args.command == "db":
        if args.action == "migrate":
            db.initialize()
            print("Migrations applied")

    db.close()


if __name__ == "__main__":
    main()
