"""
Main application entry point.
"""

import logging

from dotenv import load_dotenv

load_dotenv()

from planningalerts.app import PlanningAlertsApp
from planningalerts.config import AppConfig, load_config
from planningalerts.database.connection import Database
from planningalerts.digest.composer import DigestComposer
from planningalerts.digest.links import LinkBuilder
from planningalerts.notifiers.base import Notifier, NotifierFactory

logger = logging.getLogger(__name__)


def build_composer(config: AppConfig) -> DigestComposer:
    """Create a composer from site settings."""
    return DigestComposer(
        link_builder=LinkBuilder(config.site.base_url),
        sender=config.site.sender_email,
        sender_name=config.site.sender_name,
    )


def build_notifiers(config: AppConfig) -> list[Notifier]:
    """Create the enabled transports."""
    return [NotifierFactory.create(c) for c in config.notifier_configs()]


def main():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="PlanningAlerts digest sender")
    parser.add_argument(
        "--config", default="config.yaml", help="Path to config file"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument(
        "--dry-run", action="store_true", help="Compose digests without sending them"
    )

    args = parser.parse_args()

    config = load_config(args.config)

    log_level = logging.DEBUG if args.debug else config.advanced.log_level.upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    db = Database(config.database.path)
    db.initialize()

    app = PlanningAlertsApp(
        db=db,
        notifiers=build_notifiers(config),
        composer=build_composer(config),
        dry_run=args.dry_run,
    )

    if args.dry_run:
        logger.info("Dry run mode - no digests will be sent")
    app.run_digests()

    db.close()


if __name__ == "__main__":
    main()
