#!/usr/bin/env python3
"""Send a test notification to the configured notification webhook.

Uses the same delivery path as real alerts, so it verifies that the
webhook is reachable. Without NOTIFICATION_WEBHOOK_URL (or a webhook in
the config file) the notification is only logged.

Usage:
    # Preview only, no send
    python scripts/send_test_alert.py --dry-run

    # Send the generic test notification
    python scripts/send_test_alert.py

    # Send a formatted alert for a synthetic earthquake
    python scripts/send_test_alert.py --magnitude 6.2 --distance 42

Environment:
    CONFIG_PATH: Path to config file (default: environment variables)
    NOTIFICATION_WEBHOOK_URL: Webhook receiving notifications
"""

import argparse
import logging
import os
import sys
from datetime import datetime, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.earthquake import Earthquake, to_millis
from src.core.formatter import format_notification, format_test_notification
from src.shell.config_loader import load_config, load_config_from_env
from src.shell.notification_client import NotificationClient

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_test_earthquake(
    magnitude: float,
    region: str,
    latitude: float,
    longitude: float,
    distance_km: float | None,
) -> Earthquake:
    """Create a synthetic test earthquake."""
    now = datetime.now(timezone.utc)
    return Earthquake(
        id="test-earthquake-" + now.strftime("%Y%m%d%H%M%S"),
        occurred_at=to_millis(now),
        magnitude=magnitude,
        depth_km=10.0,
        latitude=latitude,
        longitude=longitude,
        region=region,
        tsunami_potential="Tidak berpotensi tsunami",
        distance_km=distance_km,
    )


def main():
    parser = argparse.ArgumentParser(description="Send a test notification")
    parser.add_argument(
        "--magnitude",
        type=float,
        default=None,
        help="Send a formatted alert for a synthetic earthquake of this magnitude",
    )
    parser.add_argument(
        "--region",
        type=str,
        default="Pusat gempa berada di laut 25 km BaratDaya Kab. Sukabumi",
        help="Region label of the synthetic earthquake",
    )
    parser.add_argument("--latitude", type=float, default=-7.2, help="Epicenter latitude")
    parser.add_argument("--longitude", type=float, default=106.6, help="Epicenter longitude")
    parser.add_argument(
        "--distance",
        type=float,
        default=None,
        help="Distance from the user in km shown in the alert",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print what would be sent without actually sending",
    )
    args = parser.parse_args()

    config_path = os.environ.get("CONFIG_PATH")
    config = load_config(config_path) if config_path else load_config_from_env()

    if args.magnitude is None:
        notification = format_test_notification()
    else:
        notification = format_notification(create_test_earthquake(
            magnitude=args.magnitude,
            region=args.region,
            latitude=args.latitude,
            longitude=args.longitude,
            distance_km=args.distance,
        ))

    logger.info("Title: %s", notification.title)
    for line in notification.body.splitlines():
        logger.info("  %s", line)

    if args.dry_run:
        logger.info("DRY RUN - nothing sent")
        return 0

    webhook = config.client.notification_webhook_url
    if not webhook:
        logger.warning("No notification webhook configured, logging only")

    client = NotificationClient(webhook, timeout=config.client.request_timeout_seconds)
    response = client.send(notification)

    if response.success:
        logger.info("✓ Test notification sent")
        return 0

    logger.error("✗ Failed to send test notification: %s", response.error)
    return 1


if __name__ == "__main__":
    sys.exit(main())
