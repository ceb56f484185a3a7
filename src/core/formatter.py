"""Notification formatting - Pure functions.

This module formats earthquake data into user-facing notifications.
All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import timedelta, timezone
from typing import Any

from src.core.earthquake import Earthquake

# WIB (Western Indonesia Time) is UTC+7
WIB = timezone(timedelta(hours=7), name="WIB")

# Notifications for strong earthquakes stay on screen until dismissed
REQUIRE_INTERACTION_MAGNITUDE = 6.0

TEST_NOTIFICATION_TAG = "test-notification"


@dataclass(frozen=True)
class Notification:
    """A user-facing notification.

    Attributes:
        title: Short headline
        body: Multi-line details
        tag: Identifier used by the delivery mechanism to collapse repeats
        require_interaction: Keep the notification until dismissed
        earthquake_id: Source earthquake ID, None for test notifications
    """
    title: str
    body: str
    tag: str
    require_interaction: bool = False
    earthquake_id: str | None = None


def get_magnitude_emoji(magnitude: float) -> str:
    """Get an emoji representing earthquake severity.

    Pure function.
    """
    if magnitude >= 7.0:
        return "🚨"  # Major
    elif magnitude >= 6.0:
        return "⚠️"  # Strong
    elif magnitude >= 5.0:
        return "🔶"  # Moderate
    else:
        return "🔸"  # Light


def format_magnitude(magnitude: float) -> str:
    """Format magnitude with one decimal place."""
    return f"{magnitude:.1f}"


def format_earthquake_summary(earthquake: Earthquake) -> str:
    """Format a one-line summary of an earthquake.

    Pure function.

    Args:
        earthquake: Earthquake to summarize

    Returns:
        One-line summary string
    """
    local_time = earthquake.time.astimezone(WIB)
    time_str = local_time.strftime("%Y-%m-%d %H:%M:%S WIB")
    return (
        f"M{format_magnitude(earthquake.magnitude)} - {earthquake.region} "
        f"at {time_str} (depth: {earthquake.depth_km:.0f}km)"
    )


def format_notification(earthquake: Earthquake) -> Notification:
    """Format an earthquake alert notification.

    Pure function.

    Args:
        earthquake: Earthquake to notify about, ideally with distance_km

    Returns:
        Notification ready for delivery
    """
    lines = [
        earthquake.region,
        f"Kedalaman: {earthquake.depth_km:.0f}km",
    ]
    if earthquake.distance_km is not None:
        lines.append(f"Jarak: {earthquake.distance_km:.1f}km dari Anda")
    if earthquake.tsunami_potential:
        lines.append(earthquake.tsunami_potential)

    return Notification(
        title=(
            f"{get_magnitude_emoji(earthquake.magnitude)} "
            f"Gempa M{format_magnitude(earthquake.magnitude)}"
        ),
        body="\n".join(lines),
        tag=earthquake.id,
        require_interaction=earthquake.magnitude >= REQUIRE_INTERACTION_MAGNITUDE,
        earthquake_id=earthquake.id,
    )


def format_test_notification() -> Notification:
    """Format the notification used to verify delivery works.

    Pure function.
    """
    return Notification(
        title="🧪 Test Notifikasi Gempa",
        body="Notifikasi berhasil! Anda akan menerima peringatan gempa di area Anda.",
        tag=TEST_NOTIFICATION_TAG,
    )


def format_webhook_payload(notification: Notification) -> dict[str, Any]:
    """Format a notification as a JSON webhook payload.

    Pure function. The `text` field makes the payload readable by
    Slack-compatible webhooks.
    """
    return {
        "text": f"{notification.title}\n{notification.body}",
        "title": notification.title,
        "body": notification.body,
        "tag": notification.tag,
        "require_interaction": notification.require_interaction,
        "earthquake_id": notification.earthquake_id,
    }
