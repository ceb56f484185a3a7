"""Alert decision engine - Pure functions.

This module decides which newly observed earthquakes deserve a user-facing
alert. The only state it touches is the ledger passed in by the caller.
"""

from dataclasses import dataclass

from src.core.dedup import AlertLedger
from src.core.earthquake import Earthquake
from src.core.geo import UserLocation, with_distance


# Minimum magnitude worth interrupting the user for
MIN_ALERT_MAGNITUDE = 4.0


@dataclass(frozen=True)
class AlertPolicy:
    """Thresholds used when deciding on alerts.

    Attributes:
        min_magnitude: Minimum magnitude to alert on (inclusive)
    """
    min_magnitude: float = MIN_ALERT_MAGNITUDE


def matches_magnitude(earthquake: Earthquake, policy: AlertPolicy) -> bool:
    """Check if earthquake magnitude reaches the alert threshold.

    Pure function.
    """
    return earthquake.magnitude >= policy.min_magnitude


def matches_location(earthquake: Earthquake, user: UserLocation) -> bool:
    """Check if an earthquake with attached distance is within the user's radius.

    Pure function.
    """
    return (
        earthquake.distance_km is not None
        and earthquake.distance_km <= user.radius_km
    )


def is_alert_worthy(
    earthquake: Earthquake,
    previously_seen: set[str],
    user: UserLocation,
    ledger: AlertLedger,
    policy: AlertPolicy,
) -> bool:
    """Evaluate all alert conditions for one earthquake.

    The earthquake must already carry a distance measured from `user`.
    """
    return (
        earthquake.id not in previously_seen
        and matches_magnitude(earthquake, policy)
        and matches_location(earthquake, user)
        and earthquake.id not in ledger
    )


def decide(
    new_records: list[Earthquake],
    previously_seen: set[str],
    user: UserLocation | None,
    ledger: AlertLedger,
    policy: AlertPolicy | None = None,
) -> list[Earthquake]:
    """Select the earthquakes to alert on and record them in the ledger.

    A record is alert-worthy when it was not in the previous poll, reaches
    the magnitude threshold, lies within the user's radius, and is not in
    the ledger. Distances are always measured here against `user`, so a
    distance attached for some other center is never trusted.

    Args:
        new_records: Earthquakes from the current poll
        previously_seen: IDs returned by the previous poll
        user: The user's saved location, None if not configured
        ledger: Already-alerted IDs; alerted IDs are appended to it
        policy: Alert thresholds (defaults to M4.0+)

    Returns:
        Alert-worthy earthquakes in input order, with distance_km attached
    """
    if user is None:
        return []

    policy = policy or AlertPolicy()
    alerts: list[Earthquake] = []

    for record in new_records:
        measured = with_distance(record, user.latitude, user.longitude)
        if is_alert_worthy(measured, previously_seen, user, ledger, policy):
            alerts.append(measured)
            # Ledger the ID immediately so duplicates within the batch are
            # suppressed too
            ledger.append(measured.id)

    return alerts
