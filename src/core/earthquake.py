"""Earthquake data model and filtering - Pure functions.

This module defines the canonical Earthquake record shared by ingestion,
storage, queries and alerting. All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Earthquake:
    """Immutable canonical earthquake record.

    Attributes:
        id: Deterministic ID derived from event time and coordinates
        occurred_at: Event time in milliseconds since epoch (UTC)
        magnitude: Earthquake magnitude
        depth_km: Depth in kilometers
        latitude: Epicenter latitude
        longitude: Epicenter longitude
        region: Human-readable region label
        tsunami_potential: Tsunami potential statement (optional)
        felt_report: Felt intensity report (optional)
        shakemap_url: Shakemap image URL (optional)
        recorded_at: Ingestion time in milliseconds, set by the store
        distance_km: Distance from a query point, attached by nearby queries
    """
    id: str
    occurred_at: int
    magnitude: float
    depth_km: float
    latitude: float
    longitude: float
    region: str
    tsunami_potential: str | None = None
    felt_report: str | None = None
    shakemap_url: str | None = None
    recorded_at: int | None = None
    distance_km: float | None = None

    @property
    def time(self) -> datetime:
        """Event time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.occurred_at / 1000, tz=timezone.utc)

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)


class TimeFilter(str, Enum):
    """Time windows offered to clients when listing earthquakes."""
    REALTIME = "realtime"
    TODAY = "today"
    ONE_MONTH = "1month"
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"
    ONE_YEAR = "1year"


_WINDOW_DAYS = {
    TimeFilter.ONE_MONTH: 30,
    TimeFilter.THREE_MONTHS: 90,
    TimeFilter.SIX_MONTHS: 180,
    TimeFilter.ONE_YEAR: 365,
}


def to_millis(moment: datetime) -> int:
    """Convert an aware datetime to milliseconds since epoch."""
    return int(moment.timestamp() * 1000)


def start_of_day_millis(now: datetime) -> int:
    """Midnight of `now`'s day, in `now`'s timezone, as epoch millis."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return to_millis(midnight)


def time_filter_cutoff(time_filter: TimeFilter, now: datetime) -> int | None:
    """Compute the earliest occurred_at kept by a time filter.

    Pure function.

    Args:
        time_filter: The selected time window
        now: Current time (aware); "today" uses its timezone

    Returns:
        Cutoff in epoch millis, or None when nothing is filtered out
    """
    if time_filter == TimeFilter.REALTIME:
        return None
    if time_filter == TimeFilter.TODAY:
        return start_of_day_millis(now)
    return to_millis(now - timedelta(days=_WINDOW_DAYS[time_filter]))


def filter_by_time_window(
    earthquakes: list[Earthquake],
    time_filter: TimeFilter,
    now: datetime,
) -> list[Earthquake]:
    """Filter earthquakes to those inside a time window.

    Pure function.
    """
    cutoff = time_filter_cutoff(time_filter, now)
    if cutoff is None:
        return list(earthquakes)
    return [e for e in earthquakes if e.occurred_at >= cutoff]


def filter_by_magnitude(
    earthquakes: list[Earthquake],
    min_magnitude: float | None = None,
    max_magnitude: float | None = None,
) -> list[Earthquake]:
    """Filter earthquakes by magnitude range.

    Pure function.

    Args:
        earthquakes: List of earthquakes to filter
        min_magnitude: Minimum magnitude (inclusive), None for no minimum
        max_magnitude: Maximum magnitude (inclusive), None for no maximum

    Returns:
        Filtered list of earthquakes
    """
    result = earthquakes

    if min_magnitude is not None:
        result = [e for e in result if e.magnitude >= min_magnitude]

    if max_magnitude is not None:
        result = [e for e in result if e.magnitude <= max_magnitude]

    return result


def sort_newest_first(earthquakes: list[Earthquake]) -> list[Earthquake]:
    """Sort by occurred_at descending, ID as a stable tie-break."""
    return sorted(earthquakes, key=lambda e: (-e.occurred_at, e.id))


def earthquake_to_dict(earthquake: Earthquake) -> dict[str, Any]:
    """Convert Earthquake to a JSON-serializable dict."""
    data: dict[str, Any] = {
        "id": earthquake.id,
        "occurred_at": earthquake.occurred_at,
        "occurred_at_iso": earthquake.time.isoformat(),
        "magnitude": earthquake.magnitude,
        "depth_km": earthquake.depth_km,
        "latitude": earthquake.latitude,
        "longitude": earthquake.longitude,
        "region": earthquake.region,
        "tsunami_potential": earthquake.tsunami_potential,
        "felt_report": earthquake.felt_report,
        "shakemap_url": earthquake.shakemap_url,
        "recorded_at": earthquake.recorded_at,
    }
    if earthquake.distance_km is not None:
        data["distance_km"] = earthquake.distance_km
    return data


def earthquake_from_dict(data: dict[str, Any]) -> Earthquake:
    """Build an Earthquake from a dict produced by earthquake_to_dict.

    Raises:
        KeyError: If a required field is missing
        ValueError: If a numeric field is not a number
    """
    recorded_at = data.get("recorded_at")
    distance_km = data.get("distance_km")
    return Earthquake(
        id=str(data["id"]),
        occurred_at=int(data["occurred_at"]),
        magnitude=float(data["magnitude"]),
        depth_km=float(data["depth_km"]),
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        region=str(data.get("region", "")),
        tsunami_potential=data.get("tsunami_potential"),
        felt_report=data.get("felt_report"),
        shakemap_url=data.get("shakemap_url"),
        recorded_at=int(recorded_at) if recorded_at is not None else None,
        distance_km=float(distance_km) if distance_km is not None else None,
    )
