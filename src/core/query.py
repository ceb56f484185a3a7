"""Query validation and aggregate statistics - Pure functions.

Raw query parameters arrive as strings (or None) from the HTTP layer and
are validated here before any store access.
"""

from dataclasses import dataclass, field
from typing import Any

from src.core.earthquake import Earthquake
from src.core.errors import InvalidQueryError
from src.core.geo import is_valid_latitude, is_valid_longitude


DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 500
DEFAULT_NEARBY_RADIUS_KM = 100.0
# Half the Earth's circumference; every point is within this distance
MAX_NEARBY_RADIUS_KM = 20037.5

MAGNITUDE_BANDS = ("<5", "5-6", "6-7", "7+")


@dataclass(frozen=True)
class ListQuery:
    limit: int = DEFAULT_LIST_LIMIT
    offset: int = 0
    min_magnitude: float | None = None
    max_magnitude: float | None = None


@dataclass(frozen=True)
class NearbyQuery:
    latitude: float
    longitude: float
    radius_km: float = DEFAULT_NEARBY_RADIUS_KM


@dataclass(frozen=True)
class EarthquakeStats:
    """Aggregate statistics over all stored earthquakes.

    Attributes:
        total: Number of stored earthquakes
        today_count: Earthquakes since local midnight
        strongest: Highest-magnitude earthquake, None if empty
        by_magnitude: Counts per magnitude band, in MAGNITUDE_BANDS order
    """
    total: int
    today_count: int
    strongest: Earthquake | None
    by_magnitude: list[tuple[str, int]] = field(default_factory=list)


def _parse_float(value: Any, name: str) -> float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidQueryError(f"{name} must be a number, got {value!r}") from None


def _parse_int(value: Any, name: str) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidQueryError(f"{name} must be an integer, got {value!r}") from None


def parse_list_query(
    limit: Any = None,
    offset: Any = None,
    min_magnitude: Any = None,
    max_magnitude: Any = None,
) -> ListQuery:
    """Validate list query parameters.

    Pure function.

    Raises:
        InvalidQueryError: If a parameter is malformed or out of range
    """
    parsed_limit = _parse_int(limit, "limit")
    parsed_offset = _parse_int(offset, "offset")
    min_mag = _parse_float(min_magnitude, "minMagnitude")
    max_mag = _parse_float(max_magnitude, "maxMagnitude")

    if parsed_limit is None:
        parsed_limit = DEFAULT_LIST_LIMIT
    if not 1 <= parsed_limit <= MAX_LIST_LIMIT:
        raise InvalidQueryError(f"limit must be between 1 and {MAX_LIST_LIMIT}")

    if parsed_offset is None:
        parsed_offset = 0
    if parsed_offset < 0:
        raise InvalidQueryError("offset must not be negative")

    if min_mag is not None and max_mag is not None and min_mag > max_mag:
        raise InvalidQueryError(
            f"minMagnitude ({min_mag}) > maxMagnitude ({max_mag})"
        )

    return ListQuery(
        limit=parsed_limit,
        offset=parsed_offset,
        min_magnitude=min_mag,
        max_magnitude=max_mag,
    )


def parse_nearby_query(
    latitude: Any,
    longitude: Any,
    radius_km: Any = None,
) -> NearbyQuery:
    """Validate nearby query parameters.

    Pure function.

    Raises:
        InvalidQueryError: If coordinates are missing or any value is out of
            range
    """
    lat = _parse_float(latitude, "lat")
    lon = _parse_float(longitude, "lng")
    radius = _parse_float(radius_km, "radius")

    if lat is None or lon is None:
        raise InvalidQueryError("Latitude and longitude are required")
    if not is_valid_latitude(lat):
        raise InvalidQueryError(f"Latitude {lat} out of range [-90, 90]")
    if not is_valid_longitude(lon):
        raise InvalidQueryError(f"Longitude {lon} out of range [-180, 180]")

    if radius is None:
        radius = DEFAULT_NEARBY_RADIUS_KM
    if not 0 < radius <= MAX_NEARBY_RADIUS_KM:
        raise InvalidQueryError(
            f"Radius must be in (0, {MAX_NEARBY_RADIUS_KM}] km, got {radius}"
        )

    return NearbyQuery(latitude=lat, longitude=lon, radius_km=radius)


def magnitude_band(magnitude: float) -> str:
    """Classify a magnitude into its histogram band.

    Pure function.
    """
    if magnitude < 5:
        return "<5"
    if magnitude < 6:
        return "5-6"
    if magnitude < 7:
        return "6-7"
    return "7+"


def compute_stats(
    earthquakes: list[Earthquake],
    today_start_ms: int,
) -> EarthquakeStats:
    """Compute aggregate statistics.

    Pure function.

    Args:
        earthquakes: All stored earthquakes
        today_start_ms: Local midnight in epoch millis

    Returns:
        EarthquakeStats; the strongest tie-break is the most recent event
    """
    counts = {band: 0 for band in MAGNITUDE_BANDS}
    for earthquake in earthquakes:
        counts[magnitude_band(earthquake.magnitude)] += 1

    strongest = None
    if earthquakes:
        strongest = max(earthquakes, key=lambda e: (e.magnitude, e.occurred_at))

    return EarthquakeStats(
        total=len(earthquakes),
        today_count=sum(1 for e in earthquakes if e.occurred_at >= today_start_ms),
        strongest=strongest,
        by_magnitude=[(band, counts[band]) for band in MAGNITUDE_BANDS],
    )
