"""Geographic calculations - Pure functions.

This module provides distance calculations and radius matching for
earthquake locations. All functions are pure with no side effects.
"""

import dataclasses
import math
from dataclasses import dataclass

from src.core.earthquake import Earthquake


# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0

MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0
MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0


@dataclass(frozen=True)
class UserLocation:
    """A user's saved location for proximity alerts.

    Attributes:
        latitude: Location latitude
        longitude: Location longitude
        radius_km: Alert when earthquake is within this radius
    """
    latitude: float
    longitude: float
    radius_km: float


def is_valid_latitude(latitude: float) -> bool:
    """Check if a latitude is within [-90, 90]."""
    return MIN_LATITUDE <= latitude <= MAX_LATITUDE


def is_valid_longitude(longitude: float) -> bool:
    """Check if a longitude is within [-180, 180]."""
    return MIN_LONGITUDE <= longitude <= MAX_LONGITUDE


def calculate_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate distance between two points using Haversine formula.

    Pure function.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers
    """
    # Convert to radians
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    # Haversine formula
    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_to(earthquake: Earthquake, latitude: float, longitude: float) -> float:
    """Calculate distance from a point to an earthquake epicenter.

    Pure function.
    """
    return calculate_distance(
        latitude,
        longitude,
        earthquake.latitude,
        earthquake.longitude,
    )


def is_within_radius(
    earthquake: Earthquake,
    center_lat: float,
    center_lon: float,
    radius_km: float,
) -> bool:
    """Check if an earthquake is within a radius of a point.

    Pure function.

    Args:
        earthquake: Earthquake to check
        center_lat: Center point latitude
        center_lon: Center point longitude
        radius_km: Radius in kilometers

    Returns:
        True if earthquake is within radius
    """
    return distance_to(earthquake, center_lat, center_lon) <= radius_km


def with_distance(
    earthquake: Earthquake,
    center_lat: float,
    center_lon: float,
) -> Earthquake:
    """Return a copy of the earthquake with distance_km attached.

    Pure function. Distance is rounded to one decimal place.
    """
    distance = round(distance_to(earthquake, center_lat, center_lon), 1)
    return dataclasses.replace(earthquake, distance_km=distance)


def find_nearby(
    earthquakes: list[Earthquake],
    center_lat: float,
    center_lon: float,
    radius_km: float,
) -> list[Earthquake]:
    """Find earthquakes within a radius, nearest first.

    Pure function. This is a full scan over the given records; a spatial
    index could replace it behind the same signature.

    Args:
        earthquakes: Candidate earthquakes
        center_lat: Center point latitude
        center_lon: Center point longitude
        radius_km: Radius in kilometers

    Returns:
        Earthquakes with distance_km attached, sorted by distance and then
        most recent first
    """
    measured = [with_distance(e, center_lat, center_lon) for e in earthquakes]
    nearby = [e for e in measured if e.distance_km <= radius_km]
    return sorted(nearby, key=lambda e: (e.distance_km, -e.occurred_at))
