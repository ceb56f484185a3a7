"""Unit tests for geographic calculations.

Pure function tests - no mocks needed, fast execution.
"""

import pytest

from src.core.geo import (
    EARTH_RADIUS_KM,
    calculate_distance,
    distance_to,
    find_nearby,
    is_valid_latitude,
    is_valid_longitude,
    is_within_radius,
    with_distance,
)
from src.core.earthquake import Earthquake


# Kilometers per degree of latitude on the haversine sphere
KM_PER_DEGREE = 111.19492664455873

JAKARTA = (-6.2, 106.8)


def make_earthquake(id, latitude, longitude, occurred_at=1_700_000_000_000, magnitude=5.0):
    return Earthquake(
        id=id,
        occurred_at=occurred_at,
        magnitude=magnitude,
        depth_km=10.0,
        latitude=latitude,
        longitude=longitude,
        region="Test Region",
    )


class TestCalculateDistance:
    """Tests for calculate_distance() Haversine implementation."""

    def test_same_point_returns_zero(self):
        """Distance from point to itself should be zero."""
        distance = calculate_distance(-6.2, 106.8, -6.2, 106.8)
        assert distance == pytest.approx(0.0, abs=0.001)

    def test_one_degree_of_latitude(self):
        """One degree along a meridian is R * pi / 180."""
        distance = calculate_distance(0.0, 106.8, 1.0, 106.8)
        assert distance == pytest.approx(KM_PER_DEGREE, rel=1e-9)

    def test_known_distance_jakarta_to_bandung(self):
        """Jakarta to Bandung should be approximately 116 km."""
        distance = calculate_distance(-6.2088, 106.8456, -6.9175, 107.6191)
        assert distance == pytest.approx(116, rel=0.05)

    def test_antipodal_points(self):
        """Opposite points are half the circumference apart."""
        distance = calculate_distance(0.0, 0.0, 0.0, 180.0)
        assert distance == pytest.approx(EARTH_RADIUS_KM * 3.141592653589793, rel=1e-9)

    @pytest.mark.parametrize(
        "a, b",
        [
            ((-6.2, 106.8), (-8.65, 115.22)),
            ((3.59, 98.67), (-0.95, 100.35)),
            ((-90.0, 0.0), (90.0, 0.0)),
            ((0.0, -179.9), (0.0, 179.9)),
        ],
    )
    def test_symmetric(self, a, b):
        """Distance should be the same in both directions."""
        d1 = calculate_distance(a[0], a[1], b[0], b[1])
        d2 = calculate_distance(b[0], b[1], a[0], a[1])

        assert d1 == pytest.approx(d2, rel=1e-12)

    def test_crosses_antimeridian_short_way(self):
        """Points either side of 180 degrees are close together."""
        distance = calculate_distance(0.0, -179.9, 0.0, 179.9)
        assert distance == pytest.approx(0.2 * KM_PER_DEGREE, rel=1e-6)


class TestCoordinateValidation:
    """Tests for latitude/longitude range checks."""

    @pytest.mark.parametrize("latitude", [-90.0, -6.2, 0.0, 90.0])
    def test_valid_latitudes(self, latitude):
        assert is_valid_latitude(latitude)

    @pytest.mark.parametrize("latitude", [-90.1, 91.0, 180.0])
    def test_invalid_latitudes(self, latitude):
        assert not is_valid_latitude(latitude)

    @pytest.mark.parametrize("longitude", [-180.0, 106.8, 180.0])
    def test_valid_longitudes(self, longitude):
        assert is_valid_longitude(longitude)

    @pytest.mark.parametrize("longitude", [-180.5, 181.0])
    def test_invalid_longitudes(self, longitude):
        assert not is_valid_longitude(longitude)


class TestRadiusMatching:
    """Tests for distance_to(), is_within_radius() and with_distance()."""

    def test_distance_to_earthquake(self):
        eq = make_earthquake("eq1", -6.2 + 0.5, 106.8)
        assert distance_to(eq, *JAKARTA) == pytest.approx(0.5 * KM_PER_DEGREE, rel=1e-6)

    def test_within_radius(self):
        eq = make_earthquake("eq1", -6.2 + 0.09, 106.8)
        assert is_within_radius(eq, JAKARTA[0], JAKARTA[1], 50)

    def test_outside_radius(self):
        eq = make_earthquake("eq1", -6.2 + 0.54, 106.8)
        assert not is_within_radius(eq, JAKARTA[0], JAKARTA[1], 50)

    def test_with_distance_rounds_to_one_decimal(self):
        eq = make_earthquake("eq1", -6.2 + 0.09, 106.8)

        measured = with_distance(eq, *JAKARTA)

        assert measured.distance_km == 10.0
        assert measured.id == eq.id
        assert eq.distance_km is None  # Original untouched


class TestFindNearby:
    """Tests for find_nearby()."""

    def test_returns_only_events_inside_radius(self):
        """Two events at ~10 km and ~60 km; a 50 km radius keeps only the first."""
        near = make_earthquake("near", -6.2 + 0.09, 106.8)
        far = make_earthquake("far", -6.2 + 0.54, 106.8)

        result = find_nearby([far, near], JAKARTA[0], JAKARTA[1], 50)

        assert [e.id for e in result] == ["near"]
        assert result[0].distance_km == pytest.approx(10.0, abs=0.05)

    def test_sorted_nearest_first(self):
        quakes = [
            make_earthquake("30km", -6.2 + 0.27, 106.8),
            make_earthquake("10km", -6.2 + 0.09, 106.8),
            make_earthquake("20km", -6.2 + 0.18, 106.8),
        ]

        result = find_nearby(quakes, JAKARTA[0], JAKARTA[1], 100)

        assert [e.id for e in result] == ["10km", "20km", "30km"]

    def test_ties_broken_by_most_recent(self):
        older = make_earthquake("older", -6.2 + 0.09, 106.8, occurred_at=1_000)
        newer = make_earthquake("newer", -6.2 - 0.09, 106.8, occurred_at=2_000)

        result = find_nearby([older, newer], JAKARTA[0], JAKARTA[1], 100)

        assert [e.id for e in result] == ["newer", "older"]

    def test_inclusive_boundary_on_rounded_distance(self):
        eq = make_earthquake("eq1", -6.2 + 0.09, 106.8)

        result = find_nearby([eq], JAKARTA[0], JAKARTA[1], 10.0)

        assert [e.id for e in result] == ["eq1"]

    def test_empty_input(self):
        assert find_nearby([], JAKARTA[0], JAKARTA[1], 100) == []

    def test_monotonic_in_radius(self):
        """A larger radius never drops an event found with a smaller one."""
        quakes = [
            make_earthquake(f"eq{i}", -6.2 + i * 0.1, 106.8 + i * 0.05)
            for i in range(-10, 11)
        ]

        previous: set[str] = set()
        for radius in [1, 10, 25, 50, 100, 200, 500]:
            ids = {e.id for e in find_nearby(quakes, JAKARTA[0], JAKARTA[1], radius)}
            assert previous <= ids
            previous = ids
