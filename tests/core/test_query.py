"""Unit tests for query validation and statistics.

Pure function tests - no mocks needed.
"""

import pytest

from src.core.earthquake import Earthquake
from src.core.errors import InvalidQueryError
from src.core.query import (
    DEFAULT_LIST_LIMIT,
    DEFAULT_NEARBY_RADIUS_KM,
    MAX_LIST_LIMIT,
    compute_stats,
    magnitude_band,
    parse_list_query,
    parse_nearby_query,
)


def make_earthquake(id, magnitude, occurred_at):
    return Earthquake(
        id=id,
        occurred_at=occurred_at,
        magnitude=magnitude,
        depth_km=10.0,
        latitude=-6.2,
        longitude=106.8,
        region="Test",
    )


class TestParseListQuery:
    """Tests for parse_list_query()."""

    def test_defaults(self):
        query = parse_list_query()
        assert query.limit == DEFAULT_LIST_LIMIT == 50
        assert query.offset == 0
        assert query.min_magnitude is None
        assert query.max_magnitude is None

    def test_parses_strings(self):
        query = parse_list_query("10", "20", "4.5", "6")
        assert (query.limit, query.offset) == (10, 20)
        assert (query.min_magnitude, query.max_magnitude) == (4.5, 6.0)

    def test_blank_values_are_defaults(self):
        query = parse_list_query("", " ", "", "")
        assert query.limit == DEFAULT_LIST_LIMIT
        assert query.min_magnitude is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"limit": "0"},
            {"limit": str(MAX_LIST_LIMIT + 1)},
            {"limit": "ten"},
            {"offset": "-1"},
            {"min_magnitude": "strong"},
            {"min_magnitude": "6", "max_magnitude": "5"},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(InvalidQueryError):
            parse_list_query(**kwargs)


class TestParseNearbyQuery:
    """Tests for parse_nearby_query()."""

    def test_default_radius(self):
        query = parse_nearby_query("-6.2", "106.8")
        assert query.radius_km == DEFAULT_NEARBY_RADIUS_KM == 100.0

    def test_explicit_radius(self):
        assert parse_nearby_query(-6.2, 106.8, "250").radius_km == 250.0

    @pytest.mark.parametrize("lat, lng", [(None, "106.8"), ("-6.2", None), ("", "")])
    def test_missing_coordinates(self, lat, lng):
        with pytest.raises(InvalidQueryError, match="Latitude and longitude are required"):
            parse_nearby_query(lat, lng)

    @pytest.mark.parametrize(
        "lat, lng, radius",
        [
            ("-91", "106.8", None),
            ("-6.2", "181", None),
            ("-6.2", "106.8", "0"),
            ("-6.2", "106.8", "-5"),
            ("-6.2", "106.8", "50000"),
            ("north", "106.8", None),
        ],
    )
    def test_invalid(self, lat, lng, radius):
        with pytest.raises(InvalidQueryError):
            parse_nearby_query(lat, lng, radius)


class TestMagnitudeBand:
    """Tests for magnitude_band()."""

    @pytest.mark.parametrize(
        "magnitude, band",
        [(0.0, "<5"), (4.99, "<5"), (5.0, "5-6"), (5.99, "5-6"), (6.0, "6-7"), (7.0, "7+"), (9.1, "7+")],
    )
    def test_bands(self, magnitude, band):
        assert magnitude_band(magnitude) == band


class TestComputeStats:
    """Tests for compute_stats()."""

    def test_empty(self):
        stats = compute_stats([], today_start_ms=0)

        assert stats.total == 0
        assert stats.today_count == 0
        assert stats.strongest is None
        assert stats.by_magnitude == [("<5", 0), ("5-6", 0), ("6-7", 0), ("7+", 0)]

    def test_counts(self):
        quakes = [
            make_earthquake("a", 4.1, 500),
            make_earthquake("b", 5.2, 1500),
            make_earthquake("c", 6.8, 2000),
            make_earthquake("d", 4.9, 2500),
        ]

        stats = compute_stats(quakes, today_start_ms=1000)

        assert stats.total == 4
        assert stats.today_count == 3
        assert stats.strongest.id == "c"
        assert dict(stats.by_magnitude) == {"<5": 2, "5-6": 1, "6-7": 1, "7+": 0}

    def test_strongest_tie_prefers_most_recent(self):
        quakes = [make_earthquake("old", 6.0, 100), make_earthquake("new", 6.0, 200)]
        assert compute_stats(quakes, today_start_ms=0).strongest.id == "new"
