"""Earthquake Query Service - Served query surface.

Answers the read-side questions of the API (listing, latest, nearby, by ID,
stats) on top of the store port. Every answer is an ApiResponse envelope;
invalid input and store outages become unsuccessful envelopes instead of
exceptions, so the HTTP layer only maps statuses to codes.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable
from zoneinfo import ZoneInfo

from src.core.earthquake import earthquake_to_dict, start_of_day_millis
from src.core.errors import InvalidQueryError, StoreUnavailableError
from src.core.geo import find_nearby
from src.core.query import compute_stats, parse_list_query, parse_nearby_query
from src.shell.store import EarthquakeStore


logger = logging.getLogger(__name__)


class ResponseStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    UNAVAILABLE = "unavailable"


@dataclass
class ApiResponse:
    """Envelope returned by every query.

    Attributes:
        success: Whether the query succeeded
        data: Query result (JSON-serializable)
        error: Error message when unsuccessful
        status: Outcome category, mapped to an HTTP code by the caller
        pagination: {total, limit, offset} for paginated listings
        extra: Additional top-level keys (e.g. the nearby search center)
    """
    success: bool
    data: Any = None
    error: str | None = None
    status: ResponseStatus = ResponseStatus.OK
    pagination: dict[str, int] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": self.success}
        if self.success:
            body["data"] = self.data
        else:
            body["error"] = self.error
        if self.pagination is not None:
            body["pagination"] = self.pagination
        body.update(self.extra)
        return body


def _ok(data: Any, **kwargs: Any) -> ApiResponse:
    return ApiResponse(success=True, data=data, **kwargs)


def _fail(status: ResponseStatus, error: str) -> ApiResponse:
    return ApiResponse(success=False, error=error, status=status)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EarthquakeQueryService:
    """Read-side queries over the earthquake store."""

    def __init__(
        self,
        store: EarthquakeStore,
        stats_timezone: str = "Asia/Jakarta",
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the query service.

        Args:
            store: Earthquake store to read from
            stats_timezone: IANA timezone whose midnight starts "today"
            now: Returns the current aware datetime
        """
        self.store = store
        self.stats_timezone = ZoneInfo(stats_timezone)
        self._now = now

    def _guard(self, name: str, query: Callable[[], ApiResponse]) -> ApiResponse:
        try:
            return query()
        except InvalidQueryError as e:
            logger.info("Rejected %s query: %s", name, e)
            return _fail(ResponseStatus.INVALID, str(e))
        except StoreUnavailableError as e:
            logger.error("Store unavailable for %s query: %s", name, e)
            return _fail(ResponseStatus.UNAVAILABLE, "Database unavailable")

    def list_earthquakes(
        self,
        limit: Any = None,
        offset: Any = None,
        min_magnitude: Any = None,
        max_magnitude: Any = None,
    ) -> ApiResponse:
        """List earthquakes newest first, paginated and magnitude-filtered."""
        def query() -> ApiResponse:
            params = parse_list_query(limit, offset, min_magnitude, max_magnitude)
            page = self.store.query_all(
                min_magnitude=params.min_magnitude,
                max_magnitude=params.max_magnitude,
                limit=params.limit,
                offset=params.offset,
            )
            return _ok(
                [earthquake_to_dict(e) for e in page.rows],
                pagination={
                    "total": page.total,
                    "limit": params.limit,
                    "offset": params.offset,
                },
            )

        return self._guard("list", query)

    def latest(self) -> ApiResponse:
        """Return the most recent earthquake."""
        def query() -> ApiResponse:
            page = self.store.query_all(limit=1)
            if not page.rows:
                return _fail(ResponseStatus.NOT_FOUND, "No earthquakes found")
            return _ok(earthquake_to_dict(page.rows[0]))

        return self._guard("latest", query)

    def nearby(
        self,
        latitude: Any,
        longitude: Any,
        radius_km: Any = None,
    ) -> ApiResponse:
        """Return earthquakes within radius_km of a point, nearest first.

        Each row carries distance_km rounded to one decimal. The response
        echoes the search center as user_location and the radius used.
        """
        def query() -> ApiResponse:
            params = parse_nearby_query(latitude, longitude, radius_km)
            rows = self.store.query_all().rows
            nearby = find_nearby(
                rows, params.latitude, params.longitude, params.radius_km
            )
            return _ok(
                [earthquake_to_dict(e) for e in nearby],
                extra={
                    "user_location": {
                        "latitude": params.latitude,
                        "longitude": params.longitude,
                    },
                    "radius": params.radius_km,
                },
            )

        return self._guard("nearby", query)

    def get_by_id(self, earthquake_id: str) -> ApiResponse:
        """Return one earthquake by ID."""
        def query() -> ApiResponse:
            earthquake = self.store.get_by_id(earthquake_id)
            if earthquake is None:
                return _fail(ResponseStatus.NOT_FOUND, "Earthquake not found")
            return _ok(earthquake_to_dict(earthquake))

        return self._guard("by-id", query)

    def stats(self) -> ApiResponse:
        """Return totals, today's count, the strongest event and a histogram."""
        def query() -> ApiResponse:
            rows = self.store.query_all().rows
            local_now = self._now().astimezone(self.stats_timezone)
            stats = compute_stats(rows, start_of_day_millis(local_now))
            return _ok({
                "total": stats.total,
                "today_count": stats.today_count,
                "strongest": (
                    earthquake_to_dict(stats.strongest) if stats.strongest else None
                ),
                "by_magnitude": [
                    {"range": band, "count": count}
                    for band, count in stats.by_magnitude
                ],
            })

        return self._guard("stats", query)
