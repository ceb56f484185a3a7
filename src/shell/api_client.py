"""Earthquake API Client - Imperative Shell.

This module lets the alerting client read the served query API. Responses
use the {success, data, error} envelope; data rows are earthquake dicts.
"""

import logging
from typing import Any

import requests

from src.core.earthquake import Earthquake, earthquake_from_dict
from src.core.errors import UpstreamUnavailableError


logger = logging.getLogger(__name__)


# Source name attached to errors raised by this client
API_SOURCE_NAME = "earthquake-api"


class EarthquakeApiClient:
    """Client for the served earthquake query API.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout:
            raise UpstreamUnavailableError(
                f"Request timed out after {self.timeout}s",
                source_name=API_SOURCE_NAME,
            ) from None
        except requests.RequestException as e:
            raise UpstreamUnavailableError(
                f"Request failed: {e}",
                source_name=API_SOURCE_NAME,
            ) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            raise UpstreamUnavailableError(
                f"HTTP {response.status_code} from {url} without a JSON envelope",
                source_name=API_SOURCE_NAME,
            )

        if not response.ok or not body.get("success"):
            raise UpstreamUnavailableError(
                f"HTTP {response.status_code} from {url}: "
                f"{body.get('error', 'unknown error')}",
                source_name=API_SOURCE_NAME,
            )

        return body.get("data")

    def _parse_rows(self, data: Any) -> list[Earthquake]:
        if not isinstance(data, list):
            raise UpstreamUnavailableError(
                "Response data is not a list",
                source_name=API_SOURCE_NAME,
            )

        try:
            return [earthquake_from_dict(row) for row in data]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailableError(
                f"Response contains a malformed earthquake: {e}",
                source_name=API_SOURCE_NAME,
            ) from e

    def fetch_earthquakes(self, limit: int = 200) -> list[Earthquake]:
        """Fetch the most recent earthquakes, newest first.

        Raises:
            UpstreamUnavailableError: If the API cannot be read
        """
        data = self._get("/api/earthquakes", {"limit": limit})
        earthquakes = self._parse_rows(data)
        logger.debug("Fetched %d earthquakes from API", len(earthquakes))
        return earthquakes

    def fetch_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
    ) -> list[Earthquake]:
        """Fetch earthquakes within radius_km, nearest first.

        Raises:
            UpstreamUnavailableError: If the API cannot be read
        """
        data = self._get(
            "/api/earthquakes/nearby",
            {"lat": latitude, "lng": longitude, "radius": radius_km},
        )
        earthquakes = self._parse_rows(data)
        logger.debug(
            "Fetched %d earthquakes within %.0f km from API",
            len(earthquakes),
            radius_km,
        )
        return earthquakes
