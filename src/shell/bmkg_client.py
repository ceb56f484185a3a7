"""BMKG Feed Client - Imperative Shell.

This module handles HTTP communication with the BMKG open data feeds.
All I/O is contained here; normalization is in the core module.
"""

import logging
from typing import Any

import requests

from src.core.config import UpstreamSource
from src.core.errors import UpstreamUnavailableError
from src.core.normalizer import BMKG_BASE_URL, extract_records


logger = logging.getLogger(__name__)


class BMKGClient:
    """Client for fetching bulletin records from BMKG feeds.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(self, base_url: str = BMKG_BASE_URL) -> None:
        """Initialize BMKG client.

        Sources are fetched concurrently, so each request goes through
        requests.get rather than a shared Session.

        Args:
            base_url: BMKG data host
        """
        self.base_url = base_url.rstrip("/")

    def url_for(self, source: UpstreamSource) -> str:
        """Build the full URL of a source."""
        return f"{self.base_url}/{source.path.lstrip('/')}"

    def fetch_payload(self, source: UpstreamSource) -> Any:
        """Fetch the raw JSON payload of a source.

        This method performs HTTP I/O.

        Args:
            source: Upstream source to fetch

        Returns:
            Decoded JSON payload

        Raises:
            UpstreamUnavailableError: On timeout, network error, non-2xx
                status or an undecodable body
        """
        url = self.url_for(source)
        logger.info("Fetching %s from %s", source.name, url)

        try:
            response = requests.get(url, timeout=source.timeout_seconds)
            response.raise_for_status()
        except requests.Timeout:
            raise UpstreamUnavailableError(
                f"Request timed out after {source.timeout_seconds}s",
                source_name=source.name,
            ) from None
        except requests.HTTPError as e:
            raise UpstreamUnavailableError(
                f"HTTP {e.response.status_code} from {url}",
                source_name=source.name,
            ) from e
        except requests.RequestException as e:
            raise UpstreamUnavailableError(
                f"Request failed: {e}",
                source_name=source.name,
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(
                f"Response is not valid JSON: {e}",
                source_name=source.name,
            ) from e

    def fetch_records(self, source: UpstreamSource) -> list[Any]:
        """Fetch a source and unwrap its record envelope.

        Raises:
            UpstreamUnavailableError: If the fetch fails or the envelope is
                malformed
        """
        payload = self.fetch_payload(source)

        try:
            records = extract_records(payload, source.shape)
        except UpstreamUnavailableError as e:
            e.source_name = source.name
            raise

        logger.info("Fetched %d records from %s", len(records), source.name)
        return records
