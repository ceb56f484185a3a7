"""Client State Store - Imperative Shell.

Persists client-owned state (the user's location and the alert ledger) to a
local JSON file so it survives restarts. Each piece of state lives under its
own key; an unreadable entry is treated as absent.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from src.core.dedup import DEFAULT_LEDGER_SIZE, AlertLedger
from src.core.geo import UserLocation, is_valid_latitude, is_valid_longitude


logger = logging.getLogger(__name__)


LOCATION_KEY = "user_location"
NOTIFIED_KEY = "notified_earthquakes"


class ClientStateStore:
    """Keyed JSON file holding client-local state.

    Document structure:
    {
        "user_location": {"latitude": -6.2, "longitude": 106.8, "radius_km": 100},
        "notified_earthquakes": ["<id>", ...]
    }
    """

    def __init__(self, path: str | Path, ledger_size: int = DEFAULT_LEDGER_SIZE) -> None:
        """Initialize the state store.

        Args:
            path: JSON file location (created on first write)
            ledger_size: Maximum number of alerted IDs kept
        """
        self.path = Path(path)
        self.ledger_size = ledger_size
        self._lock = threading.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Client state at %s is unreadable: %s", self.path, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Client state at %s is not an object, ignoring", self.path)
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def _update(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            if value is None:
                data.pop(key, None)
            else:
                data[key] = value
            self._write(data)

    def get_user_location(self) -> UserLocation | None:
        """Load the saved user location, None if unset or invalid."""
        with self._lock:
            raw = self._read().get(LOCATION_KEY)

        if raw is None:
            return None

        try:
            location = UserLocation(
                latitude=float(raw["latitude"]),
                longitude=float(raw["longitude"]),
                radius_km=float(raw["radius_km"]),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed saved location: %r", raw)
            return None

        if (
            not is_valid_latitude(location.latitude)
            or not is_valid_longitude(location.longitude)
            or location.radius_km <= 0
        ):
            logger.warning("Ignoring out-of-range saved location: %r", raw)
            return None

        return location

    def save_user_location(self, location: UserLocation) -> None:
        """Save (or replace) the user location.

        Raises:
            ValueError: If coordinates or radius are out of range
        """
        if not is_valid_latitude(location.latitude):
            raise ValueError(f"Latitude {location.latitude} out of range [-90, 90]")
        if not is_valid_longitude(location.longitude):
            raise ValueError(f"Longitude {location.longitude} out of range [-180, 180]")
        if location.radius_km <= 0:
            raise ValueError(f"Radius must be positive, got {location.radius_km}")

        self._update(LOCATION_KEY, {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "radius_km": location.radius_km,
        })
        logger.info(
            "Saved user location (%.4f, %.4f) radius %.0f km",
            location.latitude,
            location.longitude,
            location.radius_km,
        )

    def clear_user_location(self) -> None:
        """Delete the saved user location."""
        self._update(LOCATION_KEY, None)
        logger.info("Cleared user location")

    def load_ledger(self) -> AlertLedger:
        """Load the alert ledger (empty if unset or unreadable)."""
        with self._lock:
            raw = self._read().get(NOTIFIED_KEY, [])

        if not isinstance(raw, list):
            logger.warning("Ignoring malformed alert ledger")
            raw = []

        return AlertLedger(
            (i for i in raw if isinstance(i, str)),
            max_size=self.ledger_size,
        )

    def save_ledger(self, ledger: AlertLedger) -> None:
        """Persist the alert ledger, oldest ID first."""
        self._update(NOTIFIED_KEY, ledger.ids)
