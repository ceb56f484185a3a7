"""BMKG bulletin normalization - Pure functions.

BMKG publishes the same bulletin fields through several feeds that differ
in which optional fields they populate and in whether events arrive singly
or as an array. Each feed shape has one adapter; a shared builder turns
the adapted record into the canonical Earthquake.

All functions are pure with no side effects.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from src.core.earthquake import Earthquake, to_millis
from src.core.errors import MalformedRecordError, UpstreamUnavailableError
from src.core.geo import is_valid_latitude, is_valid_longitude


BMKG_BASE_URL = "https://data.bmkg.go.id"

MIN_MAGNITUDE = 0.0
MAX_MAGNITUDE = 10.0
MIN_DEPTH_KM = 0.0
MAX_DEPTH_KM = 800.0

_MEASUREMENT_RE = re.compile(r"^\s*([+-]?\d+(?:[.,]\d+)?)\s*([^\d\s.,]*)\s*$")
_HEMISPHERE_RE = re.compile(r"^\s*(\d+(?:[.,]\d+)?)\s*(LS|LU|BT|BB)\s*$", re.IGNORECASE)
_ID_SEPARATOR_RE = re.compile(r"[:\s]")

# Southern latitudes (Lintang Selatan) and western longitudes (Bujur Barat)
_NEGATIVE_HEMISPHERES = {"LS", "BB"}
_LATITUDE_HEMISPHERES = {"LS", "LU"}
_LONGITUDE_HEMISPHERES = {"BT", "BB"}


class RecordShape(str, Enum):
    """Upstream feed shapes."""
    LATEST = "latest"    # autogempa.json, single event with shakemap
    RECENT = "recent"    # gempaterkini.json, M5.0+ list
    FELT = "felt"        # gempadirasakan.json, felt-report list


@dataclass(frozen=True)
class Bulletin:
    """A raw bulletin record after shape-specific adaptation.

    Attributes:
        date_time: ISO-8601 event time string (BMKG `DateTime`)
        coordinates: Combined "lat,lon" string, if present
        lintang: Latitude with hemisphere suffix, e.g. "6.20 LS"
        bujur: Longitude with hemisphere suffix, e.g. "106.80 BT"
        magnitude: Magnitude string
        depth: Depth string, usually with a " km" suffix
        region: Region label (`Wilayah`)
        tsunami_potential: `Potensi`, when the shape carries it
        felt_report: `Dirasakan`, when the shape carries it
        shakemap: Shakemap file name, when the shape carries it
    """
    date_time: Any
    coordinates: Any
    lintang: Any
    bujur: Any
    magnitude: Any
    depth: Any
    region: Any
    tsunami_potential: str | None = None
    felt_report: str | None = None
    shakemap: str | None = None


@dataclass
class NormalizationResult:
    """Outcome of normalizing a batch of records.

    Attributes:
        earthquakes: Successfully normalized records, in input order
        failures: (index, reason) for each rejected record
    """
    earthquakes: list[Earthquake] = field(default_factory=list)
    failures: list[tuple[int, str]] = field(default_factory=list)


def _optional_text(value: Any) -> str | None:
    """Return a stripped string, or None for missing/blank values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _common_fields(record: dict[str, Any]) -> dict[str, Any]:
    return {
        "date_time": record.get("DateTime"),
        "coordinates": record.get("Coordinates"),
        "lintang": record.get("Lintang"),
        "bujur": record.get("Bujur"),
        "magnitude": record.get("Magnitude"),
        "depth": record.get("Kedalaman"),
        "region": record.get("Wilayah"),
    }


def adapt_latest(record: dict[str, Any]) -> Bulletin:
    """Adapt an autogempa record (potential, felt report and shakemap)."""
    return Bulletin(
        **_common_fields(record),
        tsunami_potential=_optional_text(record.get("Potensi")),
        felt_report=_optional_text(record.get("Dirasakan")),
        shakemap=_optional_text(record.get("Shakemap")),
    )


def adapt_recent(record: dict[str, Any]) -> Bulletin:
    """Adapt a gempaterkini record (tsunami potential only)."""
    return Bulletin(
        **_common_fields(record),
        tsunami_potential=_optional_text(record.get("Potensi")),
    )


def adapt_felt(record: dict[str, Any]) -> Bulletin:
    """Adapt a gempadirasakan record (felt report, potential if present)."""
    return Bulletin(
        **_common_fields(record),
        tsunami_potential=_optional_text(record.get("Potensi")),
        felt_report=_optional_text(record.get("Dirasakan")),
    )


ADAPTERS: dict[RecordShape, Callable[[dict[str, Any]], Bulletin]] = {
    RecordShape.LATEST: adapt_latest,
    RecordShape.RECENT: adapt_recent,
    RecordShape.FELT: adapt_felt,
}


def parse_number(value: Any, field_name: str, unit: str | None = None) -> float:
    """Parse a locale-formatted numeric string with an optional unit.

    Pure function. Accepts "5.5", "5,5", "10 km" (when unit="km") and plain
    numbers.

    Raises:
        MalformedRecordError: If the value is not a finite number or carries
            an unexpected unit
    """
    if isinstance(value, bool) or value is None:
        raise MalformedRecordError(f"{field_name} is missing")

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _MEASUREMENT_RE.match(str(value))
        if match is None:
            raise MalformedRecordError(f"{field_name} is not a number: {value!r}")

        digits, suffix = match.groups()
        if suffix and (unit is None or suffix.lower() != unit.lower()):
            raise MalformedRecordError(
                f"{field_name} has unexpected unit: {value!r}"
            )
        number = float(digits.replace(",", "."))

    if not math.isfinite(number):
        raise MalformedRecordError(f"{field_name} is not finite: {value!r}")

    return number


def parse_hemisphere_coordinate(value: Any, field_name: str) -> tuple[float, str]:
    """Parse "6.20 LS" style coordinates into (signed value, hemisphere)."""
    match = _HEMISPHERE_RE.match(str(value)) if value is not None else None
    if match is None:
        raise MalformedRecordError(f"{field_name} is not a coordinate: {value!r}")

    digits, hemisphere = match.groups()
    hemisphere = hemisphere.upper()
    number = float(digits.replace(",", "."))
    if hemisphere in _NEGATIVE_HEMISPHERES:
        number = -number
    return number, hemisphere


def parse_coordinates(bulletin: Bulletin) -> tuple[float, float]:
    """Parse latitude and longitude from a bulletin.

    Uses the combined "lat,lon" string, falling back to Lintang/Bujur.

    Raises:
        MalformedRecordError: If coordinates are missing, unparseable or out
            of range
    """
    if bulletin.coordinates is not None:
        parts = str(bulletin.coordinates).split(",")
        if len(parts) != 2:
            raise MalformedRecordError(
                f"Coordinates must be 'lat,lon': {bulletin.coordinates!r}"
            )
        latitude = parse_number(parts[0], "latitude")
        longitude = parse_number(parts[1], "longitude")
    elif bulletin.lintang is not None and bulletin.bujur is not None:
        latitude, lat_hemisphere = parse_hemisphere_coordinate(bulletin.lintang, "Lintang")
        longitude, lon_hemisphere = parse_hemisphere_coordinate(bulletin.bujur, "Bujur")
        if lat_hemisphere not in _LATITUDE_HEMISPHERES:
            raise MalformedRecordError(f"Lintang has a longitude hemisphere: {bulletin.lintang!r}")
        if lon_hemisphere not in _LONGITUDE_HEMISPHERES:
            raise MalformedRecordError(f"Bujur has a latitude hemisphere: {bulletin.bujur!r}")
    else:
        raise MalformedRecordError("Coordinates are missing")

    if not is_valid_latitude(latitude):
        raise MalformedRecordError(f"latitude {latitude} out of range [-90, 90]")
    if not is_valid_longitude(longitude):
        raise MalformedRecordError(f"longitude {longitude} out of range [-180, 180]")

    return latitude, longitude


def parse_event_time(value: Any) -> int:
    """Parse BMKG DateTime into epoch millis. Naive times are UTC.

    Raises:
        MalformedRecordError: If the value is missing or not ISO-8601
    """
    text = _optional_text(value)
    if text is None:
        raise MalformedRecordError("DateTime is missing")

    # fromisoformat only accepts a "Z" suffix from Python 3.11
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"

    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        raise MalformedRecordError(f"DateTime is not ISO-8601: {text!r}") from None

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return to_millis(moment)


def format_coordinate(value: float) -> str:
    """Render a coordinate in its shortest form: -6.2, 106.8, 106."""
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def format_event_time(occurred_at: int) -> str:
    """Render epoch millis as UTC "2024-01-01T00:00:00" (".fff" only if non-zero)."""
    moment = datetime.fromtimestamp(occurred_at // 1000, tz=timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if occurred_at % 1000:
        text += f".{occurred_at % 1000:03d}"
    return text


def make_earthquake_id(occurred_at: int, latitude: float, longitude: float) -> str:
    """Build the deterministic earthquake ID.

    Pure function of the instant and the epicenter, so the same event
    reported by different feeds, or with a different UTC offset spelling,
    yields the same ID.

    Args:
        occurred_at: Event time in epoch millis
        latitude: Epicenter latitude
        longitude: Epicenter longitude
    """
    raw = (
        f"{format_event_time(occurred_at)}_"
        f"{format_coordinate(latitude)}_{format_coordinate(longitude)}"
    )
    return _ID_SEPARATOR_RE.sub("_", raw)


def build_earthquake(
    bulletin: Bulletin,
    shakemap_base_url: str = BMKG_BASE_URL,
) -> Earthquake:
    """Build a canonical Earthquake from an adapted bulletin.

    Raises:
        MalformedRecordError: If any required field fails to parse or is
            outside its physical range
    """
    latitude, longitude = parse_coordinates(bulletin)

    magnitude = parse_number(bulletin.magnitude, "Magnitude")
    if not MIN_MAGNITUDE <= magnitude <= MAX_MAGNITUDE:
        raise MalformedRecordError(
            f"magnitude {magnitude} out of range [{MIN_MAGNITUDE}, {MAX_MAGNITUDE}]"
        )

    depth_km = parse_number(bulletin.depth, "Kedalaman", unit="km")
    if not MIN_DEPTH_KM <= depth_km <= MAX_DEPTH_KM:
        raise MalformedRecordError(
            f"depth {depth_km} out of range [{MIN_DEPTH_KM}, {MAX_DEPTH_KM}]"
        )

    occurred_at = parse_event_time(bulletin.date_time)

    shakemap_url = None
    if bulletin.shakemap:
        shakemap_url = f"{shakemap_base_url.rstrip('/')}/{bulletin.shakemap.lstrip('/')}"

    return Earthquake(
        id=make_earthquake_id(occurred_at, latitude, longitude),
        occurred_at=occurred_at,
        magnitude=magnitude,
        depth_km=depth_km,
        latitude=latitude,
        longitude=longitude,
        region=_optional_text(bulletin.region) or "Unknown region",
        tsunami_potential=bulletin.tsunami_potential,
        felt_report=bulletin.felt_report,
        shakemap_url=shakemap_url,
    )


def normalize_record(
    record: Any,
    shape: RecordShape,
    shakemap_base_url: str = BMKG_BASE_URL,
) -> Earthquake:
    """Normalize one upstream record of the given shape.

    Pure function.

    Raises:
        MalformedRecordError: If the record cannot be normalized
    """
    if not isinstance(record, dict):
        raise MalformedRecordError(f"Record is not an object: {type(record).__name__}")

    bulletin = ADAPTERS[shape](record)
    return build_earthquake(bulletin, shakemap_base_url)


def normalize_batch(
    records: list[Any],
    shape: RecordShape,
    shakemap_base_url: str = BMKG_BASE_URL,
) -> NormalizationResult:
    """Normalize a batch, isolating failures per record.

    Pure function. A malformed record never aborts its siblings; it is
    reported in `failures` for the caller to log.
    """
    result = NormalizationResult()

    for index, record in enumerate(records):
        try:
            result.earthquakes.append(
                normalize_record(record, shape, shakemap_base_url)
            )
        except MalformedRecordError as e:
            result.failures.append((index, str(e)))

    return result


def extract_records(payload: Any, shape: RecordShape) -> list[Any]:
    """Unwrap the `Infogempa.gempa` envelope into a list of records.

    Every shape accepts a single object or an array.

    Raises:
        UpstreamUnavailableError: If the envelope is malformed
    """
    if not isinstance(payload, dict):
        raise UpstreamUnavailableError("Payload is not a JSON object")

    info = payload.get("Infogempa")
    if not isinstance(info, dict) or "gempa" not in info:
        raise UpstreamUnavailableError("Payload has no Infogempa.gempa envelope")

    gempa = info["gempa"]
    if isinstance(gempa, dict):
        return [gempa]
    if isinstance(gempa, list):
        return gempa
    if gempa is None:
        return []

    raise UpstreamUnavailableError(
        f"Infogempa.gempa has unexpected type: {type(gempa).__name__}"
    )
