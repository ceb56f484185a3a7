"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- BMKG bulletin normalization
- Geo/distance calculations and nearby search
- Alert decisions and deduplication ledger
- Notification formatting
- Query validation and statistics

All functions here are deterministic and have no I/O.
"""

from src.core.earthquake import Earthquake, filter_by_magnitude
from src.core.geo import UserLocation, calculate_distance, find_nearby, is_within_radius
from src.core.normalizer import RecordShape, normalize_batch, normalize_record
from src.core.alerts import decide
from src.core.dedup import AlertLedger, filter_already_alerted
from src.core.formatter import format_notification, format_earthquake_summary

__all__ = [
    # Earthquake
    "Earthquake",
    "filter_by_magnitude",
    # Geo
    "UserLocation",
    "calculate_distance",
    "find_nearby",
    "is_within_radius",
    # Normalizer
    "RecordShape",
    "normalize_batch",
    "normalize_record",
    # Alerts
    "decide",
    # Dedup
    "AlertLedger",
    "filter_already_alerted",
    # Formatter
    "format_notification",
    "format_earthquake_summary",
]
