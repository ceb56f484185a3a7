"""Fetch log entries - Pure data structures.

One entry is written per upstream source per ingestion cycle. Entries are
for observability only and are never read back by the pipeline.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FetchStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class FetchLog:
    """Result of one ingestion attempt against one upstream source.

    Attributes:
        source_name: Upstream source name (e.g. "autogempa")
        status: success or error
        message: Human-readable outcome
        at: Attempt time in milliseconds since epoch
        records_stored: Records upserted into the store
        records_rejected: Records rejected by the normalizer
    """
    source_name: str
    status: FetchStatus
    message: str
    at: int
    records_stored: int = 0
    records_rejected: int = 0

    @property
    def success(self) -> bool:
        return self.status == FetchStatus.SUCCESS


def fetch_log_to_dict(entry: FetchLog) -> dict[str, Any]:
    """Convert a FetchLog to a JSON-serializable dict."""
    return {
        "source_name": entry.source_name,
        "status": entry.status.value,
        "message": entry.message,
        "at": entry.at,
        "records_stored": entry.records_stored,
        "records_rejected": entry.records_rejected,
    }
