"""Earthquake Store - Imperative Shell.

This module defines the storage port used by ingestion and queries, plus
an in-memory implementation. Rows are keyed by the deterministic earthquake
ID and written with insert-or-replace semantics.
"""

import abc
import dataclasses
import logging
import threading
import time
from dataclasses import dataclass, field

from src.core.config import Config
from src.core.earthquake import Earthquake, filter_by_magnitude, sort_newest_first
from src.core.fetch_log import FetchLog


logger = logging.getLogger(__name__)


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class QueryPage:
    """One page of earthquakes plus the unpaginated match count.

    Attributes:
        rows: Earthquakes on this page, newest first
        total: Number of earthquakes matching the filters
    """
    rows: list[Earthquake] = field(default_factory=list)
    total: int = 0


class EarthquakeStore(abc.ABC):
    """Storage port for canonical earthquakes and fetch logs.

    Implementations must be safe to call from concurrent threads. Backend
    failures are raised as StoreUnavailableError.
    """

    @abc.abstractmethod
    def upsert(self, earthquake: Earthquake) -> None:
        """Insert or replace an earthquake keyed by its ID.

        Sets recorded_at on first insert; a replace keeps the row's
        original recorded_at so re-ingesting unchanged data is a no-op.
        """

    @abc.abstractmethod
    def query_all(
        self,
        min_magnitude: float | None = None,
        max_magnitude: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> QueryPage:
        """Return earthquakes ordered by occurred_at descending."""

    @abc.abstractmethod
    def get_by_id(self, earthquake_id: str) -> Earthquake | None:
        """Return one earthquake, None if not found."""

    @abc.abstractmethod
    def append_fetch_log(self, entry: FetchLog) -> None:
        """Append one fetch log entry."""

    @abc.abstractmethod
    def ping(self) -> None:
        """Verify the backend is reachable.

        Raises:
            StoreUnavailableError: If the backend cannot be reached
        """


class InMemoryStore(EarthquakeStore):
    """Process-local store, used for tests and single-process deployments."""

    def __init__(self, clock=now_millis) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._rows: dict[str, Earthquake] = {}
        self._fetch_logs: list[FetchLog] = []

    def upsert(self, earthquake: Earthquake) -> None:
        with self._lock:
            existing = self._rows.get(earthquake.id)
            recorded_at = existing.recorded_at if existing else self._clock()
            self._rows[earthquake.id] = dataclasses.replace(
                earthquake,
                recorded_at=recorded_at,
                distance_km=None,
            )

    def query_all(
        self,
        min_magnitude: float | None = None,
        max_magnitude: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> QueryPage:
        with self._lock:
            rows = list(self._rows.values())

        matching = sort_newest_first(
            filter_by_magnitude(rows, min_magnitude, max_magnitude)
        )
        end = None if limit is None else offset + limit
        return QueryPage(rows=matching[offset:end], total=len(matching))

    def get_by_id(self, earthquake_id: str) -> Earthquake | None:
        with self._lock:
            return self._rows.get(earthquake_id)

    def append_fetch_log(self, entry: FetchLog) -> None:
        with self._lock:
            self._fetch_logs.append(entry)

    def ping(self) -> None:
        return None

    @property
    def fetch_logs(self) -> list[FetchLog]:
        with self._lock:
            return list(self._fetch_logs)


def create_store(config: Config) -> EarthquakeStore:
    """Create the store selected by configuration.

    Args:
        config: Application configuration

    Returns:
        Store for config.store_backend

    Raises:
        ValueError: If the backend is unknown
    """
    backend = config.store_backend
    logger.info("Using %s earthquake store", backend)

    if backend == "memory":
        return InMemoryStore()

    if backend == "sqlite":
        from src.shell.sqlite_store import SqliteStore
        return SqliteStore(config.sqlite_path)

    if backend == "firestore":
        from src.shell.firestore_client import FirestoreConfig, FirestoreStore
        return FirestoreStore(FirestoreConfig(
            database=config.firestore_database,
            collection=config.firestore_collection,
            fetch_log_collection=config.firestore_fetch_log_collection,
        ))

    raise ValueError(f"Unknown store backend: {backend}")
