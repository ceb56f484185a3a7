"""Firestore Earthquake Store - Imperative Shell.

This module persists canonical earthquakes and fetch logs to Google Cloud
Firestore. Each earthquake is one document whose ID is the deterministic
earthquake ID, so repeated ingestion overwrites instead of duplicating.

All I/O is contained here; normalization and query logic live in core.
"""

import logging
from dataclasses import dataclass
from typing import Any

from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from src.core.earthquake import Earthquake
from src.core.errors import StoreUnavailableError
from src.core.fetch_log import FetchLog, fetch_log_to_dict
from src.shell.store import EarthquakeStore, QueryPage, now_millis


logger = logging.getLogger(__name__)


# Default collection names
DEFAULT_COLLECTION = "earthquakes"
DEFAULT_FETCH_LOG_COLLECTION = "fetch_logs"

# Backend and credential failures both mean the store is unreachable
_STORE_ERRORS = (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)


@dataclass
class FirestoreConfig:
    """Configuration for Firestore store.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        collection: Collection holding earthquake documents
        fetch_log_collection: Collection holding fetch log documents
    """
    project_id: str | None = None
    database: str | None = None
    collection: str = DEFAULT_COLLECTION
    fetch_log_collection: str = DEFAULT_FETCH_LOG_COLLECTION


def _earthquake_to_document(earthquake: Earthquake) -> dict[str, Any]:
    return {
        "occurred_at": earthquake.occurred_at,
        "magnitude": earthquake.magnitude,
        "depth_km": earthquake.depth_km,
        "latitude": earthquake.latitude,
        "longitude": earthquake.longitude,
        "region": earthquake.region,
        "tsunami_potential": earthquake.tsunami_potential,
        "felt_report": earthquake.felt_report,
        "shakemap_url": earthquake.shakemap_url,
    }


def _document_to_earthquake(doc_id: str, data: dict[str, Any]) -> Earthquake:
    return Earthquake(
        id=doc_id,
        occurred_at=int(data["occurred_at"]),
        magnitude=float(data["magnitude"]),
        depth_km=float(data["depth_km"]),
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        region=data.get("region", ""),
        tsunami_potential=data.get("tsunami_potential"),
        felt_report=data.get("felt_report"),
        shakemap_url=data.get("shakemap_url"),
        recorded_at=data.get("recorded_at"),
    )


class FirestoreStore(EarthquakeStore):
    """Earthquake store backed by Firestore.

    This is part of the imperative shell - it handles database I/O.

    Document structure (collection `earthquakes`, document ID = earthquake ID):
    {
        "occurred_at": <epoch ms>,
        "magnitude": 5.5,
        ...
        "recorded_at": <epoch ms, set once>
    }

    Filtering on magnitude while ordering by occurred_at needs a composite
    index on (magnitude, occurred_at).
    """

    def __init__(
        self,
        config: FirestoreConfig | None = None,
        client: firestore.Client | None = None,
        clock=now_millis,
    ) -> None:
        """Initialize Firestore store.

        Args:
            config: Firestore configuration
            client: Pre-built Firestore client (created lazily if None)
        """
        self.config = config or FirestoreConfig()
        self._client = client
        self._clock = clock

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.config.project_id:
                kwargs['project'] = self.config.project_id
            if self.config.database:
                kwargs['database'] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _collection(self) -> Any:
        return self.client.collection(self.config.collection)

    def upsert(self, earthquake: Earthquake) -> None:
        """Insert or replace one earthquake document.

        This method performs database I/O.
        """
        data = _earthquake_to_document(earthquake)

        try:
            doc_ref = self._collection().document(earthquake.id)
            snapshot = doc_ref.get()
            if not snapshot.exists:
                data["recorded_at"] = self._clock()
            # merge=True keeps recorded_at of an existing document
            doc_ref.set(data, merge=True)
        except _STORE_ERRORS as e:
            logger.error("Failed to upsert earthquake %s: %s", earthquake.id, str(e))
            raise StoreUnavailableError(f"Firestore upsert failed: {e}") from e

    def query_all(
        self,
        min_magnitude: float | None = None,
        max_magnitude: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> QueryPage:
        """Query earthquakes newest first with optional magnitude filters.

        This method performs database I/O.
        """
        try:
            query = self._collection()
            if min_magnitude is not None:
                query = query.where(filter=FieldFilter("magnitude", ">=", min_magnitude))
            if max_magnitude is not None:
                query = query.where(filter=FieldFilter("magnitude", "<=", max_magnitude))
            query = query.order_by("occurred_at", direction=firestore.Query.DESCENDING)

            total = query.count().get()[0][0].value

            page = query
            if offset:
                page = page.offset(offset)
            if limit is not None:
                page = page.limit(limit)

            rows = [
                _document_to_earthquake(doc.id, doc.to_dict())
                for doc in page.stream()
            ]
        except _STORE_ERRORS as e:
            logger.error("Failed to query earthquakes: %s", str(e))
            raise StoreUnavailableError(f"Firestore query failed: {e}") from e

        return QueryPage(rows=rows, total=int(total))

    def get_by_id(self, earthquake_id: str) -> Earthquake | None:
        """Fetch one earthquake document.

        This method performs database I/O.
        """
        try:
            doc = self._collection().document(earthquake_id).get()
        except _STORE_ERRORS as e:
            logger.error("Failed to fetch earthquake %s: %s", earthquake_id, str(e))
            raise StoreUnavailableError(f"Firestore read failed: {e}") from e

        if not doc.exists:
            return None
        return _document_to_earthquake(doc.id, doc.to_dict())

    def append_fetch_log(self, entry: FetchLog) -> None:
        """Append a fetch log document with an auto-generated ID.

        This method performs database I/O.
        """
        try:
            self.client.collection(self.config.fetch_log_collection).add(
                fetch_log_to_dict(entry)
            )
        except _STORE_ERRORS as e:
            logger.error("Failed to append fetch log: %s", str(e))
            raise StoreUnavailableError(f"Firestore write failed: {e}") from e

    def ping(self) -> None:
        """Read one document to verify connectivity."""
        try:
            list(self._collection().limit(1).stream())
        except _STORE_ERRORS as e:
            raise StoreUnavailableError(f"Firestore unreachable: {e}") from e
