"""Orchestrator - Wires Functional Core and Imperative Shell.

This module coordinates one ingestion cycle: every enabled BMKG source is
fetched in parallel, its records are normalized by the pure core, and the
resulting earthquakes are upserted into the store. Each source produces
exactly one FetchLog, whatever happens to its siblings.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from src.core.config import Config, UpstreamSource
from src.core.errors import StoreUnavailableError, UpstreamUnavailableError
from src.core.fetch_log import FetchLog, FetchStatus
from src.core.normalizer import normalize_batch
from src.shell.bmkg_client import BMKGClient
from src.shell.store import EarthquakeStore, now_millis


logger = logging.getLogger(__name__)


# Extra time allowed past a source's request timeout before it is abandoned
TIMEOUT_GRACE_SECONDS = 2.0


class IngestionOrchestrator:
    """Runs ingestion cycles against the configured upstream sources.

    This class wires together:
    - BMKG client (fetches upstream payloads)
    - Core normalizer (canonical records)
    - Earthquake store (idempotent upserts and fetch logs)
    """

    def __init__(
        self,
        config: Config,
        store: EarthquakeStore,
        bmkg_client: BMKGClient | None = None,
        clock=now_millis,
    ) -> None:
        """Initialize orchestrator.

        Args:
            config: Application configuration
            store: Store that receives earthquakes and fetch logs
            bmkg_client: BMKG client (created if not provided)
            clock: Returns the current time in epoch millis
        """
        self.config = config
        self.store = store
        self.bmkg_client = bmkg_client or BMKGClient(base_url=config.bmkg_base_url)
        self._clock = clock

    def _error_log(self, source: UpstreamSource, message: str) -> FetchLog:
        return FetchLog(
            source_name=source.name,
            status=FetchStatus.ERROR,
            message=message,
            at=self._clock(),
        )

    def ingest_source(self, source: UpstreamSource) -> FetchLog:
        """Fetch, normalize and store one source.

        Never raises: every failure becomes an error FetchLog.

        Args:
            source: Upstream source to ingest

        Returns:
            FetchLog describing the outcome
        """
        try:
            records = self.bmkg_client.fetch_records(source)
        except UpstreamUnavailableError as e:
            logger.warning("Source %s unavailable: %s", source.name, e)
            return self._error_log(source, str(e))

        result = normalize_batch(records, source.shape, self.config.bmkg_base_url)
        for index, reason in result.failures:
            logger.warning(
                "Rejected record %d from %s: %s", index, source.name, reason
            )

        stored = 0
        try:
            for earthquake in result.earthquakes:
                self.store.upsert(earthquake)
                stored += 1
        except StoreUnavailableError as e:
            logger.error("Store failed while ingesting %s: %s", source.name, e)
            return FetchLog(
                source_name=source.name,
                status=FetchStatus.ERROR,
                message=f"Store unavailable after {stored} records: {e}",
                at=self._clock(),
                records_stored=stored,
                records_rejected=len(result.failures),
            )

        logger.info(
            "Ingested %s: %d stored, %d rejected",
            source.name,
            stored,
            len(result.failures),
        )
        return FetchLog(
            source_name=source.name,
            status=FetchStatus.SUCCESS,
            message=(
                f"Fetched {len(records)} records "
                f"({stored} stored, {len(result.failures)} rejected)"
            ),
            at=self._clock(),
            records_stored=stored,
            records_rejected=len(result.failures),
        )

    def _collect(
        self,
        source: UpstreamSource,
        future: Future,
        deadline: float,
    ) -> FetchLog:
        try:
            return future.result(timeout=max(0.0, deadline - time.monotonic()))
        except FutureTimeoutError:
            future.cancel()
            logger.error(
                "Source %s exceeded %.1fs, abandoning", source.name, source.timeout_seconds
            )
            return self._error_log(
                source, f"Request timed out after {source.timeout_seconds}s"
            )
        except Exception as e:
            logger.exception("Unexpected error ingesting %s", source.name)
            return self._error_log(source, f"Unexpected error: {e}")

    def _record(self, entry: FetchLog) -> None:
        try:
            self.store.append_fetch_log(entry)
        except StoreUnavailableError as e:
            logger.error("Failed to append fetch log for %s: %s", entry.source_name, e)

    def run_ingestion_cycle(self) -> list[FetchLog]:
        """Run one ingestion cycle over all enabled sources.

        Sources are fetched concurrently, one task per source. A source that
        fails (timeout, network, HTTP, malformed envelope or store failure)
        only affects its own FetchLog.

        Returns:
            One FetchLog per attempted source, in source order
        """
        sources = self.config.enabled_sources
        if not sources:
            logger.warning("No upstream sources enabled, skipping cycle")
            return []

        logger.info("Starting ingestion cycle over %d sources", len(sources))

        executor = ThreadPoolExecutor(
            max_workers=len(sources),
            thread_name_prefix="ingest",
        )
        try:
            started = time.monotonic()
            futures = [
                (source, executor.submit(self.ingest_source, source))
                for source in sources
            ]
            logs = [
                self._collect(
                    source,
                    future,
                    started + source.timeout_seconds + TIMEOUT_GRACE_SECONDS,
                )
                for source, future in futures
            ]
        finally:
            # Abandoned fetches finish in the background
            executor.shutdown(wait=False, cancel_futures=True)

        for entry in logs:
            self._record(entry)

        succeeded = sum(1 for entry in logs if entry.success)
        logger.info(
            "Ingestion cycle complete: %d/%d sources succeeded, %d records stored",
            succeeded,
            len(logs),
            sum(entry.records_stored for entry in logs),
        )
        return logs
