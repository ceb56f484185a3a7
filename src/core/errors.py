"""Error taxonomy for the ingestion and query pipeline.

Record- and source-level errors are contained where they happen and logged.
Only StoreUnavailableError and InvalidQueryError reach the API boundary.
"""


class EarthquakeAlertsError(Exception):
    """Base class for all pipeline errors."""


class MalformedRecordError(EarthquakeAlertsError):
    """A single upstream bulletin record could not be normalized."""


class UpstreamUnavailableError(EarthquakeAlertsError):
    """An upstream source timed out, errored, or returned a bad envelope.

    Attributes:
        source_name: Name of the failing source, if known
    """

    def __init__(self, message: str, source_name: str | None = None) -> None:
        super().__init__(message)
        self.source_name = source_name


class StoreUnavailableError(EarthquakeAlertsError):
    """The persistence layer could not be reached."""


class InvalidQueryError(EarthquakeAlertsError):
    """Caller supplied missing or out-of-range query parameters."""
