"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from src.core.dedup import DEFAULT_LEDGER_SIZE
from src.core.earthquake import TimeFilter
from src.core.alerts import MIN_ALERT_MAGNITUDE
from src.core.normalizer import BMKG_BASE_URL, RecordShape


DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0
DEFAULT_INTERVAL_SECONDS = 5 * 60

STORE_BACKENDS = ("memory", "sqlite", "firestore")


@dataclass(frozen=True)
class UpstreamSource:
    """An upstream BMKG feed endpoint.

    Attributes:
        name: Source identifier used in fetch logs
        path: Path relative to the BMKG base URL
        shape: Record shape served by this endpoint
        timeout_seconds: Per-source request timeout
        enabled: Whether the source is fetched
    """
    name: str
    path: str
    shape: RecordShape
    timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    enabled: bool = True


DEFAULT_SOURCES = (
    UpstreamSource("autogempa", "/DataMKG/TEWS/autogempa.json", RecordShape.LATEST),
    UpstreamSource("gempaterkini", "/DataMKG/TEWS/gempaterkini.json", RecordShape.RECENT),
    UpstreamSource("gempadirasakan", "/DataMKG/TEWS/gempadirasakan.json", RecordShape.FELT),
)


@dataclass
class ClientConfig:
    """Client-side polling and alerting configuration.

    Attributes:
        api_base_url: Base URL of the served query API
        poll_interval_seconds: How often the client polls
        state_path: JSON file holding user location and alert ledger
        notification_webhook_url: Webhook for alerts (None logs only)
        alert_min_magnitude: Minimum magnitude to alert on
        ledger_size: Number of alerted IDs remembered
        time_filter: Time window applied to polled earthquakes
        list_limit: Earthquakes fetched when no location is saved
        request_timeout_seconds: Timeout for API and webhook requests
    """
    api_base_url: str = "http://localhost:8000"
    poll_interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    state_path: str = "data/client_state.json"
    notification_webhook_url: str | None = None
    alert_min_magnitude: float = MIN_ALERT_MAGNITUDE
    ledger_size: int = DEFAULT_LEDGER_SIZE
    time_filter: TimeFilter = TimeFilter.REALTIME
    list_limit: int = 200
    request_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        bmkg_base_url: BMKG data host
        sources: Upstream feed endpoints
        ingestion_interval_seconds: How often an ingestion cycle runs
        store_backend: One of STORE_BACKENDS
        sqlite_path: Database file for the sqlite backend
        firestore_database: Firestore database name (None for default)
        firestore_collection: Firestore collection for earthquakes
        firestore_fetch_log_collection: Firestore collection for fetch logs
        stats_timezone: IANA timezone defining "today" for stats
        client: Client-side settings
    """
    bmkg_base_url: str = BMKG_BASE_URL
    sources: list[UpstreamSource] = field(default_factory=lambda: list(DEFAULT_SOURCES))
    ingestion_interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    store_backend: str = "memory"
    sqlite_path: str = "data/earthquakes.db"
    firestore_database: str | None = None
    firestore_collection: str = "earthquakes"
    firestore_fetch_log_collection: str = "fetch_logs"
    stats_timezone: str = "Asia/Jakarta"
    client: ClientConfig = field(default_factory=ClientConfig)

    @property
    def enabled_sources(self) -> list[UpstreamSource]:
        return [s for s in self.sources if s.enabled]


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if config.store_backend not in STORE_BACKENDS:
        errors.append(ValidationError(
            field="store_backend",
            message=f"Unknown store backend '{config.store_backend}', "
                    f"expected one of {', '.join(STORE_BACKENDS)}",
        ))

    if config.ingestion_interval_seconds <= 0:
        errors.append(ValidationError(
            field="ingestion_interval_seconds",
            message=f"Interval must be positive, got {config.ingestion_interval_seconds}",
        ))

    names = [s.name for s in config.sources]
    for i, source in enumerate(config.sources):
        if source.timeout_seconds <= 0:
            errors.append(ValidationError(
                field=f"sources[{i}].timeout_seconds",
                message=f"Timeout must be positive, got {source.timeout_seconds}",
            ))
        if names.count(source.name) > 1:
            errors.append(ValidationError(
                field=f"sources[{i}].name",
                message=f"Duplicate source name '{source.name}'",
            ))

    if not config.enabled_sources:
        errors.append(ValidationError(
            field="sources",
            message="No upstream sources enabled",
            severity="warning",
        ))

    client = config.client
    if client.poll_interval_seconds <= 0:
        errors.append(ValidationError(
            field="client.poll_interval_seconds",
            message=f"Interval must be positive, got {client.poll_interval_seconds}",
        ))
    if client.ledger_size <= 0:
        errors.append(ValidationError(
            field="client.ledger_size",
            message=f"Ledger size must be positive, got {client.ledger_size}",
        ))

    webhook = client.notification_webhook_url
    if webhook and webhook.startswith("${"):
        errors.append(ValidationError(
            field="client.notification_webhook_url",
            message="Webhook URL not resolved (still contains placeholder)",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
