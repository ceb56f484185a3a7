"""Client Poller - Wires the client-side alert flow.

Each poll reads the served API (nearby the saved location, or the recent
list when no location is saved), applies the selected time window, decides
which new earthquakes deserve an alert, persists the ledger and delivers
notifications. The previous poll's IDs are kept in memory; the ledger is
persisted so duplicate alerts are suppressed across restarts.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.core.alerts import AlertPolicy, decide
from src.core.config import ClientConfig
from src.core.dedup import get_earthquake_ids
from src.core.earthquake import Earthquake, filter_by_time_window
from src.core.errors import UpstreamUnavailableError
from src.core.formatter import format_notification
from src.shell.api_client import EarthquakeApiClient
from src.shell.local_state import ClientStateStore
from src.shell.notification_client import NotificationClient
from src.shell.scheduler import IntervalScheduler


logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    """Result of one client poll.

    Attributes:
        earthquakes: Earthquakes shown after the time filter
        alerts: Earthquakes that were alerted on this poll
        error: Error message if the API could not be read
    """
    earthquakes: list[Earthquake] = field(default_factory=list)
    alerts: list[Earthquake] = field(default_factory=list)
    error: str | None = None


class ClientPoller:
    """Polls the query API and raises alerts for the saved location."""

    def __init__(
        self,
        api_client: EarthquakeApiClient,
        state_store: ClientStateStore,
        notifier: NotificationClient,
        config: ClientConfig | None = None,
    ) -> None:
        self.api_client = api_client
        self.state_store = state_store
        self.notifier = notifier
        self.config = config or ClientConfig()
        self.policy = AlertPolicy(min_magnitude=self.config.alert_min_magnitude)
        # IDs of the previous poll; None until the first successful poll
        self._previous_ids: set[str] | None = None

    def poll(self, now: datetime | None = None) -> PollResult:
        """Run one poll.

        Args:
            now: Current time for the time filter (defaults to UTC now)

        Returns:
            PollResult; an unreachable API yields an error and no alerts
        """
        now = now or datetime.now(timezone.utc)
        location = self.state_store.get_user_location()

        try:
            if location is not None:
                earthquakes = self.api_client.fetch_nearby(
                    location.latitude,
                    location.longitude,
                    location.radius_km,
                )
            else:
                earthquakes = self.api_client.fetch_earthquakes(
                    limit=self.config.list_limit
                )
        except UpstreamUnavailableError as e:
            logger.error("Poll failed: %s", e)
            return PollResult(error=str(e))

        earthquakes = filter_by_time_window(earthquakes, self.config.time_filter, now)

        alerts: list[Earthquake] = []
        if self._previous_ids is not None and location is not None:
            ledger = self.state_store.load_ledger()
            alerts = decide(
                earthquakes,
                self._previous_ids,
                location,
                ledger,
                self.policy,
            )
            if alerts:
                self.state_store.save_ledger(ledger)
                self._notify(alerts)

        self._previous_ids = get_earthquake_ids(earthquakes)

        logger.info(
            "Poll complete: %d earthquakes, %d alerts",
            len(earthquakes),
            len(alerts),
        )
        return PollResult(earthquakes=earthquakes, alerts=alerts)

    def _notify(self, alerts: list[Earthquake]) -> None:
        for earthquake in alerts:
            response = self.notifier.send(format_notification(earthquake))
            if not response.success:
                logger.error(
                    "Failed to deliver alert for %s: %s",
                    earthquake.id,
                    response.error,
                )

    def scheduler(self) -> IntervalScheduler:
        """Build a non-overlapping scheduler that polls on the client interval."""
        return IntervalScheduler(
            task=self.poll,
            interval_seconds=self.config.poll_interval_seconds,
            name="client-poller",
            allow_overlap=False,
        )
