"""Deduplication logic - Pure functions and the alert ledger.

This module handles logic for determining which earthquakes have already
been alerted on. Persistence of the ledger is handled by the imperative
shell (client state store); this module only holds the in-memory logic.
"""

from collections.abc import Iterable

from src.core.earthquake import Earthquake


# Number of alerted IDs remembered per client
DEFAULT_LEDGER_SIZE = 100


class AlertLedger:
    """Bounded, insertion-ordered set of already-alerted earthquake IDs.

    Holds at most `max_size` IDs. When full, the ID inserted earliest is
    evicted first, regardless of how recent the earthquake itself is.
    Used only for deduplication, never for display.
    """

    def __init__(
        self,
        ids: Iterable[str] = (),
        max_size: int = DEFAULT_LEDGER_SIZE,
    ) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self._ids: dict[str, None] = {}
        for earthquake_id in ids:
            self.append(earthquake_id)

    def __contains__(self, earthquake_id: object) -> bool:
        return earthquake_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self):
        return iter(self._ids)

    @property
    def ids(self) -> list[str]:
        """IDs in insertion order, oldest first."""
        return list(self._ids)

    def append(self, earthquake_id: str) -> None:
        """Record an alerted ID, evicting the oldest entries past max_size.

        Appending an ID that is already present is a no-op.
        """
        if earthquake_id in self._ids:
            return

        self._ids[earthquake_id] = None
        while len(self._ids) > self.max_size:
            oldest = next(iter(self._ids))
            del self._ids[oldest]

    def extend(self, earthquake_ids: Iterable[str]) -> None:
        for earthquake_id in earthquake_ids:
            self.append(earthquake_id)


def get_earthquake_ids(earthquakes: list[Earthquake]) -> set[str]:
    """Extract IDs from a list of earthquakes.

    Pure function.

    Args:
        earthquakes: List of earthquakes

    Returns:
        Set of earthquake IDs
    """
    return {e.id for e in earthquakes}


def filter_newly_observed(
    earthquakes: list[Earthquake],
    previously_seen: set[str],
) -> list[Earthquake]:
    """Filter out earthquakes seen in the previous poll.

    Pure function.

    Args:
        earthquakes: Earthquakes from the current poll
        previously_seen: IDs from the previous poll

    Returns:
        Earthquakes not present in the previous poll, in input order
    """
    return [e for e in earthquakes if e.id not in previously_seen]


def filter_already_alerted(
    earthquakes: list[Earthquake],
    ledger: AlertLedger,
) -> list[Earthquake]:
    """Filter out earthquakes that have already been alerted.

    Pure function.

    Args:
        earthquakes: List of earthquakes to filter
        ledger: Ledger of already-alerted IDs

    Returns:
        List of earthquakes that haven't been alerted yet
    """
    return [e for e in earthquakes if e.id not in ledger]
