"""SQLite Earthquake Store - Imperative Shell.

Single-file relational backend for the storage port. Upserts use
INSERT ... ON CONFLICT so that a later fetch of the same event replaces
its fields while keeping the first recorded_at.
"""

import logging
import sqlite3
import threading
from pathlib import Path

from src.core.earthquake import Earthquake
from src.core.errors import StoreUnavailableError
from src.core.fetch_log import FetchLog
from src.shell.store import EarthquakeStore, QueryPage, now_millis


logger = logging.getLogger(__name__)


_MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS earthquakes (
          id TEXT NOT NULL PRIMARY KEY,
          occurred_at INTEGER NOT NULL,
          magnitude REAL NOT NULL,
          depth_km REAL NOT NULL,
          latitude REAL NOT NULL,
          longitude REAL NOT NULL,
          region TEXT NOT NULL,
          tsunami_potential TEXT NULL,
          felt_report TEXT NULL,
          shakemap_url TEXT NULL,
          recorded_at INTEGER NOT NULL
        );

        CREATE INDEX IF NOT EXISTS earthquakes_occurred_at_idx ON earthquakes(occurred_at);
        CREATE INDEX IF NOT EXISTS earthquakes_magnitude_idx ON earthquakes(magnitude);

        CREATE TABLE IF NOT EXISTS fetch_logs (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          source_name TEXT NOT NULL,
          status TEXT NOT NULL,
          message TEXT NOT NULL,
          at INTEGER NOT NULL,
          records_stored INTEGER NOT NULL DEFAULT 0,
          records_rejected INTEGER NOT NULL DEFAULT 0
        );
        """,
    ),
]

_UPSERT_SQL = """
INSERT INTO earthquakes (
  id, occurred_at, magnitude, depth_km, latitude, longitude,
  region, tsunami_potential, felt_report, shakemap_url, recorded_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
  occurred_at = excluded.occurred_at,
  magnitude = excluded.magnitude,
  depth_km = excluded.depth_km,
  latitude = excluded.latitude,
  longitude = excluded.longitude,
  region = excluded.region,
  tsunami_potential = excluded.tsunami_potential,
  felt_report = excluded.felt_report,
  shakemap_url = excluded.shakemap_url
"""


def _apply_migrations(conn: sqlite3.Connection) -> None:
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER NOT NULL PRIMARY KEY);"
    )
    row = conn.execute(
        "SELECT COALESCE(MAX(version), 0) AS v FROM schema_migrations;"
    ).fetchone()
    current_version = int(row["v"])

    for version, sql in _MIGRATIONS:
        if version <= current_version:
            continue
        conn.executescript(sql)
        conn.execute("INSERT INTO schema_migrations(version) VALUES (?);", (version,))
        conn.commit()


def _row_to_earthquake(row: sqlite3.Row) -> Earthquake:
    return Earthquake(
        id=row["id"],
        occurred_at=row["occurred_at"],
        magnitude=row["magnitude"],
        depth_km=row["depth_km"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        region=row["region"],
        tsunami_potential=row["tsunami_potential"],
        felt_report=row["felt_report"],
        shakemap_url=row["shakemap_url"],
        recorded_at=row["recorded_at"],
    )


class SqliteStore(EarthquakeStore):
    """Earthquake store backed by a SQLite database file."""

    def __init__(self, path: str | Path, clock=now_millis) -> None:
        """Open (and migrate) the database.

        Args:
            path: Database file, or ":memory:"

        Raises:
            StoreUnavailableError: If the database cannot be opened
        """
        self.path = str(path)
        self._clock = clock
        self._lock = threading.Lock()

        try:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA busy_timeout=5000;")
            _apply_migrations(self._conn)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailableError(f"Cannot open SQLite store at {self.path}: {e}") from e

        logger.info("Opened SQLite store at %s", self.path)

    def upsert(self, earthquake: Earthquake) -> None:
        params = (
            earthquake.id,
            earthquake.occurred_at,
            earthquake.magnitude,
            earthquake.depth_km,
            earthquake.latitude,
            earthquake.longitude,
            earthquake.region,
            earthquake.tsunami_potential,
            earthquake.felt_report,
            earthquake.shakemap_url,
            self._clock(),
        )
        try:
            with self._lock, self._conn:
                self._conn.execute(_UPSERT_SQL, params)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to upsert {earthquake.id}: {e}") from e

    def query_all(
        self,
        min_magnitude: float | None = None,
        max_magnitude: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> QueryPage:
        clauses: list[str] = []
        params: list[float] = []
        if min_magnitude is not None:
            clauses.append("magnitude >= ?")
            params.append(min_magnitude)
        if max_magnitude is not None:
            clauses.append("magnitude <= ?")
            params.append(max_magnitude)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        # LIMIT -1 means no limit in SQLite
        page_sql = (
            f"SELECT * FROM earthquakes {where} "
            "ORDER BY occurred_at DESC, id ASC LIMIT ? OFFSET ?"
        )
        page_params = [*params, -1 if limit is None else limit, offset]

        try:
            with self._lock:
                total = self._conn.execute(
                    f"SELECT COUNT(*) AS n FROM earthquakes {where}", params
                ).fetchone()["n"]
                rows = self._conn.execute(page_sql, page_params).fetchall()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to query earthquakes: {e}") from e

        return QueryPage(rows=[_row_to_earthquake(r) for r in rows], total=int(total))

    def get_by_id(self, earthquake_id: str) -> Earthquake | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT * FROM earthquakes WHERE id = ?", (earthquake_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to read {earthquake_id}: {e}") from e

        return _row_to_earthquake(row) if row is not None else None

    def append_fetch_log(self, entry: FetchLog) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """INSERT INTO fetch_logs
                       (source_name, status, message, at, records_stored, records_rejected)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (
                        entry.source_name,
                        entry.status.value,
                        entry.message,
                        entry.at,
                        entry.records_stored,
                        entry.records_rejected,
                    ),
                )
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Failed to append fetch log: {e}") from e

    def ping(self) -> None:
        try:
            with self._lock:
                self._conn.execute("SELECT 1").fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"SQLite store unreachable: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()
