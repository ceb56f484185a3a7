"""Interval Scheduler - Imperative Shell.

Runs a task on a fixed interval in a background thread. The first run
happens immediately at start.
"""

import logging
import threading
from typing import Callable


logger = logging.getLogger(__name__)


class IntervalScheduler:
    """Fixed-interval task runner.

    With allow_overlap=True every tick starts the task on its own thread,
    even while an earlier run is still going. With allow_overlap=False a
    tick is skipped while the previous run is in progress.
    """

    def __init__(
        self,
        task: Callable[[], object],
        interval_seconds: float,
        name: str = "scheduler",
        allow_overlap: bool = False,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"Interval must be positive, got {interval_seconds}")

        self.task = task
        self.interval_seconds = interval_seconds
        self.name = name
        self.allow_overlap = allow_overlap

        self._stop = threading.Event()
        self._running = threading.Lock()
        self._thread: threading.Thread | None = None
        self._workers: list[threading.Thread] = []

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_task(self) -> None:
        try:
            self.task()
        except Exception:
            logger.exception("Scheduled task %s failed", self.name)

    def _run_exclusive(self) -> None:
        try:
            self._run_task()
        finally:
            self._running.release()

    def tick(self) -> threading.Thread | None:
        """Start one run of the task in a worker thread.

        Returns:
            The worker thread, or None if the tick was skipped
        """
        if self.allow_overlap:
            target = self._run_task
        elif self._running.acquire(blocking=False):
            target = self._run_exclusive
        else:
            logger.info("Previous %s run still in progress, skipping tick", self.name)
            return None

        worker = threading.Thread(target=target, name=f"{self.name}-run", daemon=True)
        self._workers = [w for w in self._workers if w.is_alive()]
        self._workers.append(worker)
        worker.start()
        return worker

    def _loop(self) -> None:
        logger.info("%s started, interval %.0fs", self.name, self.interval_seconds)
        while not self._stop.is_set():
            self.tick()
            if self._stop.wait(self.interval_seconds):
                break
        logger.info("%s stopped", self.name)

    def start(self) -> None:
        """Start the scheduler loop in a background thread."""
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop scheduling new runs and wait for in-flight ones.

        Args:
            timeout: Seconds to wait for each thread (None waits forever)
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        for worker in self._workers:
            worker.join(timeout)

    def run_forever(self) -> None:
        """Run until interrupted (Ctrl+C)."""
        self.start()
        try:
            while self.is_running:
                self._stop.wait(1.0)
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping %s", self.name)
        finally:
            self.stop()
