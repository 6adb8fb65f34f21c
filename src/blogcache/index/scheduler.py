"""Background refresh loop."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Callable

from blogcache.index.refresher import Refresher, RefreshStats

LOGGER = logging.getLogger(__name__)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"


class RefreshScheduler:
    """Runs :meth:`Refresher.refresh` every ``interval`` seconds on one thread.

    At most one pass runs at a time. A trigger that arrives while a pass is in
    progress is dropped rather than queued. Shutdown is cooperative: :meth:`stop`
    sets a flag that the loop checks between passes, so a running pass always
    completes.
    """

    def __init__(
        self,
        refresher: Refresher,
        *,
        interval: float = 5,
        on_pass: Callable[[RefreshStats], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.refresher = refresher
        self.interval = interval
        self.on_pass = on_pass
        self._pass_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.passes = 0
        self.last_stats: RefreshStats | None = None

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.SCANNING if self._pass_lock.locked() else SchedulerState.IDLE

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def trigger(self) -> RefreshStats | None:
        """Run one pass now, or return None if a pass is already running."""
        if not self._pass_lock.acquire(blocking=False):
            LOGGER.debug("Refresh already in progress, dropping trigger")
            return None
        try:
            stats = self.refresher.refresh()
            self.passes += 1
            self.last_stats = stats
        finally:
            self._pass_lock.release()

        if self.on_pass is not None:
            try:
                self.on_pass(stats)
            except Exception:
                LOGGER.exception("Refresh callback failed")
        return stats

    def run_forever(self) -> None:
        """Refresh until :meth:`stop` is called. Blocks the calling thread."""
        LOGGER.info("Refreshing %s every %ss", self.refresher.root, self.interval)
        while not self._stop_event.is_set():
            try:
                self.trigger()
            except Exception:
                LOGGER.exception("Refresh pass failed")
            self._stop_event.wait(self.interval)
        LOGGER.info("Refresh loop stopped")

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_forever, name="blogcache-refresh", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Request shutdown and wait for the current pass to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
