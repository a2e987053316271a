"""
Sync trigger -- an external event source that runs push then pull.

Anything that wants to sync opportunistically (a timer, a device
gesture, a connectivity callback) calls fire(). The trigger only
uses the engine's public surface, exactly like any other caller.

    trigger = SyncTrigger(engine, interval=300, on_result=report)
    trigger.start()     # background loop
    trigger.fire()      # manual sync, e.g. from a gesture handler
    trigger.stop()
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .models import SyncOutcome
from .sync.engine import SyncEngine

logger = logging.getLogger("usersync.trigger")

ResultCallback = Callable[[str, SyncOutcome], None]


class SyncTrigger:
    """Runs sync cycles on demand and, optionally, on a timer.

    A cycle is push, then pull, then (if enabled) a retry of failed
    remote deletes. Cycles never overlap: a fire() that arrives while
    one is running is skipped.

    The trigger stops through the engine's stop_event (one is attached
    if the engine has none), so stop() also cancels a cycle in flight.

    Args:
        engine: The sync engine to drive.
        interval: Seconds between background cycles (None = manual only).
        retry_deletes: Also retry tombstoned remote deletes each cycle.
        on_result: Called with ("push" | "pull" | "retry", outcome).
    """

    def __init__(
        self,
        engine: SyncEngine,
        interval: Optional[float] = None,
        retry_deletes: bool = False,
        on_result: Optional[ResultCallback] = None,
    ) -> None:
        self.engine = engine
        self.interval = interval
        self.retry_deletes = retry_deletes
        self.on_result = on_result
        self.cycles_completed = 0
        self._cycle_lock = threading.Lock()
        if engine.stop_event is None:
            engine.stop_event = threading.Event()
        self._stop_event = engine.stop_event
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def fire(self) -> Optional[dict[str, SyncOutcome]]:
        """Run one sync cycle now.

        Returns:
            Outcomes keyed by step, or None if a cycle was already running.
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.info("Sync already in progress, trigger skipped")
            return None

        try:
            logger.debug("Sync triggered")
            results: dict[str, SyncOutcome] = {}
            steps = [("push", self.engine.push), ("pull", self.engine.pull)]
            if self.retry_deletes:
                steps.append(("retry", self.engine.retry_failed_deletes))

            for kind, step in steps:
                outcome = step()
                results[kind] = outcome
                self._report(kind, outcome)

            self.cycles_completed += 1
            return results
        finally:
            self._cycle_lock.release()

    def _report(self, kind: str, outcome: SyncOutcome) -> None:
        if outcome.ok:
            logger.info("%s: %s", kind, outcome.message)
        else:
            logger.warning("%s failed: %s", kind, outcome.message)

        if self.on_result is None:
            return
        try:
            self.on_result(kind, outcome)
        except Exception as exc:
            logger.error("Sync result callback failed: %s", exc)

    def start(self) -> None:
        """Start the background loop. Requires an interval."""
        if self.interval is None:
            raise ValueError("SyncTrigger.start() needs an interval")
        if self.running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, name="usersync-trigger", daemon=True,
        )
        self._thread.start()
        logger.info("Sync trigger started (every %ss)", self.interval)

    def stop(self, timeout: float = 5.0) -> None:
        """Cancel the running cycle, signal the loop and wait for it.

        If the thread outlives the timeout it stays tracked, so
        running remains True and start() will not launch a second loop.
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Sync trigger still finishing a cycle after %ss", timeout)
                return
            self._thread = None
        logger.info("Sync trigger stopped")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until stop() is called; True if stopped."""
        return self._stop_event.wait(timeout=timeout)

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self.fire()
            self._stop_event.wait(timeout=self.interval)
