"""
Single-threaded cooperative scheduler for a display or admin surface.

Repeating timers are checked against a clock on every loop pass, the same
way widgets are polled for `should_update`. Work arriving from foreign
threads (realtime listener threads) is queued and executed on the loop.
"""

import itertools
import logging
import queue
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from ..utils.errors import safe_execute

logger = logging.getLogger(__name__)


class TimerHandle:
    """
    Handle for a repeating timer.

    Attributes:
        timer_id: Sequential identifier, unique per scheduler
        interval: Seconds between fires
        next_run: Clock value at which the timer is next due
    """

    def __init__(self, scheduler: "Scheduler", timer_id: int, interval: float,
                 callback: Callable[[], Any], next_run: float):
        self._scheduler = scheduler
        self.timer_id = timer_id
        self.interval = interval
        self.callback = callback
        self.next_run = next_run
        self.cancelled = False

    def cancel(self) -> None:
        """Cancel the timer. Safe to call more than once."""
        if self.cancelled:
            return
        self.cancelled = True
        self._scheduler._discard(self)

    def __repr__(self) -> str:
        return f"<TimerHandle(id={self.timer_id}, interval={self.interval}, cancelled={self.cancelled})>"


class Scheduler:
    """
    Cooperative event loop with repeating timers.

    Args:
        clock: Monotonic clock returning seconds (injectable for tests)
        poll_interval: Sleep between loop passes in run()
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, poll_interval: float = 0.01):
        self.clock = clock
        self.poll_interval = poll_interval
        self.running = False
        self._timers: Dict[int, TimerHandle] = {}
        self._ids = itertools.count(1)
        self._pending: "queue.Queue[Callable[[], Any]]" = queue.Queue()
        self._lock = threading.Lock()

    def call_every(self, interval: float, callback: Callable[[], Any]) -> TimerHandle:
        """
        Schedule callback every `interval` seconds, first fire one interval from now.

        Returns:
            TimerHandle that cancels the timer
        """
        if interval <= 0:
            raise ValueError(f"Timer interval must be positive, got {interval}")

        with self._lock:
            handle = TimerHandle(self, next(self._ids), interval, callback, self.clock() + interval)
            self._timers[handle.timer_id] = handle
        logger.debug(f"Scheduled timer {handle.timer_id} every {interval}s")
        return handle

    def call_soon_threadsafe(self, callback: Callable[[], Any]) -> None:
        """Queue callback to run on the loop thread during the next pass."""
        self._pending.put(callback)

    def threadsafe(self, callback: Callable[..., Any]) -> Callable[..., None]:
        """Wrap callback so each invocation is re-dispatched onto the loop."""

        def _dispatch(*args, **kwargs):
            self.call_soon_threadsafe(lambda: callback(*args, **kwargs))

        return _dispatch

    def active_timers(self) -> List[TimerHandle]:
        with self._lock:
            return [t for t in self._timers.values() if not t.cancelled]

    def run_pending(self) -> int:
        """
        Run queued callbacks and every timer that is due.

        A timer fires at most once per pass; if the loop fell behind, its
        next deadline is pushed forward instead of firing a burst.

        Returns:
            Number of timer callbacks fired
        """
        while True:
            try:
                callback = self._pending.get_nowait()
            except queue.Empty:
                break
            safe_execute(callback)

        now = self.clock()
        due = [t for t in self.active_timers() if t.next_run <= now]
        fired = 0
        for handle in sorted(due, key=lambda t: (t.next_run, t.timer_id)):
            # An earlier callback in this pass may have cancelled it
            if handle.cancelled:
                continue
            handle.next_run += handle.interval
            if handle.next_run <= now:
                handle.next_run = now + handle.interval
            safe_execute(handle.callback)
            fired += 1
        return fired

    def run(self) -> None:
        """Run the loop until stop() is called."""
        self.running = True
        logger.debug("Scheduler loop started")
        try:
            while self.running:
                self.run_pending()
                time.sleep(self.poll_interval)
        finally:
            self.running = False
            logger.debug("Scheduler loop stopped")

    def stop(self) -> None:
        self.running = False

    def cancel_all(self) -> None:
        for handle in self.active_timers():
            handle.cancel()

    def _discard(self, handle: TimerHandle) -> None:
        with self._lock:
            self._timers.pop(handle.timer_id, None)


class RepeatingTask:
    """
    Owner of at most one live timer.

    schedule() always cancels the previous timer before creating the next,
    so restarting never accumulates parallel timers.
    """

    def __init__(self, scheduler: Scheduler):
        self.scheduler = scheduler
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None and not self._handle.cancelled

    @property
    def handle(self) -> Optional[TimerHandle]:
        return self._handle

    def schedule(self, interval: float, callback: Callable[[], Any]) -> TimerHandle:
        self.cancel()
        self._handle = self.scheduler.call_every(interval, callback)
        return self._handle

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
