"""
Time sources and periodic callbacks.

Engines never call datetime.now() or start their own timers directly;
they receive a Clock and a Scheduler. The system implementations run on
background threads, the manual ones are driven explicitly so a whole
day can be replayed without waiting.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

# Aligned tickers fire this long after the second boundary
SECOND_ALIGN_OFFSET = 0.02


class Clock(ABC):
    """Source of the current local wall-clock time."""

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now()


class ManualClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, start: datetime):
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set(self, instant: datetime) -> None:
        self._now = instant

    def advance(self, seconds: float = 1.0) -> datetime:
        self._now = self._now + timedelta(seconds=seconds)
        return self._now


class ScheduledCall(ABC):
    """Handle for a repeating callback."""

    @abstractmethod
    def cancel(self) -> None:
        pass

    @property
    @abstractmethod
    def active(self) -> bool:
        pass


class Scheduler(ABC):
    """Runs callbacks at a fixed interval until cancelled."""

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledCall:
        pass


class Ticker(ScheduledCall):
    """
    Calls `callback` every `interval` seconds on a daemon thread.

    Due times are kept on a fixed monotonic base, so time spent in the
    callback does not stretch the period. With `align_to_second` the first
    call lands just after a wall-clock second boundary. Stopping sets an
    Event, so a sleeping loop wakes immediately instead of finishing its
    wait. Exceptions from the callback are logged and the loop keeps going.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        name: str = "ticker",
        align_to_second: bool = False,
    ):
        self.interval = interval
        self.callback = callback
        self.name = name
        self.align_to_second = align_to_second
        self.should_stop: threading.Event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        return self._thread is not None and not self.should_stop.is_set()

    def start(self) -> "Ticker":
        if self.active:
            logger.warning(f"{self.name} is already running.")
            return self
        # Fresh event per run so a thread from an earlier run can never resume
        self.should_stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self.should_stop,), name=self.name, daemon=True
        )
        self._thread.start()
        logger.debug(f"{self.name} started ({self.interval}s interval)")
        return self

    def cancel(self) -> None:
        """Signal the loop to stop. Does not wait for an in-flight callback."""
        self.should_stop.set()

    def stop(self, timeout: float = 2.0) -> None:
        """Signal the loop to stop and wait for the thread to finish."""
        self.cancel()
        thread = self._thread
        self._thread = None
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"{self.name} thread did not stop within timeout")

    def _first_due(self) -> float:
        now = time.monotonic()
        if not self.align_to_second:
            return now + self.interval
        return now + (1.0 - time.time() % 1.0) + SECOND_ALIGN_OFFSET

    def _run(self, should_stop: threading.Event) -> None:
        next_due = self._first_due()
        while not should_stop.wait(max(0.0, next_due - time.monotonic())):
            try:
                self.callback()
            except Exception:
                logger.exception(f"Error in {self.name} callback")
            next_due += self.interval
            behind = time.monotonic() - next_due
            if behind > self.interval:
                # More than a period late (system suspend): resync instead of bursting
                next_due += (int(behind // self.interval) + 1) * self.interval
                logger.debug(f"{self.name} fell {behind:.1f}s behind, resyncing")


class ThreadScheduler(Scheduler):
    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledCall:
        return Ticker(interval, callback, name=getattr(callback, "__name__", "ticker")).start()


class _ManualCall(ScheduledCall):
    def __init__(self, interval: float, callback: Callable[[], None], due: float):
        self.interval = interval
        self.callback = callback
        self.due = due
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False


class ManualScheduler(Scheduler):
    """
    Scheduler whose time only moves through advance().

    Callbacks due within the advanced span run in due-time order, on the
    calling thread.
    """

    def __init__(self):
        self.time = 0.0
        self._calls: List[_ManualCall] = []

    @property
    def pending(self) -> List[ScheduledCall]:
        return [call for call in self._calls if call.active]

    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledCall:
        call = _ManualCall(interval, callback, self.time + interval)
        self._calls.append(call)
        return call

    def advance(self, seconds: float) -> None:
        target = self.time + seconds
        while True:
            self._calls = [call for call in self._calls if call.active]
            due = [call for call in self._calls if call.due <= target]
            if not due:
                break
            call = min(due, key=lambda c: c.due)
            self.time = call.due
            call.due += call.interval
            call.callback()
        self.time = target
