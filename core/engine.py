"""
DayEngine - headless schedule clock for DayBlocks.

Owns the schedule, the transition detector and the alert controller, and
runs them from a single 1 Hz tick. Within a tick the order is fixed:
resolve the active block, detect a transition, evaluate alerts. An alert
therefore always sees the block resolved for the same instant.

This module has ZERO UI dependencies. A host (CLI, tray app, web view)
starts the engine, feeds it visibility changes and user actions, and
receives updates via callbacks.

Callbacks:
    on_state(state: ResolvedState)       every tick
    on_transition(transition: Transition) when the active block changes
    on_alert(state: AlertState)          forwarded from the alert controller
"""

import logging
import threading
from typing import Callable, Dict, List, Optional, Sequence

import config
from blocks.model import ResolvedState, TimeBlock
from blocks.resolver import is_block_locked, resolve
from core.alerts import AlertController, AlertState
from core.clock import Clock, SystemClock, Ticker
from core.transitions import Transition, TransitionDetector

logger = logging.getLogger(__name__)


class DayEngine:
    """
    Schedule tracking engine.

    Handles:
    - Active/next block resolution and remaining time
    - Transition detection (silent on the first tick)
    - Block start/end alerts via AlertController
    - Tick loop lifecycle (start, stop)

    Tests and replays call tick() directly with a ManualClock instead of
    starting the loop.
    """

    def __init__(
        self,
        schedule: Sequence[TimeBlock],
        alerts: AlertController,
        clock: Optional[Clock] = None,
        tick_interval: float = config.TICK_INTERVAL_SECONDS,
    ) -> None:
        self.schedule: List[TimeBlock] = list(schedule)
        self.alerts: AlertController = alerts
        self.clock: Clock = clock or SystemClock()
        self.tick_interval = tick_interval
        self.detector: TransitionDetector = TransitionDetector()
        self.state: Optional[ResolvedState] = None

        self._ticker: Optional[Ticker] = None
        self._lock = threading.Lock()

        # ---- Callbacks (set by the host app) ----
        self.on_state: Optional[Callable[[ResolvedState], None]] = None
        self.on_transition: Optional[Callable[[Transition], None]] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._ticker is not None and self._ticker.active

    @property
    def on_alert(self) -> Optional[Callable[[AlertState], None]]:
        return self.alerts.on_alert

    @on_alert.setter
    def on_alert(self, callback: Optional[Callable[[AlertState], None]]) -> None:
        self.alerts.on_alert = callback

    def set_schedule(self, schedule: Sequence[TimeBlock]) -> None:
        """Replace the whole block list; takes effect on the next tick."""
        with self._lock:
            self.schedule = list(schedule)
        logger.info(f"Schedule replaced ({len(self.schedule)} blocks)")

    def start(self) -> None:
        """Resolve immediately, then tick every interval on a background thread."""
        if self.is_running:
            logger.warning("DayEngine is already running.")
            return
        self.tick()
        # Aligned so every wall-clock second, including :00, gets a tick
        self._ticker = Ticker(
            self.tick_interval, self.tick, name="day-engine", align_to_second=True
        ).start()
        logger.info("DayEngine started")

    def stop(self) -> None:
        """Stop ticking, silence any alarm and release audio."""
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None
        self.alerts.shutdown()
        logger.info("DayEngine stopped")

    def tick(self) -> ResolvedState:
        """Run one resolution -> transition -> alert pass for clock.now()."""
        with self._lock:
            instant = self.clock.now()
            schedule = self.schedule
            state = resolve(schedule, instant)
            transition = self.detector.observe(state.current_block, instant)
            self.alerts.evaluate(state, transition, schedule)
            self.state = state

        if transition is not None and self.on_transition:
            try:
                self.on_transition(transition)
            except Exception as e:
                logger.debug(f"on_transition callback error: {e}")
        if self.on_state:
            try:
                self.on_state(state)
            except Exception as e:
                logger.debug(f"on_state callback error: {e}")
        return state

    def dismiss_alert(self) -> None:
        self.alerts.dismiss()

    def set_page_visible(self, visible: bool) -> None:
        self.alerts.set_page_visible(visible)

    def set_floating_surface(self, active: bool) -> None:
        self.alerts.set_floating_surface(active)

    def is_locked(self, category: str) -> bool:
        """Whether the active block forbids `category` (False before the first tick)."""
        current = self.state.current_block if self.state else None
        return is_block_locked(current, category)

    def get_status(self) -> Dict:
        """
        Snapshot for hosts that poll instead of using callbacks.

        Returns:
            dict with keys: is_running, current_block, next_block,
            remaining, remaining_seconds, alert_visible, alert_message.
        """
        state = self.state
        alert = self.alerts.alert
        return {
            "is_running": self.is_running,
            "current_block": state.current_block.name if state and state.current_block else None,
            "next_block": state.next_block.name if state and state.next_block else None,
            "remaining": state.remaining.format() if state else "00:00:00",
            "remaining_seconds": state.remaining.total_seconds if state else 0,
            "alert_visible": alert.is_visible,
            "alert_message": alert.message,
        }
