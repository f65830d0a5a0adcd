"""
Pomodoro focus timer.

Independent of the schedule: it has its own 1 Hz tick and its own state.
Phases cycle focus -> break (or long break every Nth completed focus) ->
idle. Completed focus sessions are counted per day and persisted through
PomodoroStats; skipped or stopped sessions never count.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import config
from core.clock import ScheduledCall, Scheduler
from notifications.notifier import Notifier, notify_safely
from tracking.pomodoro_stats import PomodoroStats

logger = logging.getLogger(__name__)

PHASE_IDLE = "idle"
PHASE_FOCUS = "focus"
PHASE_BREAK = "break"
PHASE_LONG_BREAK = "longBreak"


def format_countdown(seconds: int) -> str:
    """Format seconds as MM:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


@dataclass(frozen=True)
class PomodoroState:
    phase: str
    seconds_remaining: int
    completed_count_today: int
    is_running: bool
    progress: float

    @property
    def formatted_time(self) -> str:
        return format_countdown(self.seconds_remaining)


class PomodoroEngine:
    """
    Four-phase countdown state machine.

    Callbacks:
        on_tick(state: PomodoroState)                     after every tick and command
        on_phase_change(previous: str, phase: str)        on every phase change
    """

    def __init__(
        self,
        stats: PomodoroStats,
        notifier: Optional[Notifier] = None,
        play_sound: Optional[Callable[[], None]] = None,
        focus_seconds: int = config.POMODORO_FOCUS_SECONDS,
        break_seconds: int = config.POMODORO_BREAK_SECONDS,
        long_break_seconds: int = config.POMODORO_LONG_BREAK_SECONDS,
        long_break_every: int = config.POMODORO_LONG_BREAK_EVERY,
    ) -> None:
        self.stats = stats
        self.notifier = notifier
        self.play_sound = play_sound
        self.durations: Dict[str, int] = {
            PHASE_FOCUS: focus_seconds,
            PHASE_BREAK: break_seconds,
            PHASE_LONG_BREAK: long_break_seconds,
        }
        self.long_break_every = long_break_every

        self.phase: str = PHASE_IDLE
        self.seconds_remaining: int = focus_seconds
        self.is_running: bool = False
        self.completed_count_today: int = stats.get_completed_today()
        self._count_day = stats.today()

        self._ticker: Optional[ScheduledCall] = None
        self._lock = threading.RLock()

        self.on_tick: Optional[Callable[[PomodoroState], None]] = None
        self.on_phase_change: Optional[Callable[[str, str], None]] = None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_focus(self) -> None:
        with self._lock:
            self._enter(PHASE_FOCUS)
            self.is_running = True
            logger.info(f"Focus started ({format_countdown(self.seconds_remaining)})")
        self._emit()

    def start_break(self, is_long: bool = False) -> None:
        with self._lock:
            self._enter(PHASE_LONG_BREAK if is_long else PHASE_BREAK)
            self.is_running = True
            logger.info(f"{self.phase} started ({format_countdown(self.seconds_remaining)})")
        self._emit()

    def pause(self) -> None:
        with self._lock:
            self.is_running = False
        self._emit()

    def resume(self) -> None:
        with self._lock:
            if self.phase == PHASE_IDLE:
                logger.warning("Nothing to resume: pomodoro is idle.")
                return
            self.is_running = True
        self._emit()

    def stop(self) -> None:
        """Back to idle without touching today's count."""
        with self._lock:
            self._enter(PHASE_IDLE)
            self.is_running = False
            logger.info("Pomodoro stopped")
        self._emit()

    def skip(self) -> None:
        """Abandon the current phase; a skipped focus session is not counted."""
        with self._lock:
            skipped = self.phase
            self._enter(PHASE_IDLE)
            self.is_running = False
            logger.info(f"Skipped {skipped} phase")
        self._emit()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> None:
        with self._lock:
            if not self.is_running:
                return
            self.seconds_remaining = max(0, self.seconds_remaining - 1)
            if self.seconds_remaining == 0:
                self._complete_phase()
        self._emit()

    def _complete_phase(self) -> None:
        finished = self.phase
        self._play_completion_sound()

        if finished == PHASE_FOCUS:
            if self.stats.today() != self._count_day:
                self._reload_count()
            self.completed_count_today += 1
            self.stats.save_completed_today(self.completed_count_today)
            is_long = self.completed_count_today % self.long_break_every == 0
            self._enter(PHASE_LONG_BREAK if is_long else PHASE_BREAK)
            logger.info(f"Focus session #{self.completed_count_today} complete, starting {self.phase}")
            minutes = self.durations[self.phase] // 60
            notify_safely(
                self.notifier,
                config.NOTIFY_POMODORO_COMPLETE,
                f"Great work! Take a {minutes}-minute break." if is_long else f"Take a {minutes}-minute break.",
            )
        else:
            self._enter(PHASE_IDLE)
            self.is_running = False
            logger.info("Break complete")
            notify_safely(self.notifier, config.NOTIFY_BREAK_OVER, "Ready for another focus session?")

    def _enter(self, phase: str) -> None:
        previous = self.phase
        self.phase = phase
        self.seconds_remaining = self.durations.get(phase, self.durations[PHASE_FOCUS])
        if previous != phase and self.on_phase_change:
            try:
                self.on_phase_change(previous, phase)
            except Exception as e:
                logger.debug(f"on_phase_change callback error: {e}")

    def _play_completion_sound(self) -> None:
        if self.play_sound is None:
            return
        try:
            self.play_sound()
        except Exception as e:
            logger.warning(f"Pomodoro sound failed: {e}")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def progress(self) -> float:
        """Elapsed share of the current phase, 0-100; idle is 0."""
        if self.phase == PHASE_IDLE:
            return 0.0
        duration = self.durations[self.phase]
        return (duration - self.seconds_remaining) / duration * 100.0

    def get_state(self) -> PomodoroState:
        with self._lock:
            return PomodoroState(
                phase=self.phase,
                seconds_remaining=self.seconds_remaining,
                completed_count_today=self.completed_count_today,
                is_running=self.is_running,
                progress=self.progress,
            )

    def refresh_daily_count(self) -> int:
        """Reload today's count (e.g. after midnight)."""
        with self._lock:
            self._reload_count()
            return self.completed_count_today

    def _reload_count(self) -> None:
        self.completed_count_today = self.stats.get_completed_today()
        self._count_day = self.stats.today()

    def _emit(self) -> None:
        if self.on_tick:
            try:
                self.on_tick(self.get_state())
            except Exception as e:
                logger.debug(f"on_tick callback error: {e}")

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------

    def start_ticking(self, scheduler: Scheduler, interval: float = config.TICK_INTERVAL_SECONDS) -> None:
        if self._ticker is not None and self._ticker.active:
            logger.warning("Pomodoro tick loop is already running.")
            return
        self._ticker = scheduler.call_every(interval, self.tick)

    def stop_ticking(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
