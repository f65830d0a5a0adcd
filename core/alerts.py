"""
Block start/end alerts.

The controller is fed once per tick with the freshly resolved state and
any transition detected on that tick. It decides whether a "block
started" or "block ended" alert is due, shows it, starts the looping
alarm and sends a notification. Each alert fires at most once per block
occurrence, keyed by (block id, date the occurrence started).
"""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence, Set, Tuple

import config
from audio.synth import SoundSynthesizer
from blocks.model import ResolvedState, TimeBlock
from blocks.resolver import format_clock_time, minute_of_day, occurrence_date, resolve_next_block
from core.transitions import Transition
from notifications.notifier import Notifier, notify_safely
from tracking.preferences import load_sound_profile, save_sound_profile
from tracking.store import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)

ALERT_START = "start"
ALERT_END = "end"

OccurrenceKey = Tuple[str, date]


@dataclass(frozen=True)
class AlertState:
    is_visible: bool = False
    kind: str = ALERT_START
    block: Optional[TimeBlock] = None
    next_block: Optional[TimeBlock] = None
    message: str = ""


def start_message(block: TimeBlock) -> str:
    return f"It's {format_clock_time(block.start_hour, block.start_minute)}. Start {block.name} now."


def end_message(block: TimeBlock, next_block: Optional[TimeBlock]) -> str:
    return f"{block.name} is complete. Next: {next_block.name if next_block else 'None'}"


class AlertController:
    """
    Start/end alert state machine with one shared alarm and notifier.

    Sound policy: the alarm only sounds while the hosting surface is
    visible or a floating surface is up. Sleep blocks never sound, but
    still show the alert and send the notification.

    Callbacks:
        on_alert(state: AlertState) after every fire or dismiss.
    """

    def __init__(
        self,
        synthesizer: SoundSynthesizer,
        notifier: Optional[Notifier] = None,
        store: Optional[KeyValueStore] = None,
    ) -> None:
        self.synthesizer = synthesizer
        self.notifier = notifier
        self.store: KeyValueStore = store if store is not None else MemoryStore()
        self.sound_profile: str = load_sound_profile(self.store)

        self.alert: AlertState = AlertState()
        self.page_visible: bool = True
        self.floating_surface_active: bool = False

        # Occurrences that already alerted
        self.fired_starts: Set[OccurrenceKey] = set()
        self.fired_ends: Set[OccurrenceKey] = set()

        # Block active on the previous tick (the one that may be ending now)
        self._previous_block: Optional[TimeBlock] = None
        self._has_previous: bool = False

        self._lock = threading.RLock()

        self.on_alert: Optional[Callable[[AlertState], None]] = None

    # ------------------------------------------------------------------
    # Surface signals
    # ------------------------------------------------------------------

    def set_page_visible(self, visible: bool) -> None:
        self.page_visible = bool(visible)

    def set_floating_surface(self, active: bool) -> None:
        self.floating_surface_active = bool(active)

    def sound_allowed(self) -> bool:
        return self.page_visible or self.floating_surface_active

    # ------------------------------------------------------------------
    # Tick evaluation
    # ------------------------------------------------------------------

    def evaluate(
        self,
        resolved: ResolvedState,
        transition: Optional[Transition],
        schedule: Sequence[TimeBlock],
    ) -> None:
        """
        Run both triggers for one tick.

        The end trigger runs first, so when one block ends exactly as the
        next one starts the visible alert is the new block's start alert.
        """
        with self._lock:
            instant = resolved.instant
            ending = self._previous_block if self._has_previous else resolved.current_block
            if ending is not None:
                self._check_block_end(ending, instant, schedule)

            if transition is not None and transition.block is not None:
                self._check_block_start(transition.block, resolved.next_block, instant)

            self._previous_block = resolved.current_block
            self._has_previous = True
            self._prune(instant.date())

    def _check_block_start(
        self, block: TimeBlock, next_block: Optional[TimeBlock], instant: datetime
    ) -> None:
        key = (block.id, occurrence_date(block, instant))
        if key in self.fired_starts:
            return
        self.fired_starts.add(key)
        self._fire(ALERT_START, block, next_block, start_message(block), config.NOTIFY_BLOCK_STARTED)

    def _check_block_end(
        self, block: TimeBlock, instant: datetime, schedule: Sequence[TimeBlock]
    ) -> None:
        if minute_of_day(instant) != block.end_minutes or instant.second != 0:
            return
        key = (block.id, occurrence_date(block, instant))
        if key in self.fired_ends:
            return
        self.fired_ends.add(key)
        next_block = resolve_next_block(schedule, block)
        self._fire(ALERT_END, block, next_block, end_message(block, next_block), config.NOTIFY_BLOCK_COMPLETE)

    def _fire(
        self,
        kind: str,
        block: TimeBlock,
        next_block: Optional[TimeBlock],
        message: str,
        title: str,
    ) -> None:
        logger.info(f"Block {kind} alert: {message}")

        if block.is_sleep:
            logger.debug(f"Alarm skipped for sleep block {block.id!r}")
        else:
            self._start_alarm()

        notify_safely(self.notifier, title, message)

        self.alert = AlertState(
            is_visible=True,
            kind=kind,
            block=block,
            next_block=next_block,
            message=message,
        )
        self._emit()

    def _prune(self, today: date) -> None:
        cutoff = today - timedelta(days=1)
        self.fired_starts = {key for key in self.fired_starts if key[1] >= cutoff}
        self.fired_ends = {key for key in self.fired_ends if key[1] >= cutoff}

    # ------------------------------------------------------------------
    # Sound
    # ------------------------------------------------------------------

    def _start_alarm(self) -> None:
        """Start the looping alarm; replaces any alarm already sounding."""
        try:
            self.synthesizer.start_loop(self.sound_profile, should_play=self.sound_allowed)
        except Exception as e:
            logger.warning(f"Alarm sound failed: {e}")

    def stop_alarm(self) -> None:
        try:
            self.synthesizer.cancel()
        except Exception as e:
            logger.warning(f"Error stopping alarm: {e}")

    def preview_sound(self, profile: Optional[str] = None) -> None:
        """Play a profile once (non-looping), subject to the sound policy."""
        if not self.sound_allowed():
            logger.debug("Sound preview suppressed: surface hidden")
            return
        try:
            self.synthesizer.play_once(profile or self.sound_profile)
        except Exception as e:
            logger.warning(f"Sound preview failed: {e}")

    def select_sound_profile(self, profile: str) -> None:
        """
        Switch the alarm sound and persist the choice.

        Raises:
            ValueError: If `profile` isn't a selectable profile.
        """
        if profile not in config.SOUND_PROFILES:
            raise ValueError(f"Unknown sound profile: {profile}")
        with self._lock:
            self.sound_profile = profile
            save_sound_profile(self.store, profile)
        logger.info(f"Sound profile set to {profile}")

    def change_sound_profile(self, profile: str) -> None:
        """Select `profile` (see select_sound_profile) and play it once as a preview."""
        with self._lock:
            self.select_sound_profile(profile)
            self.preview_sound(profile)

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def dismiss(self) -> None:
        """Stop the alarm and hide the alert. Fired occurrences stay fired."""
        with self._lock:
            self.stop_alarm()
            if self.alert.is_visible:
                self.alert = replace(self.alert, is_visible=False)
                self._emit()

    def shutdown(self) -> None:
        """Stop the alarm and release the audio device."""
        with self._lock:
            self.stop_alarm()
            try:
                self.synthesizer.sink.close()
            except Exception as e:
                logger.warning(f"Error closing audio sink: {e}")

    def _emit(self) -> None:
        if self.on_alert:
            try:
                self.on_alert(self.alert)
            except Exception as e:
                logger.debug(f"on_alert callback error: {e}")
