"""
Alert sound synthesis.

Each sound profile is a fixed list of tone descriptors. Tones are
rendered to numpy buffers and handed to an AudioSink at their offset
from the pattern start; nothing here is randomised, so a profile always
sounds the same.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

import config
from audio.sinks import AudioSink, Voice
from core.clock import ScheduledCall, Scheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToneSpec:
    """
    One tone inside a sound pattern.

    Gain rises linearly from 0 to `peak_gain` over `attack` seconds, then
    moves towards `floor_gain` by the end of the tone, either
    exponentially or linearly. With `end_frequency` set, the pitch sweeps
    linearly over `sweep_duration` (default: the whole tone) and then holds.
    """

    frequency: float
    offset: float
    duration: float
    peak_gain: float
    waveform: str = "sine"
    decay: str = "exponential"
    floor_gain: float = 0.01
    attack: float = 0.0
    end_frequency: Optional[float] = None
    sweep_duration: Optional[float] = None


_C_MAJOR = (523.25, 659.25, 783.99)

PROFILES: Dict[str, Tuple[ToneSpec, ...]] = {
    "beep": (
        ToneSpec(800.0, offset=0.0, duration=0.5, peak_gain=0.8),
        ToneSpec(1000.0, offset=0.2, duration=0.5, peak_gain=0.8),
    ),
    "chime": tuple(
        ToneSpec(freq, offset=i * 0.1, duration=3.0 - i * 0.1, peak_gain=0.6,
                 waveform="triangle", floor_gain=0.001)
        for i, freq in enumerate(_C_MAJOR)
    ),
    "electronic": (
        ToneSpec(440.0, offset=0.0, duration=0.2, peak_gain=0.5, waveform="square",
                 decay="linear", floor_gain=0.0, end_frequency=880.0, sweep_duration=0.1),
        ToneSpec(880.0, offset=0.15, duration=0.2, peak_gain=0.5, waveform="square",
                 decay="linear", floor_gain=0.0, end_frequency=1760.0, sweep_duration=0.1),
    ),
    config.POMODORO_SOUND_PROFILE: tuple(
        ToneSpec(freq, offset=i * 0.1, duration=0.8, peak_gain=0.2, attack=0.05)
        for i, freq in enumerate(_C_MAJOR)
    ),
}


def _waveform(name: str, phase: np.ndarray) -> np.ndarray:
    if name == "sine":
        return np.sin(phase)
    if name == "square":
        return np.sign(np.sin(phase))
    if name == "triangle":
        return (2.0 / np.pi) * np.arcsin(np.sin(phase))
    if name == "sawtooth":
        return 2.0 * np.mod(phase / (2.0 * np.pi), 1.0) - 1.0
    raise ValueError(f"Unknown waveform: {name}")


def render_tone(spec: ToneSpec, sample_rate: int = config.SAMPLE_RATE) -> np.ndarray:
    """Render a tone to a mono float32 buffer in [-1, 1]."""
    n = int(round(spec.duration * sample_rate))
    if n <= 0:
        return np.zeros(0, dtype=np.float32)
    t = np.arange(n, dtype=np.float64) / sample_rate

    if spec.end_frequency is not None:
        sweep = spec.sweep_duration or spec.duration
        frequency = np.where(
            t < sweep,
            spec.frequency + (spec.end_frequency - spec.frequency) * (t / sweep),
            spec.end_frequency,
        )
    else:
        frequency = np.full(n, spec.frequency)
    phase = 2.0 * np.pi * np.cumsum(frequency) / sample_rate

    decay_span = max(spec.duration - spec.attack, 1.0 / sample_rate)
    progress = np.clip((t - spec.attack) / decay_span, 0.0, 1.0)
    if spec.decay == "exponential" and spec.floor_gain > 0:
        envelope = spec.peak_gain * (spec.floor_gain / spec.peak_gain) ** progress
    elif spec.decay in ("exponential", "linear"):
        envelope = spec.peak_gain + (spec.floor_gain - spec.peak_gain) * progress
    else:
        raise ValueError(f"Unknown decay curve: {spec.decay}")
    if spec.attack > 0:
        rising = t < spec.attack
        envelope[rising] = spec.peak_gain * t[rising] / spec.attack

    return (_waveform(spec.waveform, phase) * envelope).astype(np.float32)


def pattern_duration(profile: str) -> float:
    return max(tone.offset + tone.duration for tone in PROFILES[profile])


class SoundSynthesizer:
    """
    Plays sound profiles on an AudioSink, once or on a loop.

    Only one loop exists at a time. cancel() stops the loop and every
    voice still scheduled or sounding.
    """

    def __init__(
        self,
        sink: AudioSink,
        scheduler: Scheduler,
        loop_interval: float = config.ALARM_LOOP_INTERVAL_SECONDS,
    ):
        self.sink = sink
        self.scheduler = scheduler
        self.loop_interval = loop_interval
        self._voices: List[Voice] = []
        self._loop: Optional[ScheduledCall] = None
        self._generation = 0
        self._rendered: Dict[Tuple[ToneSpec, int], np.ndarray] = {}
        self._lock = threading.RLock()

    @property
    def is_looping(self) -> bool:
        return self._loop is not None and self._loop.active

    @property
    def active_voices(self) -> List[Voice]:
        with self._lock:
            self._voices = [voice for voice in self._voices if not voice.finished]
            return list(self._voices)

    def _render(self, spec: ToneSpec) -> np.ndarray:
        key = (spec, self.sink.sample_rate)
        if key not in self._rendered:
            self._rendered[key] = render_tone(spec, self.sink.sample_rate)
        return self._rendered[key]

    def play_pattern(self, profile: str, start_time: Optional[float] = None) -> int:
        """
        Schedule every tone of `profile` relative to `start_time`.

        Args:
            profile: Name of a profile in PROFILES.
            start_time: Sink timeline position; defaults to now.

        Returns:
            Number of tones scheduled.

        Raises:
            ValueError: If the profile is unknown.
            AudioUnavailableError: If the sink can't play.
        """
        if profile not in PROFILES:
            raise ValueError(f"Unknown sound profile: {profile}")

        with self._lock:
            if start_time is None:
                start_time = self.sink.current_time
            tones = PROFILES[profile]
            for tone in tones:
                self._voices.append(self.sink.schedule(self._render(tone), start_time + tone.offset))
            # Drop references to voices that already ended
            self._voices = [voice for voice in self._voices if not voice.finished]
            return len(tones)

    def play_once(self, profile: str) -> None:
        """Stop anything playing, then play `profile` a single time."""
        with self._lock:
            self.cancel()
            self.play_pattern(profile)

    def start_loop(self, profile: str, should_play: Optional[Callable[[], bool]] = None) -> bool:
        """
        Play `profile` now and again every loop interval until cancel().

        `should_play` is consulted before the first pattern and before
        every repetition. A loop that is muted at the start is not
        started; a repetition that is muted later is skipped.

        Returns:
            True if the loop was started.
        """
        if profile not in PROFILES:
            raise ValueError(f"Unknown sound profile: {profile}")

        with self._lock:
            self.cancel()
            if should_play is not None and not should_play():
                logger.debug("Alarm suppressed: surface hidden and no floating surface")
                return False

            self.play_pattern(profile)
            generation = self._generation

            def _repeat() -> None:
                with self._lock:
                    # A repetition already in flight when the loop was cancelled
                    if generation != self._generation:
                        return
                    if should_play is not None and not should_play():
                        logger.debug("Alarm repetition muted")
                        return
                    try:
                        self.play_pattern(profile)
                    except Exception as e:
                        logger.warning(f"Alarm repetition failed: {e}")

            self._loop = self.scheduler.call_every(self.loop_interval, _repeat)
            logger.debug(f"Alarm loop started ({profile}, every {self.loop_interval}s)")
            return True

    def cancel(self) -> None:
        """Stop the loop and release every scheduled voice."""
        with self._lock:
            self._generation += 1
            if self._loop is not None:
                self._loop.cancel()
                self._loop = None
            for voice in self._voices:
                try:
                    voice.stop()
                except Exception as e:
                    logger.debug(f"Error stopping voice: {e}")
            self._voices = []
