"""
Audio output sinks.

A sink owns a timeline (seconds since it was opened) and plays rendered
mono float32 buffers at given points on that timeline. Each scheduled
buffer is a Voice that can be stopped early, which releases it from the
mixer.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

import config
from audio.errors import AudioUnavailableError

logger = logging.getLogger(__name__)


class Voice(ABC):
    """One scheduled tone buffer."""

    @abstractmethod
    def stop(self) -> None:
        pass

    @property
    @abstractmethod
    def finished(self) -> bool:
        pass


class AudioSink(ABC):
    """Platform tone primitive consumed by the synthesizer."""

    sample_rate: int = config.SAMPLE_RATE

    @property
    @abstractmethod
    def current_time(self) -> float:
        """Current position on the sink's timeline, in seconds."""

    @abstractmethod
    def schedule(self, samples: np.ndarray, start_time: float) -> Voice:
        """Play `samples` starting at `start_time` on the sink's timeline."""

    def close(self) -> None:
        pass


class _MixerVoice(Voice):
    def __init__(self, samples: np.ndarray, start_frame: int):
        self.samples = samples
        self.start_frame = start_frame
        self.end_frame = start_frame + len(samples)
        self.stopped = False
        self.done = False

    def stop(self) -> None:
        self.stopped = True

    @property
    def finished(self) -> bool:
        return self.stopped or self.done


class SoundDeviceSink(AudioSink):
    """
    Mixes scheduled voices into a single sounddevice output stream.

    The stream is opened lazily on first use. If PortAudio or an output
    device is missing, AudioUnavailableError is raised to the caller.
    """

    def __init__(self, sample_rate: int = config.SAMPLE_RATE, device=None):
        self.sample_rate = sample_rate
        self.device = device
        self.output_stream = None
        self._frame = 0
        self._voices: List[_MixerVoice] = []
        self._lock = threading.Lock()

    def _ensure_stream(self) -> None:
        if self.output_stream is not None:
            return
        try:
            import sounddevice as sd
            self.output_stream = sd.OutputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype="float32",
                device=self.device,
                callback=self._callback,
            )
            self.output_stream.start()
        except Exception as e:
            # OSError when PortAudio is missing, PortAudioError for device problems
            self.output_stream = None
            raise AudioUnavailableError(f"Audio output unavailable: {e}") from e
        logger.debug(f"Audio output stream opened at {self.sample_rate} Hz")

    @property
    def current_time(self) -> float:
        self._ensure_stream()
        return self._frame / self.sample_rate

    def schedule(self, samples: np.ndarray, start_time: float) -> Voice:
        self._ensure_stream()
        start_frame = max(self._frame, int(round(start_time * self.sample_rate)))
        voice = _MixerVoice(np.asarray(samples, dtype=np.float32), start_frame)
        with self._lock:
            self._voices.append(voice)
        return voice

    def _callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug(f"Audio output status: {status}")

        start = self._frame
        end = start + frames
        buffer = np.zeros(frames, dtype=np.float32)

        with self._lock:
            voices = list(self._voices)

        for voice in voices:
            if voice.stopped:
                continue
            lo = max(start, voice.start_frame)
            hi = min(end, voice.end_frame)
            if lo < hi:
                buffer[lo - start:hi - start] += voice.samples[lo - voice.start_frame:hi - voice.start_frame]
            if voice.end_frame <= end:
                voice.done = True

        np.clip(buffer, -1.0, 1.0, out=buffer)
        outdata[:, 0] = buffer
        self._frame = end

        with self._lock:
            self._voices = [voice for voice in self._voices if not voice.finished]

    @property
    def active_voices(self) -> int:
        with self._lock:
            return sum(1 for voice in self._voices if not voice.finished)

    def close(self) -> None:
        """Stop every voice and close the stream."""
        with self._lock:
            for voice in self._voices:
                voice.stop()
            self._voices = []
        if self.output_stream is not None:
            try:
                self.output_stream.stop()
                self.output_stream.close()
            except Exception as e:
                logger.warning(f"Error closing audio stream: {e}")
            self.output_stream = None


class _NullVoice(Voice):
    def __init__(self, sink: "NullAudioSink", samples: np.ndarray, start_time: float):
        self.sink = sink
        self.samples = samples
        self.start_time = start_time
        self.end_time = start_time + len(samples) / sink.sample_rate
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True

    @property
    def finished(self) -> bool:
        return self.stopped or self.sink.current_time >= self.end_time


class NullAudioSink(AudioSink):
    """
    Silent sink for headless runs.

    Keeps every scheduled voice so callers can see what would have played.
    Its timeline is whatever `time` is set to.
    """

    def __init__(self, sample_rate: int = config.SAMPLE_RATE):
        self.sample_rate = sample_rate
        self.time = 0.0
        self.voices: List[_NullVoice] = []
        self.closed = False

    @property
    def current_time(self) -> float:
        return self.time

    def schedule(self, samples: np.ndarray, start_time: float) -> Voice:
        voice = _NullVoice(self, samples, start_time)
        self.voices.append(voice)
        return voice

    def playing(self) -> List[Voice]:
        return [voice for voice in self.voices if not voice.finished]

    def close(self) -> None:
        for voice in self.voices:
            voice.stop()
        self.closed = True


def create_audio_sink(enabled: bool = True, sample_rate: Optional[int] = None) -> AudioSink:
    """Pick the sink for this process: real output, or silent when disabled."""
    if not enabled:
        logger.info("Audio disabled, using silent sink")
        return NullAudioSink(sample_rate or config.SAMPLE_RATE)
    return SoundDeviceSink(sample_rate or config.SAMPLE_RATE)
