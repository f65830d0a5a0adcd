"""Tone synthesis and audio output for alert sounds."""

from audio.errors import AudioUnavailableError
from audio.sinks import AudioSink, NullAudioSink, SoundDeviceSink, Voice, create_audio_sink
from audio.synth import PROFILES, SoundSynthesizer, ToneSpec, render_tone

__all__ = [
    "AudioUnavailableError",
    "AudioSink",
    "NullAudioSink",
    "SoundDeviceSink",
    "Voice",
    "create_audio_sink",
    "PROFILES",
    "SoundSynthesizer",
    "ToneSpec",
    "render_tone",
]
