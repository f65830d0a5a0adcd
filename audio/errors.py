"""Audio output errors."""

from blocks.errors import DayBlocksError


class AudioUnavailableError(DayBlocksError):
    """The audio output device could not be opened."""
