"""Pomodoro focus timer, independent of the day schedule."""

from pomodoro.engine import (
    PHASE_BREAK,
    PHASE_FOCUS,
    PHASE_IDLE,
    PHASE_LONG_BREAK,
    PomodoroEngine,
    PomodoroState,
)

__all__ = [
    "PHASE_BREAK",
    "PHASE_FOCUS",
    "PHASE_IDLE",
    "PHASE_LONG_BREAK",
    "PomodoroEngine",
    "PomodoroState",
]
