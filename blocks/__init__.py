"""
Time block model and schedule resolution for DayBlocks.

Pure functions only: nothing here reads the wall clock or touches audio,
so callers pass the instant they want resolved.
"""

from blocks.errors import DayBlocksError, ScheduleError
from blocks.model import RemainingTime, ResolvedState, TimeBlock
from blocks.resolver import (
    format_clock_time,
    is_block_locked,
    occurrence_date,
    remaining_time,
    resolve,
    resolve_active_block,
    resolve_next_block,
)

__all__ = [
    "DayBlocksError",
    "ScheduleError",
    "RemainingTime",
    "ResolvedState",
    "TimeBlock",
    "format_clock_time",
    "is_block_locked",
    "occurrence_date",
    "remaining_time",
    "resolve",
    "resolve_active_block",
    "resolve_next_block",
]
