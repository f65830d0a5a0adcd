"""
Schedule resolution: which block is active, which comes next, and how
long the active one has left.

All functions take the instant explicitly. Block boundaries have minute
resolution; seconds only matter for the remaining-time countdown.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from blocks.model import (
    MINUTES_PER_DAY,
    RemainingTime,
    ResolvedState,
    TimeBlock,
    time_to_minutes,
)


def minute_of_day(instant: datetime) -> int:
    return time_to_minutes(instant.hour, instant.minute)


def block_contains(block: TimeBlock, minutes: int) -> bool:
    """True if the block's [start, end) interval contains the minute of day."""
    start = block.start_minutes
    end = block.end_minutes
    if block.is_overnight:
        return minutes >= start or minutes < end
    return start <= minutes < end


def resolve_active_block(schedule: Sequence[TimeBlock], instant: datetime) -> Optional[TimeBlock]:
    """
    Return the block active at `instant`, or None for an uncovered minute.

    Blocks are checked in schedule order and the first match wins. For a
    well-formed (non-overlapping) schedule that is the only match.
    """
    minutes = minute_of_day(instant)
    for block in schedule:
        if block_contains(block, minutes):
            return block
    return None


def resolve_next_block(
    schedule: Sequence[TimeBlock], current_block: Optional[TimeBlock]
) -> Optional[TimeBlock]:
    """
    Return the circular successor of `current_block` in schedule order.

    With no current block, or one whose id is no longer in the schedule,
    the first block is returned. The last block wraps to the first.
    """
    if not schedule:
        return None
    if current_block is None:
        return schedule[0]

    for index, block in enumerate(schedule):
        if block.id == current_block.id:
            return schedule[(index + 1) % len(schedule)]
    return schedule[0]


def remaining_time(block: TimeBlock, instant: datetime) -> RemainingTime:
    """
    Time left until `block` ends, as seen from `instant`.

    The countdown runs from the top of the current minute: within the
    final minute it counts down to 1 second and reads 00:00:00 only once
    the boundary minute starts.
    """
    minutes = minute_of_day(instant)
    end_minutes = block.end_minutes
    if block.is_overnight and minutes >= block.start_minutes:
        end_minutes += MINUTES_PER_DAY

    total_seconds = (end_minutes - minutes - 1) * 60 + (60 - instant.second)
    return RemainingTime.from_seconds(total_seconds)


def occurrence_date(block: TimeBlock, instant: datetime) -> date:
    """
    Calendar date on which the occurrence of `block` around `instant` started.

    Only the after-midnight part of an overnight block (including its end
    boundary) belongs to an occurrence that started the previous day.
    """
    if block.is_overnight and minute_of_day(instant) < block.start_minutes:
        return instant.date() - timedelta(days=1)
    return instant.date()


def resolve(schedule: Sequence[TimeBlock], instant: datetime) -> ResolvedState:
    current = resolve_active_block(schedule, instant)
    return ResolvedState(
        instant=instant,
        current_block=current,
        next_block=resolve_next_block(schedule, current),
        remaining=remaining_time(current, instant) if current else RemainingTime(),
    )


def format_clock_time(hour: int, minute: int) -> str:
    """Format a wall-clock time as e.g. '9:05 AM'."""
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"


def is_block_locked(current_block: Optional[TimeBlock], category: str) -> bool:
    """True if the active block forbids interacting with `category`."""
    if current_block is None:
        return False
    return category in current_block.locked_categories
