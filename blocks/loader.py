"""
Schedule loading and well-formedness checks.

The resolver assumes a non-overlapping schedule with at most one
overnight block. That assumption is checked here, once, when a schedule
is loaded, instead of on every tick.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

import config
from blocks.errors import ScheduleError
from blocks.model import MINUTES_PER_DAY, TimeBlock

logger = logging.getLogger(__name__)


def _covered_minutes(block: TimeBlock) -> Iterable[int]:
    """Minutes of day covered by the block, wrapping past midnight."""
    start = block.start_minutes
    for offset in range(block.duration_minutes):
        yield (start + offset) % MINUTES_PER_DAY


def validate_schedule(schedule: Sequence[TimeBlock]) -> List[str]:
    """
    Check a schedule for problems the resolver does not handle.

    Returns:
        Human-readable problem descriptions; empty for a well-formed schedule.
    """
    problems: List[str] = []

    seen_ids = set()
    for block in schedule:
        if block.id in seen_ids:
            problems.append(f"Duplicate block id {block.id!r}")
        seen_ids.add(block.id)
        if block.duration_minutes == 0:
            problems.append(f"Block {block.id!r} starts and ends at the same time")

    overnight = [block.id for block in schedule if block.is_overnight]
    if len(overnight) > 1:
        problems.append(f"More than one overnight block: {', '.join(overnight)}")

    owners: List[Optional[str]] = [None] * MINUTES_PER_DAY
    reported = set()
    for block in schedule:
        for minute in _covered_minutes(block):
            owner = owners[minute]
            if owner is None:
                owners[minute] = block.id
            elif (owner, block.id) not in reported:
                reported.add((owner, block.id))
                problems.append(
                    f"Block {block.id!r} overlaps {owner!r} at "
                    f"{minute // 60:02d}:{minute % 60:02d}"
                )

    return problems


def parse_schedule(data: Any) -> List[TimeBlock]:
    """
    Build blocks from decoded JSON.

    Accepts a bare list of blocks or an object with a "blocks" list.

    Raises:
        ScheduleError: If the structure or any block is malformed.
    """
    if isinstance(data, dict):
        data = data.get("blocks")
    if not isinstance(data, list):
        raise ScheduleError("Schedule must be a list of blocks")
    for item in data:
        if not isinstance(item, dict):
            raise ScheduleError(f"Time block must be an object: {item!r}")
    return [TimeBlock.from_dict(item) for item in data]


def load_schedule(path: Path, validate: bool = True) -> List[TimeBlock]:
    """
    Load a schedule from a JSON file.

    Args:
        path: JSON file holding the block list.
        validate: Reject schedules with overlaps, duplicate ids or several
            overnight blocks.

    Returns:
        Blocks in file order.

    Raises:
        ScheduleError: If the file can't be read or the schedule is malformed.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError, OSError) as e:
        raise ScheduleError(f"Could not read schedule {path}: {e}") from e

    schedule = parse_schedule(data)
    if validate:
        problems = validate_schedule(schedule)
        if problems:
            raise ScheduleError(f"Schedule {path} is malformed", problems)

    logger.info(f"Loaded {len(schedule)} blocks from {path}")
    return schedule


def load_default_schedule() -> List[TimeBlock]:
    """Load the bundled default day."""
    return load_schedule(config.DEFAULT_SCHEDULE_FILE)


def load_configured_schedule() -> List[TimeBlock]:
    """
    Load the user's schedule file if one is configured, else the default.

    A broken user file falls back to the default schedule so the clock
    keeps running.
    """
    if config.SCHEDULE_FILE:
        try:
            return load_schedule(Path(config.SCHEDULE_FILE).expanduser())
        except ScheduleError as e:
            logger.warning(f"Invalid schedule file, using default: {e} {e.problems}")
    return load_default_schedule()


def save_schedule(schedule: Sequence[TimeBlock], path: Path) -> None:
    """Write a schedule as camelCase JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([block.to_dict() for block in schedule], f, indent=2)
