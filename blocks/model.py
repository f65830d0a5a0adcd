"""Data model for time blocks and resolution results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple

import config
from blocks.errors import ScheduleError

MINUTES_PER_DAY = 24 * 60

# camelCase (UI / original JSON) -> attribute name
_FIELD_ALIASES = {
    "startHour": "start_hour",
    "startMinute": "start_minute",
    "endHour": "end_hour",
    "endMinute": "end_minute",
    "lockedCategories": "locked_categories",
}


def time_to_minutes(hour: int, minute: int) -> int:
    """Convert a wall-clock hour/minute to minutes since midnight."""
    return hour * 60 + minute


@dataclass(frozen=True)
class TimeBlock:
    """
    A named, typed interval of the day.

    Times are local wall-clock values without a timezone. A block whose
    end clock-time precedes its start clock-time is an overnight block and
    ends on the following day.
    """

    id: str
    name: str
    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int
    type: str = ""
    tasks: Tuple[str, ...] = ()
    locked_categories: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.id:
            raise ScheduleError("Time block id must not be empty")
        for label, value, upper in (
            ("start_hour", self.start_hour, 23),
            ("start_minute", self.start_minute, 59),
            ("end_hour", self.end_hour, 23),
            ("end_minute", self.end_minute, 59),
        ):
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= upper:
                raise ScheduleError(f"Block {self.id!r}: {label} must be 0-{upper}, got {value!r}")
        # Normalise containers so blocks stay hashable and immutable
        object.__setattr__(self, "tasks", tuple(self.tasks))
        object.__setattr__(self, "locked_categories", frozenset(self.locked_categories))

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_hour, self.start_minute)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_hour, self.end_minute)

    @property
    def is_overnight(self) -> bool:
        return self.end_minutes < self.start_minutes

    @property
    def is_sleep(self) -> bool:
        return (self.type or "").lower() == config.SLEEP_BLOCK_TYPE

    @property
    def duration_minutes(self) -> int:
        if self.is_overnight:
            return self.end_minutes + MINUTES_PER_DAY - self.start_minutes
        return self.end_minutes - self.start_minutes

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeBlock":
        """
        Build a block from a mapping with camelCase or snake_case keys.

        Raises:
            ScheduleError: If a required field is missing or out of range.
        """
        normalised = {_FIELD_ALIASES.get(key, key): value for key, value in data.items()}
        for key in ("tasks", "locked_categories"):
            if isinstance(normalised.get(key), str):
                raise ScheduleError(f"Time block field {key!r} must be a list, got a string: {data!r}")
        try:
            return cls(
                id=str(normalised["id"]),
                name=str(normalised.get("name", normalised["id"])),
                start_hour=normalised["start_hour"],
                start_minute=normalised["start_minute"],
                end_hour=normalised["end_hour"],
                end_minute=normalised["end_minute"],
                type=str(normalised.get("type") or ""),
                tasks=tuple(normalised.get("tasks") or ()),
                locked_categories=frozenset(normalised.get("locked_categories") or ()),
            )
        except KeyError as e:
            raise ScheduleError(f"Time block is missing field {e.args[0]!r}: {data!r}") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "startHour": self.start_hour,
            "startMinute": self.start_minute,
            "endHour": self.end_hour,
            "endMinute": self.end_minute,
            "type": self.type,
            "tasks": list(self.tasks),
            "lockedCategories": sorted(self.locked_categories),
        }


@dataclass(frozen=True)
class RemainingTime:
    """Time left in the active block, floored to whole seconds."""

    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    total_seconds: int = 0

    @classmethod
    def from_seconds(cls, total_seconds: int) -> "RemainingTime":
        total = max(0, int(total_seconds))
        return cls(
            hours=total // 3600,
            minutes=(total % 3600) // 60,
            seconds=total % 60,
            total_seconds=total,
        )

    def format(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}:{self.seconds:02d}"


@dataclass(frozen=True)
class ResolvedState:
    """What the schedule looks like at one instant."""

    instant: datetime
    current_block: Optional[TimeBlock]
    next_block: Optional[TimeBlock]
    remaining: RemainingTime
