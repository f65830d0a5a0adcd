"""Exception types shared across DayBlocks."""


class DayBlocksError(Exception):
    """Base class for DayBlocks errors."""


class ScheduleError(DayBlocksError):
    """A time block or schedule is malformed."""

    def __init__(self, message: str, problems=None):
        super().__init__(message)
        self.problems = list(problems or [])
