"""Block transition detection across ticks."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from blocks.model import TimeBlock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """The resolved active block changed at `instant`."""

    instant: datetime
    previous_block_id: Optional[str]
    block: Optional[TimeBlock]


class TransitionDetector:
    """
    Remembers the last resolved block id and reports when it changes.

    The first observation only primes the detector, so opening the app
    in the middle of a block never looks like that block just started.
    Moving into an uncovered gap is a transition too (with block None).
    """

    def __init__(self) -> None:
        self.last_block_id: Optional[str] = None
        self._primed: bool = False

    @property
    def primed(self) -> bool:
        return self._primed

    def observe(self, block: Optional[TimeBlock], instant: datetime) -> Optional[Transition]:
        block_id = block.id if block else None

        if not self._primed:
            self._primed = True
            self.last_block_id = block_id
            logger.debug(f"Transition detector primed on {block_id!r}")
            return None

        if block_id == self.last_block_id:
            return None

        transition = Transition(instant=instant, previous_block_id=self.last_block_id, block=block)
        self.last_block_id = block_id
        logger.info(f"Block transition {transition.previous_block_id!r} -> {block_id!r}")
        return transition

    def reset(self) -> None:
        """Forget history; the next observation primes again."""
        self.last_block_id = None
        self._primed = False
