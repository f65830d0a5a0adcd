"""
Daily pomodoro statistics for DayBlocks.

Keeps one record per day with the number of completed focus sessions,
stored as a list under a single key of a KeyValueStore. Today's count
starts at zero on a new calendar day; records older than the retention
window are dropped on every save.
"""

import logging
import threading
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

import config
from tracking.store import KeyValueStore

logger = logging.getLogger(__name__)


class PomodoroStats:
    """
    Completed focus sessions per day.

    Each record looks like
    {"date": "2026-10-19", "completedPomodoros": 3, "totalFocusMinutes": 75}.
    """

    def __init__(
        self,
        store: KeyValueStore,
        today: Callable[[], date] = date.today,
        focus_minutes: int = config.POMODORO_FOCUS_SECONDS // 60,
        retention_days: int = config.POMODORO_HISTORY_DAYS,
        key: str = config.POMODORO_STORAGE_KEY,
    ):
        self.store = store
        self.today = today
        self.focus_minutes = focus_minutes
        self.retention_days = retention_days
        self.key = key
        self._lock = threading.Lock()

    def _load_records(self) -> List[Dict[str, Any]]:
        try:
            records = self.store.get(self.key, [])
        except Exception as e:
            logger.warning(f"Failed to read pomodoro history: {e}")
            return []
        if not isinstance(records, list):
            logger.warning("Ignoring malformed pomodoro history")
            return []
        return [r for r in records if isinstance(r, dict) and "date" in r]

    def _find(self, records: List[Dict[str, Any]], day: str) -> Optional[Dict[str, Any]]:
        for record in records:
            if record.get("date") == day:
                return record
        return None

    def get_completed_today(self) -> int:
        """Completed focus sessions for the current calendar day."""
        with self._lock:
            record = self._find(self._load_records(), self.today().isoformat())
        if record is None:
            return 0
        try:
            return max(0, int(record.get("completedPomodoros", 0)))
        except (TypeError, ValueError):
            return 0

    def save_completed_today(self, completed: int) -> None:
        """
        Store today's completed count and prune old records.

        Raises:
            ValueError: If `completed` is negative.
        """
        if completed < 0:
            raise ValueError("Completed count must be non-negative")

        with self._lock:
            today = self.today()
            records = self._load_records()
            record = {
                "date": today.isoformat(),
                "completedPomodoros": completed,
                "totalFocusMinutes": completed * self.focus_minutes,
            }
            existing = self._find(records, record["date"])
            if existing is not None:
                records[records.index(existing)] = record
            else:
                records.append(record)

            cutoff = (today - timedelta(days=self.retention_days)).isoformat()
            records = [r for r in records if r["date"] >= cutoff]

            try:
                self.store.set(self.key, records)
            except Exception as e:
                logger.warning(f"Failed to save pomodoro history: {e}")
                return
        logger.debug(f"Saved pomodoro count for {record['date']}: {completed}")

    def get_history(self, days: int = 7) -> List[Dict[str, Any]]:
        """
        Records for the last `days` days, oldest first, with zero entries
        filled in for days without sessions.
        """
        with self._lock:
            records = self._load_records()
        today = self.today()
        history = []
        for offset in range(days - 1, -1, -1):
            day = (today - timedelta(days=offset)).isoformat()
            record = self._find(records, day)
            history.append(record or {"date": day, "completedPomodoros": 0, "totalFocusMinutes": 0})
        return history
