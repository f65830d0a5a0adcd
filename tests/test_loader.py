"""
Tests for blocks/loader.py - schedule files and well-formedness checks.
"""

import json
import shutil
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from blocks.errors import ScheduleError
from blocks.loader import (
    load_configured_schedule,
    load_default_schedule,
    load_schedule,
    parse_schedule,
    save_schedule,
    validate_schedule,
)
from blocks.model import TimeBlock


def block(block_id, start, end):
    return TimeBlock(block_id, block_id, start[0], start[1], end[0], end[1])


class TestDefaultSchedule(unittest.TestCase):
    """The bundled default day."""

    def test_default_schedule_loads_and_is_well_formed(self):
        """The bundled day has 13 valid blocks."""
        schedule = load_default_schedule()
        self.assertEqual(len(schedule), 13)
        self.assertEqual(validate_schedule(schedule), [])

    def test_default_schedule_has_one_overnight_block(self):
        """Only night work crosses midnight."""
        schedule = load_default_schedule()
        overnight = [b.id for b in schedule if b.is_overnight]
        self.assertEqual(overnight, ["night-work"])

    def test_default_schedule_covers_whole_day(self):
        """The bundled blocks add up to 24 hours."""
        schedule = load_default_schedule()
        self.assertEqual(sum(b.duration_minutes for b in schedule), 24 * 60)

    def test_sleep_block_is_typed(self):
        """The sleep block is recognised as sleep."""
        sleep = [b for b in load_default_schedule() if b.id == "sleep"][0]
        self.assertTrue(sleep.is_sleep)


class TestValidateSchedule(unittest.TestCase):
    """validate_schedule() problem reporting."""

    def test_overlap_reported(self):
        """Overlapping blocks are reported with the first shared minute."""
        problems = validate_schedule([block("a", (9, 0), (10, 0)), block("b", (9, 30), (11, 0))])
        self.assertEqual(len(problems), 1)
        self.assertIn("'b' overlaps 'a' at 09:30", problems[0])

    def test_overnight_overlap_reported(self):
        """Overlap after midnight is detected."""
        problems = validate_schedule([block("night", (23, 0), (2, 0)), block("early", (1, 0), (3, 0))])
        self.assertEqual(len(problems), 1)
        self.assertIn("01:00", problems[0])

    def test_adjacent_blocks_do_not_overlap(self):
        """Touching blocks are fine."""
        self.assertEqual(
            validate_schedule([block("a", (9, 0), (10, 0)), block("b", (10, 0), (11, 0))]),
            [],
        )

    def test_duplicate_ids(self):
        """Duplicate ids are reported."""
        problems = validate_schedule([block("a", (9, 0), (10, 0)), block("a", (11, 0), (12, 0))])
        self.assertTrue(any("Duplicate block id 'a'" in p for p in problems))

    def test_zero_length_block(self):
        """A block with equal start and end is reported."""
        problems = validate_schedule([block("a", (9, 0), (9, 0))])
        self.assertTrue(any("same time" in p for p in problems))

    def test_multiple_overnight_blocks(self):
        """At most one block may cross midnight."""
        problems = validate_schedule([block("a", (22, 0), (23, 0)), block("b", (23, 0), (1, 0)),
                                      block("c", (1, 30), (1, 0))])
        self.assertTrue(any("More than one overnight block" in p for p in problems))

    def test_gaps_are_allowed(self):
        """Uncovered time is not a problem."""
        self.assertEqual(validate_schedule([block("a", (9, 0), (10, 0)), block("b", (12, 0), (13, 0))]), [])


class TestLoadSchedule(unittest.TestCase):
    """Reading and writing schedule files."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write(self, name, data):
        path = self.temp_dir / name
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return path

    def test_snake_case_keys_wrapped_in_object(self):
        """Snake-case blocks under a blocks key load."""
        path = self._write("snake.json", {"blocks": [{
            "id": "focus", "name": "Focus", "start_hour": 8, "start_minute": 30,
            "end_hour": 9, "end_minute": 0, "tasks": ["write"],
        }]})
        schedule = load_schedule(path)
        self.assertEqual(len(schedule), 1)
        self.assertEqual(schedule[0].start_minutes, 8 * 60 + 30)
        self.assertEqual(schedule[0].tasks, ("write",))

    def test_invalid_json_raises(self):
        """Unparseable JSON is a schedule error."""
        path = self._write("broken.json", "{not json")
        with self.assertRaises(ScheduleError):
            load_schedule(path)

    def test_missing_file_raises(self):
        """A missing file is a schedule error."""
        with self.assertRaises(ScheduleError):
            load_schedule(self.temp_dir / "missing.json")

    def test_overlapping_file_raises_with_problems(self):
        """Validation problems are attached to the error."""
        path = self._write("overlap.json", [b.to_dict() for b in (
            block("a", (9, 0), (10, 0)), block("b", (9, 30), (11, 0)))])
        with self.assertRaises(ScheduleError) as ctx:
            load_schedule(path)
        self.assertEqual(len(ctx.exception.problems), 1)

    def test_overlapping_file_loads_without_validation(self):
        """validate=False skips the checks."""
        path = self._write("overlap.json", [b.to_dict() for b in (
            block("a", (9, 0), (10, 0)), block("b", (9, 30), (11, 0)))])
        self.assertEqual(len(load_schedule(path, validate=False)), 2)

    def test_non_list_rejected(self):
        """An object without a blocks list is rejected."""
        with self.assertRaises(ScheduleError):
            parse_schedule({"name": "not a schedule"})

    def test_non_object_block_rejected(self):
        """A list entry that is not an object is a schedule error."""
        for bad in ([1], ["x"], [None]):
            with self.assertRaises(ScheduleError):
                parse_schedule(bad)

    def test_string_tasks_rejected(self):
        """A tasks string is not split into characters."""
        item = block("a", (9, 0), (10, 0)).to_dict()
        item["tasks"] = "write"
        with self.assertRaises(ScheduleError):
            parse_schedule([item])

    def test_configured_schedule_with_non_object_block_falls_back(self):
        """A user file holding [1] falls back to the default day."""
        path = self._write("numbers.json", [1])
        with patch("config.SCHEDULE_FILE", str(path)):
            schedule = load_configured_schedule()
        self.assertEqual(schedule, load_default_schedule())

    def test_save_then_load_keeps_blocks(self):
        """A saved schedule loads back unchanged."""
        schedule = load_default_schedule()
        path = self.temp_dir / "nested" / "day.json"
        save_schedule(schedule, path)
        self.assertEqual(load_schedule(path), schedule)

    def test_configured_schedule_falls_back_to_default(self):
        """A broken user file falls back to the default day."""
        path = self._write("broken.json", "[]]")
        with patch("config.SCHEDULE_FILE", str(path)):
            schedule = load_configured_schedule()
        self.assertEqual(schedule, load_default_schedule())

    def test_configured_schedule_used_when_valid(self):
        """A valid user file replaces the default day."""
        path = self._write("mine.json", [block("only", (9, 0), (17, 0)).to_dict()])
        with patch("config.SCHEDULE_FILE", str(path)):
            schedule = load_configured_schedule()
        self.assertEqual([b.id for b in schedule], ["only"])


if __name__ == "__main__":
    unittest.main()
