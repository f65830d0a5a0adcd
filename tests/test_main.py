"""
Tests for main.py - argument handling and CLI commands, without starting
the tick loops.
"""

import io
import json
import shutil
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

import main
from blocks.loader import load_default_schedule
from pomodoro.engine import PHASE_FOCUS, PHASE_IDLE
from tracking.store import MemoryStore


class TestMainArguments(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def run_main(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main.main(list(argv))
        return code, out.getvalue()

    def test_write_default_then_validate(self):
        """The written default schedule validates cleanly."""
        path = self.temp_dir / "day.json"
        code, _ = self.run_main("--write-default", str(path))
        self.assertEqual(code, 0)
        self.assertEqual(len(json.loads(path.read_text())), 13)

        code, output = self.run_main("--validate", str(path))
        self.assertEqual(code, 0)
        self.assertIn("13 blocks", output)

    def test_validate_reports_overlap(self):
        """--validate lists problems and exits 1."""
        path = self.temp_dir / "bad.json"
        path.write_text(json.dumps([
            {"id": "a", "name": "A", "startHour": 9, "startMinute": 0, "endHour": 10, "endMinute": 0},
            {"id": "b", "name": "B", "startHour": 9, "startMinute": 30, "endHour": 11, "endMinute": 0},
        ]))
        code, output = self.run_main("--validate", str(path))
        self.assertEqual(code, 1)
        self.assertIn("overlaps", output)

    def test_invalid_schedule_refuses_to_run(self):
        """An invalid --schedule file exits 1 without starting."""
        path = self.temp_dir / "broken.json"
        path.write_text("nope")
        with patch("main.DayBlocksCLI") as cli:
            code, _ = self.run_main("--schedule", str(path))
        self.assertEqual(code, 1)
        cli.assert_not_called()

    @patch("main.JsonFileStore", return_value=MemoryStore())
    def test_history(self, _store):
        """--history prints the last 7 days."""
        code, output = self.run_main("--history")
        self.assertEqual(code, 0)
        self.assertIn("last 7 days", output)


class TestCommands(unittest.TestCase):
    """Keyboard commands routed to the engines."""

    def setUp(self):
        patcher = patch("main.JsonFileStore", return_value=MemoryStore())
        patcher.start()
        self.addCleanup(patcher.stop)
        self.cli = main.DayBlocksCLI(load_default_schedule(), muted=True, desktop_notifications=False)

    def test_pomodoro_commands(self):
        """Single-key commands drive the pomodoro."""
        self.cli.handle_command("f")
        self.assertEqual(self.cli.pomodoro.phase, PHASE_FOCUS)
        self.cli.handle_command("p")
        self.assertFalse(self.cli.pomodoro.is_running)
        self.cli.handle_command("r")
        self.assertTrue(self.cli.pomodoro.is_running)
        self.cli.handle_command("k")
        self.assertEqual(self.cli.pomodoro.phase, PHASE_IDLE)

    def test_visibility_commands(self):
        """h and m update the sound policy flags."""
        self.cli.handle_command("h")
        self.assertFalse(self.cli.alerts.page_visible)
        self.cli.handle_command("m")
        self.assertTrue(self.cli.alerts.sound_allowed())

    def test_sound_command(self):
        """sound X switches the profile and rejects unknown names."""
        self.cli.handle_command("sound chime")
        self.assertEqual(self.cli.alerts.sound_profile, "chime")
        with redirect_stdout(io.StringIO()) as out:
            self.cli.handle_command("sound kazoo")
        self.assertIn("Unknown sound profile", out.getvalue())

    def test_quit(self):
        """q sets the stop event."""
        self.cli.handle_command("q")
        self.assertTrue(self.cli.stop_event.is_set())


if __name__ == "__main__":
    unittest.main()
