"""
Tests for tracking/store.py and tracking/preferences.py.
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

import config
from tracking.preferences import load_sound_profile, save_sound_profile
from tracking.store import JsonFileStore, MemoryStore


class TestJsonFileStore(unittest.TestCase):
    """File-backed store persistence."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.data_file = self.temp_dir / "store.json"

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_missing_file_starts_empty(self):
        """A missing file reads as empty."""
        store = JsonFileStore(self.data_file)
        self.assertIsNone(store.get("anything"))
        self.assertEqual(store.get("anything", 5), 5)

    def test_values_survive_reload(self):
        """Values survive a new store instance."""
        store = JsonFileStore(self.data_file)
        store.set("daily-focus-sound-type", "chime")
        store.set("pomodoro-sessions", [{"date": "2026-10-19", "completedPomodoros": 2}])

        reloaded = JsonFileStore(self.data_file)
        self.assertEqual(reloaded.get("daily-focus-sound-type"), "chime")
        self.assertEqual(reloaded.get("pomodoro-sessions")[0]["completedPomodoros"], 2)

    def test_creates_parent_directory(self):
        """Saving creates the parent directory."""
        nested = self.temp_dir / "a" / "b" / "store.json"
        JsonFileStore(nested).set("key", 1)
        self.assertEqual(json.loads(nested.read_text()), {"key": 1})

    def test_corrupted_file_starts_fresh(self):
        """A corrupted file reads as empty."""
        self.data_file.write_text("{not json")
        store = JsonFileStore(self.data_file)
        self.assertEqual(store.data, {})

    def test_non_object_file_ignored(self):
        """A file without a JSON object reads as empty."""
        self.data_file.write_text("[1, 2, 3]")
        store = JsonFileStore(self.data_file)
        self.assertEqual(store.data, {})

    def test_no_temp_files_left_behind(self):
        """Atomic writes leave no temp files."""
        store = JsonFileStore(self.data_file)
        store.set("key", "value")
        self.assertEqual([p.name for p in self.temp_dir.iterdir()], ["store.json"])

    def test_write_failure_is_logged_not_raised(self):
        """A failed write is logged and the value kept in memory."""
        store = JsonFileStore(self.data_file)
        with patch("tracking.store.tempfile.mkstemp", side_effect=OSError("read-only")):
            with self.assertLogs("tracking.store", level="ERROR"):
                store.set("key", "value")
        # In-memory value still updated
        self.assertEqual(store.get("key"), "value")

    def test_default_location_from_config(self):
        """The default path comes from config."""
        with patch("config.STORE_FILE", self.data_file):
            store = JsonFileStore()
        self.assertEqual(store.data_file, self.data_file)


class TestSoundPreference(unittest.TestCase):

    def test_default_when_unset(self):
        """No stored preference gives the default profile."""
        self.assertEqual(load_sound_profile(MemoryStore()), config.DEFAULT_SOUND_PROFILE)

    def test_round_trip(self):
        """A saved preference reads back."""
        store = MemoryStore()
        save_sound_profile(store, "electronic")
        self.assertEqual(store.get(config.SOUND_STORAGE_KEY), "electronic")
        self.assertEqual(load_sound_profile(store), "electronic")

    def test_unknown_value_falls_back(self):
        """An unknown stored profile gives the default."""
        store = MemoryStore({config.SOUND_STORAGE_KEY: "pomodoro"})
        self.assertEqual(load_sound_profile(store), config.DEFAULT_SOUND_PROFILE)


if __name__ == "__main__":
    unittest.main()
