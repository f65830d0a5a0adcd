"""Tests for notifications/notifier.py."""

import subprocess
import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from notifications.notifier import DesktopNotifier, RecordingNotifier, notify_safely


class TestNotifySafely(unittest.TestCase):

    def test_delivers(self):
        """Recording notifier keeps every message."""
        notifier = RecordingNotifier()
        self.assertTrue(notify_safely(notifier, "Title", "Body"))
        self.assertEqual(notifier.sent, [("Title", "Body")])

    def test_none_notifier(self):
        """Null notifier accepts and drops messages."""
        self.assertFalse(notify_safely(None, "Title", "Body"))

    def test_failure_logged_not_raised(self):
        """notify_safely logs notifier failures."""
        notifier = MagicMock()
        notifier.notify.side_effect = PermissionError("not permitted")
        with self.assertLogs("notifications.notifier", level="WARNING"):
            self.assertFalse(notify_safely(notifier, "Title", "Body"))


class TestDesktopNotifier(unittest.TestCase):

    @patch("notifications.notifier.sys")
    def test_linux_uses_notify_send(self, mock_sys):
        """Linux notifications go through notify-send."""
        mock_sys.platform = "linux"
        command = DesktopNotifier()._command("Block Complete", "Lunch is complete.")
        self.assertEqual(command, ["notify-send", "--app-name", "DayBlocks", "Block Complete", "Lunch is complete."])

    @patch("notifications.notifier.sys")
    def test_macos_escapes_quotes(self, mock_sys):
        """Quotes are escaped in the osascript command."""
        mock_sys.platform = "darwin"
        command = DesktopNotifier()._command("Title", 'Say "hi"')
        self.assertEqual(command[0], "osascript")
        self.assertIn('Say \\"hi\\"', command[2])

    @patch("notifications.notifier.sys")
    def test_windows_uses_powershell(self, mock_sys):
        """Windows notifications go through PowerShell."""
        mock_sys.platform = "win32"
        command = DesktopNotifier()._command("Title", "It's 9:00 AM")
        self.assertEqual(command[0], "powershell")
        self.assertIn("It''s 9:00 AM", command[-1])

    @patch("notifications.notifier.subprocess.Popen")
    @patch("notifications.notifier.sys")
    def test_notify_spawns_process(self, mock_sys, mock_popen):
        """notify() starts a detached process."""
        mock_sys.platform = "linux"
        DesktopNotifier().notify("Title", "Body")
        mock_popen.assert_called_once()
        self.assertEqual(mock_popen.call_args.kwargs["stdout"], subprocess.DEVNULL)

    @patch("notifications.notifier.subprocess.Popen", side_effect=FileNotFoundError("notify-send"))
    @patch("notifications.notifier.sys")
    def test_missing_tool_is_contained_by_notify_safely(self, mock_sys, _mock_popen):
        """A missing command-line tool is logged, not raised."""
        mock_sys.platform = "linux"
        with self.assertLogs("notifications.notifier", level="WARNING"):
            self.assertFalse(notify_safely(DesktopNotifier(), "Title", "Body"))


if __name__ == "__main__":
    unittest.main()
