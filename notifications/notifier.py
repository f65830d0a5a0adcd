"""
Desktop notification ports.

Notifications are best-effort everywhere: a notifier may be unsupported
or not permitted, and callers go through notify_safely() so a failure is
logged and never reaches the state machines.
"""

import logging
import subprocess
import sys
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class Notifier(ABC):
    @abstractmethod
    def notify(self, title: str, body: str) -> None:
        pass


class NullNotifier(Notifier):
    def notify(self, title: str, body: str) -> None:
        pass


class LoggingNotifier(Notifier):
    """Writes notifications to the log (CLI and headless use)."""

    def notify(self, title: str, body: str) -> None:
        logger.info(f"[{title}] {body}")


class RecordingNotifier(Notifier):
    """Keeps every notification in memory, newest last."""

    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.sent.append((title, body))


def _escape_applescript(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class DesktopNotifier(Notifier):
    """
    Native notifications through the platform's command line tools.

    Cross-platform: macOS (osascript), Windows (PowerShell balloon tip),
    Linux (notify-send).
    """

    def __init__(self, app_name: str = "DayBlocks"):
        self.app_name = app_name

    def _command(self, title: str, body: str) -> Optional[List[str]]:
        if sys.platform == "darwin":
            script = (
                f'display notification "{_escape_applescript(body)}" '
                f'with title "{_escape_applescript(title)}"'
            )
            return ["osascript", "-e", script]
        if sys.platform == "win32":
            safe_title = title.replace("'", "''")
            safe_body = body.replace("'", "''")
            script = (
                "Add-Type -AssemblyName System.Windows.Forms;"
                "$n = New-Object System.Windows.Forms.NotifyIcon;"
                "$n.Icon = [System.Drawing.SystemIcons]::Information;"
                "$n.Visible = $true;"
                f"$n.ShowBalloonTip(10000, '{safe_title}', '{safe_body}', 'Info');"
                "Start-Sleep -Seconds 10; $n.Dispose()"
            )
            return ["powershell", "-NoProfile", "-c", script]
        return ["notify-send", "--app-name", self.app_name, title, body]

    def notify(self, title: str, body: str) -> None:
        command = self._command(title, body)
        kwargs = {"stdout": subprocess.DEVNULL, "stderr": subprocess.DEVNULL}
        if sys.platform == "win32":
            kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
        subprocess.Popen(command, **kwargs)


def notify_safely(notifier: Optional[Notifier], title: str, body: str) -> bool:
    """
    Send a notification, swallowing any failure.

    Returns:
        True if the notifier accepted the call.
    """
    if notifier is None:
        return False
    try:
        notifier.notify(title, body)
        return True
    except Exception as e:
        logger.warning(f"Notification failed ({title}): {e}")
        return False
