"""Notification ports (desktop, logging, in-memory)."""

from notifications.notifier import (
    DesktopNotifier,
    LoggingNotifier,
    Notifier,
    NullNotifier,
    RecordingNotifier,
    notify_safely,
)

__all__ = [
    "DesktopNotifier",
    "LoggingNotifier",
    "Notifier",
    "NullNotifier",
    "RecordingNotifier",
    "notify_safely",
]
