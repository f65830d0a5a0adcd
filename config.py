"""Configuration settings for DayBlocks."""

import os
import sys
from pathlib import Path
from dotenv import load_dotenv


def is_bundled() -> bool:
    """
    Check if the application is running from a PyInstaller bundle.

    Returns:
        True if running from a bundled executable, False otherwise.
    """
    return getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS')


def get_base_dir() -> Path:
    """
    Get the base directory for bundled resources (default schedule, etc.).

    Returns:
        Path to the base directory.
    """
    if is_bundled():
        meipass = getattr(sys, '_MEIPASS', None)
        if meipass:
            return Path(meipass)
    return Path(__file__).parent


def get_user_data_dir() -> Path:
    """
    Get the directory for user-writable data (pomodoro history, preferences).

    DAYBLOCKS_DATA_DIR overrides the platform default. In development the
    data lives next to this file; bundled builds use the usual per-user
    application data folder so it survives updates.

    Returns:
        Path to the user data directory.
    """
    override = os.getenv("DAYBLOCKS_DATA_DIR", "")
    if override:
        return Path(override).expanduser()

    if not is_bundled():
        return Path(__file__).parent / "data"

    if sys.platform == 'darwin':
        return Path.home() / "Library" / "Application Support" / "DayBlocks"
    if sys.platform == 'win32':
        appdata = os.environ.get('APPDATA')
        if appdata:
            return Path(appdata) / "DayBlocks"
        return Path.home() / "AppData" / "Roaming" / "DayBlocks"
    return Path.home() / ".local" / "share" / "DayBlocks"


def _get_int(env_var: str, default: int, minimum: int = 1) -> int:
    """Read a positive integer setting, falling back to the default on bad input."""
    raw = os.getenv(env_var, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        import logging
        logging.getLogger(__name__).warning(
            f"{env_var}={raw!r} is not an integer, using {default}"
        )
        return default
    return max(minimum, value)


# Load environment variables from .env file (only in development)
if not is_bundled():
    _env_path = Path(__file__).parent / ".env"
    load_dotenv(_env_path)

# Base directory (for bundled resources like the default schedule)
BASE_DIR = get_base_dir()

# User data directory (JSON key-value store lives here)
USER_DATA_DIR = get_user_data_dir()

# Bundled data directory (read-only resources included in the app)
BUNDLED_DATA_DIR = BASE_DIR / "resources"
DEFAULT_SCHEDULE_FILE = BUNDLED_DATA_DIR / "default_schedule.json"

# Optional user schedule (full-list replacement of the default one)
SCHEDULE_FILE = os.getenv("DAYBLOCKS_SCHEDULE_FILE", "")

# Key-value store backing file
STORE_FILE = USER_DATA_DIR / "store.json"

# Storage keys
SOUND_STORAGE_KEY = "daily-focus-sound-type"
POMODORO_STORAGE_KEY = "pomodoro-sessions"

# Tick loops
TICK_INTERVAL_SECONDS = 1.0
ALARM_LOOP_INTERVAL_SECONDS = 2.0

# Block types with special handling
SLEEP_BLOCK_TYPE = "sleep"

# Sound profiles the user can pick from (the pomodoro chime is internal)
SOUND_PROFILES = ("beep", "chime", "electronic")
DEFAULT_SOUND_PROFILE = "beep"
POMODORO_SOUND_PROFILE = "pomodoro"

# Audio output
SAMPLE_RATE = _get_int("DAYBLOCKS_SAMPLE_RATE", 44100, minimum=8000)

# Notification titles
NOTIFY_BLOCK_STARTED = "Time Block Started"
NOTIFY_BLOCK_COMPLETE = "Block Complete"
NOTIFY_POMODORO_COMPLETE = "\U0001F345 Pomodoro Complete!"
NOTIFY_BREAK_OVER = "Break Over"

# Pomodoro settings (minutes in .env, seconds here)
POMODORO_FOCUS_SECONDS = _get_int("POMODORO_FOCUS_MINUTES", 25) * 60
POMODORO_BREAK_SECONDS = _get_int("POMODORO_BREAK_MINUTES", 5) * 60
POMODORO_LONG_BREAK_SECONDS = _get_int("POMODORO_LONG_BREAK_MINUTES", 15) * 60
POMODORO_LONG_BREAK_EVERY = _get_int("POMODORO_LONG_BREAK_EVERY", 4)

# Days of pomodoro history kept in the store
POMODORO_HISTORY_DAYS = 30

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # Can override in .env: DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
