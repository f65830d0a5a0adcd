#!/usr/bin/env python3
"""
DayBlocks - Main Entry Point

Tracks the day as a sequence of time blocks, rings an alarm when a block
starts or ends, and runs a pomodoro timer alongside.

Usage:
    python main.py                          # Run with the configured schedule
    python main.py --schedule my_day.json   # Run with a specific schedule
    python main.py --validate my_day.json   # Check a schedule file and exit
    python main.py --history                # Show the last 7 days of pomodoros
"""

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional

import config
from audio.sinks import create_audio_sink
from audio.synth import SoundSynthesizer
from blocks.errors import ScheduleError
from blocks.loader import load_configured_schedule, load_default_schedule, load_schedule, save_schedule, validate_schedule
from blocks.model import ResolvedState, TimeBlock
from core.alerts import AlertController, AlertState
from core.clock import ThreadScheduler
from core.engine import DayEngine
from core.transitions import Transition
from notifications.notifier import DesktopNotifier, LoggingNotifier
from pomodoro.engine import PHASE_IDLE, PomodoroEngine, PomodoroState
from tracking.pomodoro_stats import PomodoroStats
from tracking.store import JsonFileStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format=config.LOG_FORMAT
)
logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  d        dismiss the alert          f        start focus
  b / B    start break / long break   p / r    pause / resume pomodoro
  s        stop pomodoro              k        skip pomodoro phase
  h / v    surface hidden / visible   m / M    floating surface on / off
  sound X  switch alarm sound (beep, chime, electronic)
  q        quit"""


class DayBlocksCLI:
    """
    Terminal host for the day engine and the pomodoro timer.
    """

    def __init__(self, schedule: List[TimeBlock], muted: bool = False, desktop_notifications: bool = True):
        self.store = JsonFileStore()
        notifier = DesktopNotifier() if desktop_notifications else LoggingNotifier()
        self.scheduler = ThreadScheduler()

        sink = create_audio_sink(enabled=not muted)
        self.alerts = AlertController(SoundSynthesizer(sink, self.scheduler), notifier, self.store)
        self.engine = DayEngine(schedule, self.alerts)

        # Separate synthesizer so the pomodoro chime never cancels a block alarm
        self._chime = SoundSynthesizer(sink, self.scheduler)
        self.pomodoro = PomodoroEngine(
            PomodoroStats(self.store),
            notifier=notifier,
            play_sound=lambda: self._chime.play_pattern(config.POMODORO_SOUND_PROFILE),
        )

        self.stop_event = threading.Event()
        self._last_line = ""
        self._pomodoro_line = ""
        self._today = None

        self.engine.on_state = self._on_state
        self.engine.on_transition = self._on_transition
        self.engine.on_alert = self._on_alert
        self.pomodoro.on_tick = self._on_pomodoro

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _on_state(self, state: ResolvedState) -> None:
        if self._today != state.instant.date():
            # New calendar day: the pomodoro count starts over
            if self._today is not None:
                self.pomodoro.refresh_daily_count()
            self._today = state.instant.date()
        current = state.current_block.name if state.current_block else "No active block"
        upcoming = state.next_block.name if state.next_block else "-"
        line = f"{state.instant:%H:%M:%S}  {current}  [{state.remaining.format()} left]  next: {upcoming}"
        if self._pomodoro_line:
            line += f"  |  {self._pomodoro_line}"
        if line != self._last_line:
            print(f"\r{line:<110}", end="", flush=True)
            self._last_line = line

    def _on_transition(self, transition: Transition) -> None:
        name = transition.block.name if transition.block else "unscheduled time"
        print(f"\n→ Now: {name}")

    def _on_alert(self, alert: AlertState) -> None:
        if alert.is_visible:
            print(f"\n🔔 {alert.message}  (type 'd' + Enter to dismiss)")
        else:
            print("\n✓ Alert dismissed")

    def _on_pomodoro(self, state: PomodoroState) -> None:
        if state.phase == PHASE_IDLE and not state.is_running:
            self._pomodoro_line = f"🍅 idle ({state.completed_count_today} today)"
        else:
            status = "" if state.is_running else " paused"
            self._pomodoro_line = (
                f"🍅 {state.phase}{status} {state.formatted_time} ({state.completed_count_today} today)"
            )

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def handle_command(self, command: str) -> None:
        command = command.strip()
        if not command:
            return
        if command == "q":
            self.stop_event.set()
        elif command == "d":
            self.engine.dismiss_alert()
        elif command == "f":
            self.pomodoro.start_focus()
        elif command in ("b", "B"):
            self.pomodoro.start_break(is_long=command == "B")
        elif command == "p":
            self.pomodoro.pause()
        elif command == "r":
            self.pomodoro.resume()
        elif command == "s":
            self.pomodoro.stop()
        elif command == "k":
            self.pomodoro.skip()
        elif command in ("h", "v"):
            self.engine.set_page_visible(command == "v")
        elif command in ("m", "M"):
            self.engine.set_floating_surface(command == "m")
        elif command.startswith("sound "):
            try:
                self.alerts.change_sound_profile(command.split(None, 1)[1])
            except ValueError as e:
                print(f"\n{e}")
        else:
            print(f"\n{HELP_TEXT}")

    def _keyboard_listener(self) -> None:
        """Read commands from stdin until quit or EOF."""
        try:
            while not self.stop_event.is_set():
                self.handle_command(input())
        except (EOFError, OSError):
            pass
        except Exception as e:
            logger.debug(f"Keyboard listener error: {e}")

    def run(self, start_focus: bool = False) -> None:
        print(f"\n{HELP_TEXT}\n")
        self.engine.start()
        self.pomodoro.start_ticking(self.scheduler)
        if start_focus:
            self.pomodoro.start_focus()
        self._on_pomodoro(self.pomodoro.get_state())

        threading.Thread(target=self._keyboard_listener, daemon=True).start()
        try:
            self.stop_event.wait()
        except KeyboardInterrupt:
            pass
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        self.pomodoro.stop_ticking()
        self._chime.cancel()
        self.engine.stop()
        print("\n\nGoodbye!")


def show_history() -> None:
    stats = PomodoroStats(JsonFileStore())
    print("\nPomodoros, last 7 days:")
    for record in stats.get_history(7):
        print(f"  {record['date']}  {'🍅' * record['completedPomodoros'] or '-'}")


def validate_file(path: Path) -> int:
    try:
        schedule = load_schedule(path, validate=False)
    except ScheduleError as e:
        print(f"❌ {e}")
        return 1
    problems = validate_schedule(schedule)
    if problems:
        print(f"❌ {path} has {len(problems)} problem(s):")
        for problem in problems:
            print(f"   • {problem}")
        return 1
    print(f"✓ {path}: {len(schedule)} blocks, no problems")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point - parses arguments and runs the requested mode."""
    parser = argparse.ArgumentParser(
        description="DayBlocks - time-block day planner with alarms and a pomodoro timer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                            Run with the configured schedule
  python main.py --schedule my_day.json     Run with a specific schedule
  python main.py --pomodoro --sound chime   Start a focus session, chime alarms
  python main.py --write-default my_day.json
        """
    )
    parser.add_argument("--schedule", type=Path, help="Schedule JSON file to run")
    parser.add_argument("--validate", type=Path, metavar="FILE", help="Check a schedule file and exit")
    parser.add_argument("--write-default", type=Path, metavar="FILE",
                        help="Write the bundled default schedule to FILE and exit")
    parser.add_argument("--history", action="store_true", help="Show recent pomodoro history and exit")
    parser.add_argument("--sound", choices=config.SOUND_PROFILES, help="Alarm sound to use (saved for next time)")
    parser.add_argument("--pomodoro", action="store_true", help="Start a focus session right away")
    parser.add_argument("--muted", action="store_true", help="Never play sounds")
    parser.add_argument("--no-desktop", action="store_true",
                        help="Log notifications instead of showing desktop notifications")

    args = parser.parse_args(argv)

    if args.validate:
        return validate_file(args.validate)
    if args.write_default:
        save_schedule(load_default_schedule(), args.write_default)
        print(f"✓ Default schedule written to {args.write_default}")
        return 0
    if args.history:
        show_history()
        return 0

    try:
        schedule = load_schedule(args.schedule) if args.schedule else load_configured_schedule()
    except ScheduleError as e:
        print(f"❌ {e}")
        for problem in e.problems:
            print(f"   • {problem}")
        return 1

    try:
        cli = DayBlocksCLI(schedule, muted=args.muted, desktop_notifications=not args.no_desktop)
        if args.sound:
            cli.alerts.select_sound_profile(args.sound)
        cli.run(start_focus=args.pomodoro)
    except KeyboardInterrupt:
        print("\n\nGoodbye!")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        print(f"\nFatal error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
