"""Local persistence: key-value store, preferences and pomodoro history."""
