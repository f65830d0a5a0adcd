"""
Core business logic package for DayBlocks.

Contains the headless DayEngine, the transition detector and the alert
controller. Zero UI dependencies: hosts drive the engines and receive
updates via callbacks.
"""
