"""Joidu Focus - focus timer and sync progress from the command line."""

__version__ = "0.1.0"
