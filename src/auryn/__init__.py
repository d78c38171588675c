"""Auryn - personal tasks and calendar, usable offline."""

__version__ = "0.1.0"
