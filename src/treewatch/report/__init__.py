"""Rendering of change reports to log files and the console."""
