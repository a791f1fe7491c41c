"""Event recording shared by the simulation core and the host service."""

from .event_log import EventLog, LogEntry, LogLevel

__all__ = ["EventLog", "LogEntry", "LogLevel"]
