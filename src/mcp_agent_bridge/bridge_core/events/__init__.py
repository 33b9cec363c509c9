"""Event recording and live streaming."""

from .event_log import EventLog, EventSink

__all__ = ["EventLog", "EventSink"]
